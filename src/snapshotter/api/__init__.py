"""Read-only HTTP API over persisted snapshots."""
