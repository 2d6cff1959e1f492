"""Snapshot record construction."""

from snapshotter.snapshot.builder import (
    BUCKET_SECONDS,
    bucket_timestamp,
    build_snapshot,
    classify_confidence,
)

__all__ = ["BUCKET_SECONDS", "bucket_timestamp", "build_snapshot", "classify_confidence"]
