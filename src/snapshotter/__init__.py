"""Strategy index-price snapshot service."""
