"""Weighted index price computation for a single strategy.

Pure functions: no I/O, no clock reads except the default ``created_at``.
"""

import math
import time
from collections.abc import Mapping

from snapshotter.models import (
    SOURCE_NO_MINT,
    SOURCE_NONE,
    Confidence,
    PriceResult,
    SnapshotRecord,
    TokenEntry,
)

BUCKET_SECONDS = 300  # 5 minutes


def bucket_timestamp(now: float, bucket_seconds: int = BUCKET_SECONDS) -> int:
    """Round a UTC unix time down to the start of its bucket."""
    return math.floor(now / bucket_seconds) * bucket_seconds


def classify_confidence(missing: int, total: int) -> Confidence:
    """OK when nothing is missing, FAIL when everything is, PARTIAL otherwise."""
    if total == 0 or missing >= total:
        return Confidence.FAIL
    if missing == 0:
        return Confidence.OK
    return Confidence.PARTIAL


def build_snapshot(
    strategy_id: str,
    ts_bucket: int,
    tokens: list[TokenEntry],
    prices: Mapping[str, PriceResult],
    created_at: int | None = None,
) -> SnapshotRecord:
    """Build the snapshot record of one strategy for one bucket.

    Weights are normalized over all entries, unresolved ones included, so a
    missing token lowers the index price instead of being re-weighted away.
    Entries sharing a key (same mint listed twice) accumulate their weights.

    Args:
        strategy_id: Strategy identifier.
        ts_bucket: Bucket start as returned by bucket_timestamp().
        tokens: Parsed composition.
        prices: Aggregated price map keyed by asset id.
        created_at: Unix seconds; defaults to now.

    Returns:
        SnapshotRecord with confidence classified from missing-price counts.
    """
    if created_at is None:
        created_at = int(time.time())

    if not tokens:
        return _failed(strategy_id, ts_bucket, "no_tokens", created_at)

    # Scale by the largest weight first; the raw sum of finite weights can overflow
    max_weight = max(t.weight for t in tokens)
    if max_weight <= 0:
        return _failed(strategy_id, ts_bucket, "zero_total_weight", created_at)
    total_weight = sum(t.weight / max_weight for t in tokens)

    weights: dict[str, float] = {}
    snapshot_prices: dict[str, float] = {}
    sources: dict[str, str] = {}
    missing: list[str] = []
    index_price = 0.0

    for token in tokens:
        normalized = token.weight / max_weight / total_weight
        key = token.asset_id or token.symbol
        weights[key] = weights.get(key, 0.0) + normalized

        if token.asset_id is None:
            snapshot_prices[key] = 0.0
            sources[key] = SOURCE_NO_MINT
            missing.append(token.symbol)
            continue

        result = prices.get(token.asset_id) or PriceResult(0.0, SOURCE_NONE)
        snapshot_prices[key] = result.price_usd
        sources[key] = result.source
        if not result.has_price:
            missing.append(token.symbol)
            continue

        index_price += normalized * result.price_usd

    return SnapshotRecord(
        strategy_id=strategy_id,
        ts_bucket_utc=ts_bucket,
        index_price=index_price,
        prices=snapshot_prices,
        weights=weights,
        sources=sources,
        confidence=classify_confidence(len(missing), len(tokens)),
        metadata={"missing_symbols": missing} if missing else None,
        created_at=created_at,
    )


def _failed(
    strategy_id: str, ts_bucket: int, error: str, created_at: int
) -> SnapshotRecord:
    return SnapshotRecord(
        strategy_id=strategy_id,
        ts_bucket_utc=ts_bucket,
        index_price=0.0,
        prices={},
        weights={},
        sources={},
        confidence=Confidence.FAIL,
        metadata={"error": error},
        created_at=created_at,
    )
