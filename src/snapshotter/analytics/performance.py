"""Performance-since-deployment calculations.

Pure functions over BaselineRecord and SnapshotRecord. A baseline with a zero
price (the strategy's first run could not price anything) and FAIL snapshots
carry no usable value, so they yield None rather than a misleading -100%.
"""

from dataclasses import dataclass

from snapshotter.models import BaselineRecord, Confidence, SnapshotRecord


@dataclass
class StrategyPerformance:
    """Change of a strategy's index price since its baseline."""

    strategy_id: str
    baseline_price: float | None
    baseline_ts_bucket_utc: int | None
    latest_price: float | None
    latest_ts_bucket_utc: int | None
    latest_confidence: Confidence | None
    change_pct: float | None


def compute_performance(
    strategy_id: str,
    baseline: BaselineRecord | None,
    latest: SnapshotRecord | None,
) -> StrategyPerformance:
    """Compute percent change from the baseline price to the latest snapshot.

    Args:
        strategy_id: Strategy identifier.
        baseline: Deployment baseline, or None if the strategy was never snapshotted.
        latest: Most recent snapshot, or None.

    Returns:
        StrategyPerformance with change_pct None when either side is unusable.
    """
    change_pct = None
    if (
        baseline is not None
        and latest is not None
        and baseline.baseline_price > 0
        and latest.confidence != Confidence.FAIL
    ):
        change_pct = (latest.index_price - baseline.baseline_price) / baseline.baseline_price * 100

    return StrategyPerformance(
        strategy_id=strategy_id,
        baseline_price=baseline.baseline_price if baseline else None,
        baseline_ts_bucket_utc=baseline.ts_bucket_utc if baseline else None,
        latest_price=latest.index_price if latest else None,
        latest_ts_bucket_utc=latest.ts_bucket_utc if latest else None,
        latest_confidence=latest.confidence if latest else None,
        change_pct=change_pct,
    )


def max_drawdown_pct(snapshots: list[SnapshotRecord]) -> float | None:
    """Largest peak-to-trough decline in percent across non-FAIL snapshots.

    Expects snapshots ordered oldest first. Returns None with fewer than two
    usable points.
    """
    prices = [
        s.index_price
        for s in snapshots
        if s.confidence != Confidence.FAIL and s.index_price > 0
    ]
    if len(prices) < 2:
        return None

    peak = prices[0]
    worst = 0.0
    for price in prices[1:]:
        peak = max(peak, price)
        worst = max(worst, (peak - price) / peak * 100)
    return worst
