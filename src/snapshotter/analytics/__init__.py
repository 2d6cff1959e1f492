"""Performance analytics over persisted snapshots."""

from snapshotter.analytics.performance import StrategyPerformance, compute_performance, max_drawdown_pct

__all__ = ["StrategyPerformance", "compute_performance", "max_drawdown_pct"]
