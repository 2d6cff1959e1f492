"""Tests for performance-since-deployment and drawdown calculations."""

import pytest

from snapshotter.analytics.performance import compute_performance, max_drawdown_pct
from snapshotter.models import BaselineRecord, Confidence, SnapshotRecord


def _snapshot(index_price: float, confidence: Confidence = Confidence.OK, ts: int = 600):
    return SnapshotRecord(
        strategy_id="S1",
        ts_bucket_utc=ts,
        index_price=index_price,
        prices={},
        weights={},
        sources={},
        confidence=confidence,
        created_at=ts,
    )


def _baseline(price: float, confidence: Confidence = Confidence.OK) -> BaselineRecord:
    return BaselineRecord("S1", 300, price, confidence, created_at=300)


class TestComputePerformance:
    def test_gain(self) -> None:
        perf = compute_performance("S1", _baseline(90.4), _snapshot(99.44))
        assert perf.change_pct == pytest.approx(10.0)
        assert perf.baseline_ts_bucket_utc == 300
        assert perf.latest_ts_bucket_utc == 600
        assert perf.latest_confidence == Confidence.OK

    def test_partial_latest_still_counts(self) -> None:
        perf = compute_performance("S1", _baseline(100.0), _snapshot(80.0, Confidence.PARTIAL))
        assert perf.change_pct == pytest.approx(-20.0)

    def test_zero_baseline_has_no_change(self) -> None:
        perf = compute_performance("S1", _baseline(0.0, Confidence.FAIL), _snapshot(50.0))
        assert perf.change_pct is None
        assert perf.baseline_price == 0.0

    def test_failed_latest_has_no_change(self) -> None:
        perf = compute_performance("S1", _baseline(100.0), _snapshot(0.0, Confidence.FAIL))
        assert perf.change_pct is None

    def test_missing_sides(self) -> None:
        perf = compute_performance("S1", None, None)
        assert perf.change_pct is None
        assert perf.baseline_price is None
        assert perf.latest_price is None
        assert perf.latest_confidence is None


class TestMaxDrawdown:
    def test_peak_to_trough(self) -> None:
        prices = [100.0, 120.0, 90.0, 130.0, 117.0]
        assert max_drawdown_pct([_snapshot(p) for p in prices]) == pytest.approx(25.0)

    def test_monotonic_rise(self) -> None:
        assert max_drawdown_pct([_snapshot(p) for p in (1.0, 2.0, 3.0)]) == 0.0

    def test_failed_snapshots_skipped(self) -> None:
        snapshots = [
            _snapshot(100.0),
            _snapshot(0.0, Confidence.FAIL),
            _snapshot(95.0),
        ]
        assert max_drawdown_pct(snapshots) == pytest.approx(5.0)

    def test_too_few_points(self) -> None:
        assert max_drawdown_pct([]) is None
        assert max_drawdown_pct([_snapshot(10.0), _snapshot(0.0, Confidence.FAIL)]) is None
