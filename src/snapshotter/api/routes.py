"""JSON endpoints: runner status, snapshot history, baseline and performance."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from snapshotter.analytics.performance import compute_performance, max_drawdown_pct
from snapshotter.models import BaselineRecord, SnapshotRecord

router = APIRouter()


def _snapshot_to_dict(snapshot: SnapshotRecord) -> dict:
    return {
        "strategy_id": snapshot.strategy_id,
        "ts_bucket_utc": snapshot.ts_bucket_utc,
        "index_price": snapshot.index_price,
        "prices": snapshot.prices,
        "weights": snapshot.weights,
        "sources": snapshot.sources,
        "confidence": snapshot.confidence.value,
        "metadata": snapshot.metadata,
        "created_at": snapshot.created_at,
    }


def _baseline_to_dict(baseline: BaselineRecord) -> dict:
    return {
        "strategy_id": baseline.strategy_id,
        "ts_bucket_utc": baseline.ts_bucket_utc,
        "baseline_price": baseline.baseline_price,
        "baseline_confidence": baseline.baseline_confidence.value,
        "created_at": baseline.created_at,
    }


@router.get("/status")
async def get_status(request: Request) -> JSONResponse:
    """Runner state and the summary of the last run."""
    runner = request.app.state.runner
    if runner is None:
        return JSONResponse(content={"running": False, "last_run": None})
    return JSONResponse(content=runner.get_status())


@router.get("/strategies/{strategy_id}/snapshots")
async def get_snapshots(
    request: Request,
    strategy_id: str,
    since: int | None = Query(default=None, ge=0),
    limit: int = Query(default=288, ge=1, le=2016),
) -> JSONResponse:
    """Snapshot history, oldest first. Defaults to the last day of buckets."""
    store = request.app.state.store
    snapshots = await store.get_snapshots(strategy_id, since=since, limit=limit)
    return JSONResponse(content=[_snapshot_to_dict(s) for s in snapshots])


@router.get("/strategies/{strategy_id}/baseline")
async def get_baseline(request: Request, strategy_id: str) -> JSONResponse:
    """The strategy's immutable deployment baseline."""
    store = request.app.state.store
    baseline = await store.get_baseline(strategy_id)
    if baseline is None:
        raise HTTPException(status_code=404, detail="baseline not found")
    return JSONResponse(content=_baseline_to_dict(baseline))


@router.get("/strategies/{strategy_id}/performance")
async def get_performance(request: Request, strategy_id: str) -> JSONResponse:
    """Change since deployment plus max drawdown over the last day."""
    store = request.app.state.store
    baseline = await store.get_baseline(strategy_id)
    recent = await store.get_snapshots(strategy_id)
    if baseline is None and not recent:
        raise HTTPException(status_code=404, detail="strategy has no snapshots")

    perf = compute_performance(strategy_id, baseline, recent[-1] if recent else None)
    return JSONResponse(
        content={
            "strategy_id": perf.strategy_id,
            "baseline_price": perf.baseline_price,
            "baseline_ts_bucket_utc": perf.baseline_ts_bucket_utc,
            "latest_price": perf.latest_price,
            "latest_ts_bucket_utc": perf.latest_ts_bucket_utc,
            "latest_confidence": perf.latest_confidence.value
            if perf.latest_confidence
            else None,
            "change_pct": perf.change_pct,
            "max_drawdown_pct": max_drawdown_pct(recent),
        }
    )
