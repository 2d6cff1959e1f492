"""Scheduled snapshot runner -- triggers the pipeline on a wall-clock schedule.

Runs are aligned to interval boundaries (00:00, 00:05, ... for the default
300s) so every run lands early in a fresh bucket. Overlapping runs from other
processes are tolerated by the store's idempotent writes; within this process
the cycle lock keeps runs strictly sequential.
"""

import asyncio
import time

from snapshotter.logging import get_logger
from snapshotter.models import RunSummary
from snapshotter.pipeline import SnapshotPipeline

logger = get_logger(__name__)


def seconds_until_next_bucket(now: float, interval_seconds: int) -> float:
    """Seconds from ``now`` to the next multiple of ``interval_seconds``."""
    remainder = now % interval_seconds
    return interval_seconds - remainder


class SnapshotRunner:
    """Background loop invoking SnapshotPipeline.run_once() every interval.

    Args:
        pipeline: The snapshot pipeline.
        interval_seconds: Schedule period; also the alignment boundary.
    """

    def __init__(self, pipeline: SnapshotPipeline, interval_seconds: int = 300) -> None:
        self._pipeline = pipeline
        self._interval = interval_seconds
        self._running = False
        self._cycle_lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._last_summary: RunSummary | None = None
        self._runs = 0
        self._errors = 0

    async def start(self) -> None:
        """Run immediately, then on every interval boundary until stopped."""
        logger.info("snapshot_runner_starting", interval_seconds=self._interval)
        self._running = True
        self._stop_event.clear()
        try:
            await self._run_loop()
        finally:
            logger.info("snapshot_runner_stopped", runs=self._runs)

    async def stop(self) -> None:
        """Signal the loop to exit; an in-progress cycle finishes first."""
        logger.info("snapshot_runner_stopping")
        self._running = False
        self._stop_event.set()

    async def run_cycle(self) -> RunSummary | None:
        """Execute one pipeline run under the cycle lock.

        Returns None if the run raised unexpectedly; the error is logged and
        the schedule continues.
        """
        async with self._cycle_lock:
            try:
                summary = await self._pipeline.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._errors += 1
                logger.error("snapshot_cycle_error", error=str(e), exc_info=True)
                return None
            self._runs += 1
            self._last_summary = summary
            return summary

    async def _run_loop(self) -> None:
        while self._running:
            await self.run_cycle()
            if not self._running:
                break
            delay = seconds_until_next_bucket(time.time(), self._interval)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
            except TimeoutError:
                pass

    def get_status(self) -> dict:
        """Runner state and last run summary for the status endpoint."""
        summary = self._last_summary
        return {
            "running": self._running,
            "interval_seconds": self._interval,
            "runs": self._runs,
            "errors": self._errors,
            "last_run": None
            if summary is None
            else {
                "ts_bucket_utc": summary.ts_bucket_utc,
                "status": summary.status,
                "strategies": summary.strategies,
                "assets": summary.assets,
                "confidence": summary.confidence_counts,
                "batches": summary.batches,
                "failed_batches": summary.failed_batches,
                "elapsed_seconds": summary.elapsed_seconds,
                "finished_at": summary.finished_at,
            },
        }
