"""Strategy index-price snapshot pipeline -- one run per scheduled trigger.

Each run:
  1. LOAD: Read every strategy from the store
  2. PARSE: Extract each strategy's weighted tokens and resolve mints
  3. PRICE: Fetch all distinct mints once through the provider chain
  4. BUILD: Compute one snapshot (and baseline candidate) per strategy
  5. PERSIST: Upsert snapshots, insert-if-absent baselines, in bounded batches

Nothing here raises out of run_once(): store unavailability and rejected
batches are logged and reported on the returned RunSummary so the next
scheduled run starts cleanly.
"""

import time
from collections import Counter

import structlog

from snapshotter.data.store import SnapshotStore
from snapshotter.exceptions import PersistenceError, StoreUnavailableError
from snapshotter.logging import get_logger
from snapshotter.models import BaselineRecord, RunSummary, SnapshotRecord, TokenEntry
from snapshotter.pricing.aggregator import PriceAggregator
from snapshotter.snapshot.builder import BUCKET_SECONDS, bucket_timestamp, build_snapshot
from snapshotter.tokens.composition import parse_tokens
from snapshotter.tokens.resolver import TokenResolver

logger = get_logger(__name__)


class SnapshotPipeline:
    """Wires the resolver, aggregator and store into a single run.

    Args:
        store: Strategy source and snapshot/baseline sink.
        resolver: Token resolver with the curated symbol table injected.
        aggregator: Ordered provider chain.
        bucket_seconds: Width of a snapshot bucket.
    """

    def __init__(
        self,
        store: SnapshotStore,
        resolver: TokenResolver,
        aggregator: PriceAggregator,
        bucket_seconds: int = BUCKET_SECONDS,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._aggregator = aggregator
        self._bucket_seconds = bucket_seconds

    async def run_once(self, now: float | None = None) -> RunSummary:
        """Execute one snapshot run for the bucket containing ``now``."""
        start = time.monotonic()
        if now is None:
            now = time.time()
        ts_bucket = bucket_timestamp(now, self._bucket_seconds)
        summary = RunSummary(ts_bucket_utc=ts_bucket)

        with structlog.contextvars.bound_contextvars(ts_bucket=ts_bucket):
            await self._run(summary, created_at=int(now))
            summary.elapsed_seconds = round(time.monotonic() - start, 3)
            summary.finished_at = time.time()
            logger.info(
                "snapshot_run_complete",
                status=summary.status,
                strategies=summary.strategies,
                assets=summary.assets,
                confidence=summary.confidence_counts,
                batches=summary.batches,
                failed_batches=summary.failed_batches,
                elapsed_seconds=summary.elapsed_seconds,
            )
        return summary

    async def _run(self, summary: RunSummary, created_at: int) -> None:
        # 1. LOAD
        try:
            rows = await self._store.load_strategies()
        except StoreUnavailableError as e:
            logger.error("strategy_store_unavailable", error=str(e))
            summary.status = "store_unavailable"
            return

        if not rows:
            logger.info("no_strategies_found")
            summary.status = "no_strategies"
            return

        # 2. PARSE
        compositions: dict[str, list[TokenEntry]] = {}
        asset_ids: set[str] = set()
        for row in rows:
            tokens = parse_tokens(row, self._resolver)
            compositions[row.id] = tokens
            asset_ids.update(t.asset_id for t in tokens if t.asset_id)

        summary.strategies = len(rows)
        summary.assets = len(asset_ids)

        # 3. PRICE
        prices = await self._aggregator.fetch_prices(asset_ids)

        # 4. BUILD
        snapshots: list[SnapshotRecord] = []
        baselines: list[BaselineRecord] = []
        for row in rows:
            snapshot = build_snapshot(
                row.id,
                summary.ts_bucket_utc,
                compositions[row.id],
                prices,
                created_at=created_at,
            )
            snapshots.append(snapshot)
            baselines.append(BaselineRecord.from_snapshot(snapshot))

        summary.confidence_counts = dict(
            Counter(s.confidence.value for s in snapshots)
        )

        # 5. PERSIST
        try:
            result = await self._store.persist(snapshots, baselines)
        except PersistenceError as e:
            logger.error(
                "snapshot_persist_failed",
                failed_batches=e.failed_batches,
                total_batches=e.total_batches,
            )
            summary.status = "persist_failed"
            summary.failed_batches = e.failed_batches
            summary.batches = e.total_batches
            return

        summary.statements = result.statements
        summary.batches = result.batches
