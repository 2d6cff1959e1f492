"""Typed SQLite read/write abstraction for strategy snapshots and baselines.

All SQL is isolated behind SnapshotStore. Writes are idempotent by design:
snapshots upsert on (strategy_id, ts_bucket_utc) and baselines insert only if
absent, so repeated or overlapping runs need no lock.
"""

import json
from collections.abc import Sequence
from typing import Any

import aiosqlite

from snapshotter.data.database import SnapshotDatabase
from snapshotter.exceptions import PersistenceError, StoreUnavailableError
from snapshotter.logging import get_logger
from snapshotter.models import (
    BaselineRecord,
    Confidence,
    PersistResult,
    SnapshotRecord,
    StrategyRow,
)

logger = get_logger(__name__)

Statement = tuple[str, tuple[Any, ...]]

_UPSERT_SNAPSHOT_SQL = (
    "INSERT OR REPLACE INTO strategy_price_snapshots "
    "(strategy_id, ts_bucket_utc, index_price, prices_json, weights_json, "
    "source_json, confidence, version, metadata_json, created_at) "
    "VALUES (?, ?, ?, ?, ?, ?, ?, 1, ?, ?)"
)

_INSERT_BASELINE_SQL = (
    "INSERT OR IGNORE INTO strategy_deployment_baseline "
    "(strategy_id, baseline_ts_bucket_utc, baseline_price, baseline_confidence, created_at) "
    "VALUES (?, ?, ?, ?, ?)"
)

_SNAPSHOT_COLUMNS = (
    "strategy_id, ts_bucket_utc, index_price, prices_json, weights_json, "
    "source_json, confidence, metadata_json, created_at"
)


class SnapshotStore:
    """Async SQLite store for strategy snapshots and deployment baselines.

    Usage:
        async with SnapshotDatabase("data/axis.db") as database:
            store = SnapshotStore(database, batch_limit=50)
            strategies = await store.load_strategies()
    """

    def __init__(self, database: SnapshotDatabase, batch_limit: int = 50) -> None:
        self._database = database
        self._batch_limit = max(1, batch_limit)

    # ──────────────────────────────────────────────
    # Strategy input
    # ──────────────────────────────────────────────

    async def load_strategies(self) -> list[StrategyRow]:
        """Load every strategy's id and raw composition payloads.

        Raises:
            StoreUnavailableError: if the strategies table cannot be read.
        """
        try:
            cursor = await self._database.db.execute(
                "SELECT id, composition, config FROM strategies ORDER BY id"
            )
            rows = await cursor.fetchall()
        except (aiosqlite.Error, RuntimeError) as e:
            raise StoreUnavailableError(f"cannot load strategies: {e}") from e
        return [StrategyRow(id=row[0], composition=row[1], config=row[2]) for row in rows]

    # ──────────────────────────────────────────────
    # Write methods
    # ──────────────────────────────────────────────

    async def persist(
        self,
        snapshots: Sequence[SnapshotRecord],
        baselines: Sequence[BaselineRecord],
    ) -> PersistResult:
        """Write snapshots (upsert) and baseline candidates (insert-if-absent).

        Statements are interleaved per strategy and committed in chunks of at
        most ``batch_limit``, one transaction per chunk. A failing chunk is
        rolled back and logged; later chunks are still attempted and earlier
        ones stay committed.

        Raises:
            PersistenceError: if any chunk failed, after all were attempted.
        """
        statements = _interleave(
            [_snapshot_statement(s) for s in snapshots],
            [_baseline_statement(b) for b in baselines],
        )
        chunks = [
            statements[i : i + self._batch_limit]
            for i in range(0, len(statements), self._batch_limit)
        ]

        failed: list[int] = []
        for batch_index, chunk in enumerate(chunks):
            try:
                await self._execute_batch(chunk)
            except aiosqlite.Error as e:
                failed.append(batch_index)
                logger.error(
                    "persist_batch_failed",
                    batch_index=batch_index,
                    batch_size=len(chunk),
                    total_batches=len(chunks),
                    error=str(e),
                )

        logger.debug(
            "persist_complete",
            statements=len(statements),
            batches=len(chunks),
            failed=len(failed),
        )
        if failed:
            raise PersistenceError(failed, len(chunks))
        return PersistResult(statements=len(statements), batches=len(chunks))

    async def _execute_batch(self, chunk: list[Statement]) -> None:
        db = self._database.db
        try:
            for sql, params in chunk:
                await db.execute(sql, params)
            await db.commit()
        except aiosqlite.Error:
            await db.rollback()
            raise

    # ──────────────────────────────────────────────
    # Read methods
    # ──────────────────────────────────────────────

    async def get_snapshots(
        self,
        strategy_id: str,
        since: int | None = None,
        limit: int = 288,
    ) -> list[SnapshotRecord]:
        """Return the most recent ``limit`` snapshots, oldest first.

        288 five-minute buckets cover one day.
        """
        conditions = ["strategy_id = ?"]
        params: list = [strategy_id]
        if since is not None:
            conditions.append("ts_bucket_utc >= ?")
            params.append(since)
        params.append(limit)

        where = " AND ".join(conditions)
        cursor = await self._database.db.execute(
            f"SELECT {_SNAPSHOT_COLUMNS} FROM strategy_price_snapshots "
            f"WHERE {where} ORDER BY ts_bucket_utc DESC LIMIT ?",
            params,
        )
        rows = await cursor.fetchall()
        return [_row_to_snapshot(row) for row in reversed(rows)]

    async def get_latest_snapshot(self, strategy_id: str) -> SnapshotRecord | None:
        cursor = await self._database.db.execute(
            f"SELECT {_SNAPSHOT_COLUMNS} FROM strategy_price_snapshots "
            "WHERE strategy_id = ? ORDER BY ts_bucket_utc DESC LIMIT 1",
            (strategy_id,),
        )
        row = await cursor.fetchone()
        return _row_to_snapshot(row) if row is not None else None

    async def get_baseline(self, strategy_id: str) -> BaselineRecord | None:
        cursor = await self._database.db.execute(
            "SELECT strategy_id, baseline_ts_bucket_utc, baseline_price, "
            "baseline_confidence, created_at "
            "FROM strategy_deployment_baseline WHERE strategy_id = ?",
            (strategy_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return BaselineRecord(
            strategy_id=row[0],
            ts_bucket_utc=row[1],
            baseline_price=row[2],
            baseline_confidence=Confidence(row[3]),
            created_at=row[4],
        )


def _interleave(
    snapshot_stmts: list[Statement], baseline_stmts: list[Statement]
) -> list[Statement]:
    """Pair each strategy's snapshot with its baseline so both land close together."""
    statements: list[Statement] = []
    for i in range(max(len(snapshot_stmts), len(baseline_stmts))):
        if i < len(snapshot_stmts):
            statements.append(snapshot_stmts[i])
        if i < len(baseline_stmts):
            statements.append(baseline_stmts[i])
    return statements


def _snapshot_statement(snapshot: SnapshotRecord) -> Statement:
    return (
        _UPSERT_SNAPSHOT_SQL,
        (
            snapshot.strategy_id,
            snapshot.ts_bucket_utc,
            snapshot.index_price,
            json.dumps(snapshot.prices),
            json.dumps(snapshot.weights),
            json.dumps(snapshot.sources),
            snapshot.confidence.value,
            json.dumps(snapshot.metadata) if snapshot.metadata else None,
            snapshot.created_at,
        ),
    )


def _baseline_statement(baseline: BaselineRecord) -> Statement:
    return (
        _INSERT_BASELINE_SQL,
        (
            baseline.strategy_id,
            baseline.ts_bucket_utc,
            baseline.baseline_price,
            baseline.baseline_confidence.value,
            baseline.created_at,
        ),
    )


def _row_to_snapshot(row: Any) -> SnapshotRecord:
    return SnapshotRecord(
        strategy_id=row[0],
        ts_bucket_utc=row[1],
        index_price=row[2],
        prices=json.loads(row[3]),
        weights=json.loads(row[4]),
        sources=json.loads(row[5]),
        confidence=Confidence(row[6]),
        metadata=json.loads(row[7]) if row[7] else None,
        created_at=row[8],
    )
