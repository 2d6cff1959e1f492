"""Async SQLite database manager for strategy snapshots.

Uses aiosqlite for non-blocking database operations with WAL mode so the
read API can query while a snapshot run is writing.
"""

import os
from typing import Self

import aiosqlite

from snapshotter.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1

# strategies is owned by the strategy-management service; it is created here
# only so a fresh database is usable locally.
_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS strategies (
    id TEXT PRIMARY KEY,
    composition TEXT,
    config TEXT
);

CREATE TABLE IF NOT EXISTS strategy_price_snapshots (
    strategy_id TEXT NOT NULL,
    ts_bucket_utc INTEGER NOT NULL,
    index_price REAL NOT NULL,
    prices_json TEXT NOT NULL,
    weights_json TEXT NOT NULL,
    source_json TEXT NOT NULL,
    confidence TEXT NOT NULL,
    version INTEGER NOT NULL DEFAULT 1,
    metadata_json TEXT,
    created_at INTEGER NOT NULL,
    PRIMARY KEY (strategy_id, ts_bucket_utc)
);

CREATE TABLE IF NOT EXISTS strategy_deployment_baseline (
    strategy_id TEXT PRIMARY KEY,
    baseline_ts_bucket_utc INTEGER NOT NULL,
    baseline_price REAL NOT NULL,
    baseline_confidence TEXT NOT NULL,
    created_at INTEGER NOT NULL
);
"""

_CREATE_INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_snapshots_bucket
    ON strategy_price_snapshots(ts_bucket_utc);
"""


class SnapshotDatabase:
    """Async SQLite connection manager.

    Manages database lifecycle including schema creation, WAL mode
    configuration, and clean resource cleanup.

    Usage:
        async with SnapshotDatabase("/path/to/db") as db:
            await db.db.execute("SELECT ...")
    """

    def __init__(self, db_path: str = "data/axis.db") -> None:
        self._db_path = db_path
        self._connection: aiosqlite.Connection | None = None

    @property
    def db(self) -> aiosqlite.Connection:
        """Access the raw aiosqlite connection.

        Raises RuntimeError if not connected.
        """
        if self._connection is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    async def connect(self) -> None:
        """Open database connection, configure pragmas, and create schema.

        Creates the parent directory if it does not exist.
        """
        db_dir = os.path.dirname(self._db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._connection = await aiosqlite.connect(self._db_path)

        await self._connection.execute("PRAGMA journal_mode=WAL")
        await self._connection.execute("PRAGMA synchronous=NORMAL")

        await self._create_tables()
        await self._ensure_schema_version()

        logger.info("snapshot_db_connected", db_path=self._db_path)

    async def close(self) -> None:
        """Close the database connection if open."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("snapshot_db_closed", db_path=self._db_path)

    async def _create_tables(self) -> None:
        assert self._connection is not None
        await self._connection.executescript(_CREATE_TABLES_SQL)
        await self._connection.executescript(_CREATE_INDEXES_SQL)
        await self._connection.commit()

    async def _ensure_schema_version(self) -> None:
        assert self._connection is not None
        cursor = await self._connection.execute(
            "SELECT version FROM schema_version LIMIT 1"
        )
        row = await cursor.fetchone()
        if row is None:
            await self._connection.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
            await self._connection.commit()
            logger.info("schema_version_set", version=SCHEMA_VERSION)

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()
