"""Shared test fixtures for the strategy snapshotter."""

import pytest
import pytest_asyncio

from snapshotter.config import AppSettings, ProviderSettings, SnapshotSettings, StoreSettings
from snapshotter.data.database import SnapshotDatabase
from snapshotter.data.store import SnapshotStore
from snapshotter.tokens.registry import build_symbol_table
from snapshotter.tokens.resolver import TokenResolver


@pytest.fixture
def mock_settings(tmp_path) -> AppSettings:
    """Return AppSettings with test defaults (temp database, short timeouts)."""
    return AppSettings(
        log_level="DEBUG",
        providers=ProviderSettings(request_timeout_seconds=1.0),
        snapshot=SnapshotSettings(batch_limit=50),
        store=StoreSettings(db_path=str(tmp_path / "test.db")),
    )


@pytest.fixture
def resolver() -> TokenResolver:
    """Resolver over the curated symbol table."""
    return TokenResolver(build_symbol_table())


@pytest_asyncio.fixture
async def database(tmp_path):
    """Connected SnapshotDatabase on a temp file."""
    async with SnapshotDatabase(str(tmp_path / "snapshots.db")) as db:
        yield db


@pytest_asyncio.fixture
async def store(database: SnapshotDatabase) -> SnapshotStore:
    return SnapshotStore(database, batch_limit=50)


@pytest.fixture
def seed_strategy(database: SnapshotDatabase):
    """Async helper that seeds a row in the externally-owned strategies table."""

    async def _seed(
        strategy_id: str, composition: str | None = None, config: str | None = None
    ) -> None:
        await database.db.execute(
            "INSERT OR REPLACE INTO strategies (id, composition, config) VALUES (?, ?, ?)",
            (strategy_id, composition, config),
        )
        await database.db.commit()

    return _seed
