"""End-to-end tests for SnapshotPipeline against a real SQLite store."""

import json

import pytest

from snapshotter.data.database import SnapshotDatabase
from snapshotter.data.store import SnapshotStore
from snapshotter.exceptions import PersistenceError, StoreUnavailableError
from snapshotter.models import Confidence, PriceQuote
from snapshotter.pipeline import SnapshotPipeline
from snapshotter.pricing.aggregator import PriceAggregator
from snapshotter.pricing.provider import PriceProvider
from snapshotter.tokens.resolver import TokenResolver

SOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
JUP_MINT = "JUPyiwrYJFskUPiHa7hkeR8VUtkOp66YWug2yPnTxk3"

NOW = 1_700_000_123.0
BUCKET = 1_700_000_100


class StaticProvider(PriceProvider):
    """Provider serving a fixed quote table and recording requests."""

    def __init__(self, name: str, prices: dict[str, float]) -> None:
        self.name = name
        self.prices = prices
        self.requested: list[str] = []

    async def fetch(self, asset_ids: list[str]) -> dict[str, PriceQuote]:
        self.requested.extend(asset_ids)
        return {i: PriceQuote(self.prices[i]) for i in asset_ids if i in self.prices}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def primary() -> StaticProvider:
    return StaticProvider("dexscreener", {SOL_MINT: 150.0, USDC_MINT: 1.0})


@pytest.fixture
def secondary() -> StaticProvider:
    return StaticProvider("jupiter", {JUP_MINT: 0.8})


@pytest.fixture
def pipeline(
    store: SnapshotStore,
    resolver: TokenResolver,
    primary: StaticProvider,
    secondary: StaticProvider,
) -> SnapshotPipeline:
    return SnapshotPipeline(
        store=store,
        resolver=resolver,
        aggregator=PriceAggregator([primary, secondary]),
    )


def _composition(*items: tuple[str, float]) -> str:
    return json.dumps([{"symbol": s, "weight": w} for s, w in items])


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestRunOnce:
    @pytest.mark.asyncio
    async def test_prices_and_persists_every_strategy(
        self, pipeline: SnapshotPipeline, store: SnapshotStore, seed_strategy
    ) -> None:
        await seed_strategy("S1", composition=_composition(("SOL", 60), ("USDC", 40)))
        await seed_strategy("S2", composition=_composition(("UNKNOWNSYM", 100)))

        summary = await pipeline.run_once(now=NOW)

        assert summary.status == "ok"
        assert summary.ts_bucket_utc == BUCKET
        assert summary.strategies == 2
        assert summary.assets == 2
        assert summary.confidence_counts == {"OK": 1, "FAIL": 1}
        assert summary.statements == 4
        assert summary.batches == 1

        s1 = await store.get_latest_snapshot("S1")
        assert s1 is not None
        assert s1.index_price == pytest.approx(90.4)
        assert s1.confidence == Confidence.OK
        assert s1.ts_bucket_utc == BUCKET
        assert s1.created_at == int(NOW)

        s2 = await store.get_latest_snapshot("S2")
        assert s2 is not None
        assert s2.confidence == Confidence.FAIL
        assert s2.metadata == {"missing_symbols": ["UNKNOWNSYM"]}

        baseline = await store.get_baseline("S1")
        assert baseline is not None
        assert baseline.baseline_price == pytest.approx(90.4)

    @pytest.mark.asyncio
    async def test_each_asset_fetched_once_across_strategies(
        self,
        pipeline: SnapshotPipeline,
        primary: StaticProvider,
        secondary: StaticProvider,
        seed_strategy,
    ) -> None:
        await seed_strategy("A", composition=_composition(("SOL", 1), ("JUP", 1)))
        await seed_strategy("B", composition=_composition(("SOL", 2), ("USDC", 1)))

        summary = await pipeline.run_once(now=NOW)

        assert sorted(primary.requested) == sorted([SOL_MINT, USDC_MINT, JUP_MINT])
        assert secondary.requested == [JUP_MINT]
        assert summary.assets == 3

    @pytest.mark.asyncio
    async def test_fallback_source_recorded(
        self, pipeline: SnapshotPipeline, store: SnapshotStore, seed_strategy
    ) -> None:
        await seed_strategy("A", composition=_composition(("SOL", 1), ("JUP", 1)))

        await pipeline.run_once(now=NOW)

        snapshot = await store.get_latest_snapshot("A")
        assert snapshot is not None
        assert snapshot.sources == {SOL_MINT: "dexscreener", JUP_MINT: "jupiter"}
        assert snapshot.index_price == pytest.approx(75.4)

    @pytest.mark.asyncio
    async def test_config_payload_used_when_composition_missing(
        self, pipeline: SnapshotPipeline, store: SnapshotStore, seed_strategy
    ) -> None:
        await seed_strategy("C", composition="not json", config=_composition(("USDC", 1)))

        await pipeline.run_once(now=NOW)

        snapshot = await store.get_latest_snapshot("C")
        assert snapshot is not None
        assert snapshot.index_price == pytest.approx(1.0)
        assert snapshot.confidence == Confidence.OK

    @pytest.mark.asyncio
    async def test_strategy_without_tokens_still_snapshotted(
        self, pipeline: SnapshotPipeline, store: SnapshotStore, seed_strategy
    ) -> None:
        await seed_strategy("S3")

        summary = await pipeline.run_once(now=NOW)

        assert summary.status == "ok"
        snapshot = await store.get_latest_snapshot("S3")
        assert snapshot is not None
        assert snapshot.confidence == Confidence.FAIL
        assert snapshot.metadata == {"error": "no_tokens"}
        baseline = await store.get_baseline("S3")
        assert baseline is not None
        assert baseline.baseline_price == 0.0

    @pytest.mark.asyncio
    async def test_oversized_weight_does_not_abort_run(
        self, pipeline: SnapshotPipeline, store: SnapshotStore, seed_strategy
    ) -> None:
        oversized = '[{"symbol": "SOL", "weight": 1' + "0" * 400 + "}]"
        await seed_strategy("BAD", composition=oversized)
        await seed_strategy("GOOD", composition=_composition(("SOL", 1)))

        summary = await pipeline.run_once(now=NOW)

        assert summary.status == "ok"
        assert summary.confidence_counts == {"OK": 1, "FAIL": 1}
        good = await store.get_latest_snapshot("GOOD")
        assert good is not None
        assert good.index_price == pytest.approx(150.0)
        bad = await store.get_latest_snapshot("BAD")
        assert bad is not None
        assert bad.metadata == {"error": "no_tokens"}


class TestIdempotency:
    @pytest.mark.asyncio
    async def test_rerun_in_same_bucket_replaces_row(
        self,
        pipeline: SnapshotPipeline,
        primary: StaticProvider,
        store: SnapshotStore,
        database: SnapshotDatabase,
        seed_strategy,
    ) -> None:
        await seed_strategy("S1", composition=_composition(("SOL", 60), ("USDC", 40)))

        await pipeline.run_once(now=NOW)
        primary.prices[SOL_MINT] = 160.0
        await pipeline.run_once(now=NOW + 60)

        cursor = await database.db.execute("SELECT COUNT(*) FROM strategy_price_snapshots")
        assert (await cursor.fetchone())[0] == 1
        snapshot = await store.get_latest_snapshot("S1")
        assert snapshot is not None
        assert snapshot.index_price == pytest.approx(96.4)

        baseline = await store.get_baseline("S1")
        assert baseline is not None
        assert baseline.baseline_price == pytest.approx(90.4)

    @pytest.mark.asyncio
    async def test_baseline_survives_later_buckets(
        self,
        pipeline: SnapshotPipeline,
        primary: StaticProvider,
        store: SnapshotStore,
        seed_strategy,
    ) -> None:
        await seed_strategy("S1", composition=_composition(("SOL", 60), ("USDC", 40)))

        await pipeline.run_once(now=NOW)
        primary.prices[SOL_MINT] = 200.0
        await pipeline.run_once(now=NOW + 300)

        history = await store.get_snapshots("S1")
        assert [s.ts_bucket_utc for s in history] == [BUCKET, BUCKET + 300]
        baseline = await store.get_baseline("S1")
        assert baseline is not None
        assert baseline.ts_bucket_utc == BUCKET
        assert baseline.baseline_price == pytest.approx(90.4)

    @pytest.mark.asyncio
    async def test_failed_first_baseline_is_kept(
        self,
        pipeline: SnapshotPipeline,
        store: SnapshotStore,
        seed_strategy,
    ) -> None:
        await seed_strategy("S3")
        await pipeline.run_once(now=NOW)

        await seed_strategy("S3", composition=_composition(("USDC", 1)))
        await pipeline.run_once(now=NOW + 300)

        baseline = await store.get_baseline("S3")
        assert baseline is not None
        assert baseline.baseline_price == 0.0
        assert baseline.baseline_confidence == Confidence.FAIL


class TestDegradedRuns:
    @pytest.mark.asyncio
    async def test_no_strategies(self, pipeline: SnapshotPipeline, primary: StaticProvider) -> None:
        summary = await pipeline.run_once(now=NOW)
        assert summary.status == "no_strategies"
        assert summary.strategies == 0
        assert primary.requested == []

    @pytest.mark.asyncio
    async def test_store_unavailable(
        self, pipeline: SnapshotPipeline, store: SnapshotStore, monkeypatch
    ) -> None:
        async def _unavailable() -> list:
            raise StoreUnavailableError("no such table: strategies")

        monkeypatch.setattr(store, "load_strategies", _unavailable)

        summary = await pipeline.run_once(now=NOW)

        assert summary.status == "store_unavailable"
        assert summary.batches == 0

    @pytest.mark.asyncio
    async def test_persist_failure_reported(
        self, pipeline: SnapshotPipeline, store: SnapshotStore, seed_strategy, monkeypatch
    ) -> None:
        await seed_strategy("S1", composition=_composition(("SOL", 1)))

        async def _reject(snapshots, baselines):
            raise PersistenceError([0], 1)

        monkeypatch.setattr(store, "persist", _reject)

        summary = await pipeline.run_once(now=NOW)

        assert summary.status == "persist_failed"
        assert summary.failed_batches == [0]
        assert summary.batches == 1
        assert summary.confidence_counts == {"OK": 1}
