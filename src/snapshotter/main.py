"""Entry point for the strategy snapshotter.

Wires all components together and either performs a single run (for an
external cron trigger, SNAPSHOT_RUN_ONCE=true) or starts the scheduled
runner, optionally alongside the read API. When the API is enabled (default)
the runner and API share one asyncio event loop via uvicorn's programmatic
API and FastAPI's lifespan context manager.

Handles SIGINT/SIGTERM for graceful shutdown.

Component wiring order (in _build_components):
1. SnapshotDatabase + SnapshotStore
2. Symbol table + TokenResolver
3. Shared httpx client + price providers (DexScreener, then Jupiter)
4. PriceAggregator
5. SnapshotPipeline
6. SnapshotRunner
"""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import Any

import httpx
import uvicorn
from fastapi import FastAPI

from snapshotter.config import AppSettings
from snapshotter.data.database import SnapshotDatabase
from snapshotter.data.store import SnapshotStore
from snapshotter.logging import get_logger, setup_logging
from snapshotter.pipeline import SnapshotPipeline
from snapshotter.pricing.aggregator import PriceAggregator
from snapshotter.pricing.dexscreener import DexScreenerProvider
from snapshotter.pricing.jupiter import JupiterProvider
from snapshotter.runner import SnapshotRunner
from snapshotter.tokens.registry import build_symbol_table
from snapshotter.tokens.resolver import TokenResolver


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all components from settings.

    Does NOT open the database or the HTTP client's connections -- that
    happens in the lifespan (API mode) or run() (headless mode).

    Returns:
        Dict mapping component names to instances.
    """
    database = SnapshotDatabase(settings.store.db_path)
    store = SnapshotStore(database, batch_limit=settings.snapshot.batch_limit)

    resolver = TokenResolver(
        build_symbol_table(),
        min_address_length=settings.snapshot.min_address_length,
    )

    http_client = httpx.AsyncClient(
        timeout=settings.providers.request_timeout_seconds,
        headers={"User-Agent": settings.providers.user_agent},
    )
    providers = [
        DexScreenerProvider(http_client, settings.providers),
        JupiterProvider(http_client, settings.providers),
    ]
    aggregator = PriceAggregator(
        providers, request_timeout=settings.providers.request_timeout_seconds
    )

    pipeline = SnapshotPipeline(
        store=store,
        resolver=resolver,
        aggregator=aggregator,
        bucket_seconds=settings.snapshot.bucket_seconds,
    )
    runner = SnapshotRunner(pipeline, interval_seconds=settings.snapshot.interval_seconds)

    return {
        "database": database,
        "store": store,
        "resolver": resolver,
        "http_client": http_client,
        "aggregator": aggregator,
        "pipeline": pipeline,
        "runner": runner,
    }


async def _close_components(components: dict[str, Any]) -> None:
    await components["http_client"].aclose()
    await components["database"].close()


def _setup_signal_handlers(runner: SnapshotRunner) -> None:
    """Register SIGINT/SIGTERM to stop the runner after its current cycle.

    Must be called after the asyncio event loop is running.
    """
    logger = get_logger("snapshotter.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        asyncio.create_task(runner.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store, start the runner in the background, and tear down on exit."""
    logger = get_logger("snapshotter.main")
    components = app.state.components

    await components["database"].connect()
    app.state.store = components["store"]
    app.state.runner = components["runner"]

    runner_task = asyncio.create_task(components["runner"].start())
    logger.info("lifespan_started")

    yield

    await components["runner"].stop()
    runner_task.cancel()
    try:
        await runner_task
    except asyncio.CancelledError:
        pass

    await _close_components(components)
    logger.info("snapshotter_stopped")


async def run() -> None:
    """Run the snapshotter.

    - SNAPSHOT_RUN_ONCE=true: one pipeline run, then exit.
    - API_ENABLED=true (default): runner + read API under uvicorn.
    - Otherwise: runner only.
    """
    settings = AppSettings()

    setup_logging(settings.log_level)
    logger = get_logger("snapshotter.main")

    components = _build_components(settings)

    if settings.snapshot.run_once:
        try:
            await components["database"].connect()
            await components["pipeline"].run_once()
        finally:
            await _close_components(components)
        return

    if settings.api.enabled:
        from snapshotter.api.app import create_api_app

        app = create_api_app(lifespan=lifespan)
        app.state.components = components

        logger.info(
            "starting_with_api",
            host=settings.api.host,
            port=settings.api.port,
            interval_seconds=settings.snapshot.interval_seconds,
        )

        config = uvicorn.Config(
            app,
            host=settings.api.host,
            port=settings.api.port,
            log_level="warning",
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        _setup_signal_handlers(components["runner"])

        logger.info(
            "starting_without_api",
            interval_seconds=settings.snapshot.interval_seconds,
            batch_limit=settings.snapshot.batch_limit,
        )

        try:
            await components["database"].connect()
            await components["runner"].start()
        finally:
            await _close_components(components)
            logger.info("snapshotter_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
