"""FastAPI read API application factory."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from snapshotter.api import routes


def create_api_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the read API application.

    Route handlers read ``app.state.store`` (SnapshotStore) and
    ``app.state.runner`` (SnapshotRunner, optional); main.py sets both.

    Args:
        lifespan: Optional async context manager for application lifespan events.
    """
    app = FastAPI(
        title="Strategy Snapshot API",
        lifespan=lifespan,
    )
    app.state.store = None
    app.state.runner = None

    app.include_router(routes.router, prefix="/api")

    return app
