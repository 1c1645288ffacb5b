"""FastAPI application factory for the synthstream server."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from synthstream import __version__
from synthstream.config import AppSettings
from synthstream.server.routes import api, ws
from synthstream.server.session import FeedFactory
from synthstream.upstream.feed import KlineFeed


def create_app(
    settings: AppSettings | None = None,
    feed_factory: FeedFactory | None = None,
    lifespan: Any = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings; loaded from the environment if omitted.
        feed_factory: Builds one upstream feed per session. Defaults to a
            KlineFeed on settings.upstream; tests inject fakes here.
        lifespan: Optional async context manager for startup/shutdown.

    Returns:
        Configured FastAPI application with the WebSocket and HTTP routes.
    """
    settings = settings or AppSettings()

    app = FastAPI(
        title="synthstream",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.feed_factory = feed_factory or (lambda: KlineFeed(settings.upstream))

    app.include_router(api.router)
    app.include_router(ws.router)

    return app
