"""Entry point for the synthstream server.

Loads settings, configures logging, builds the FastAPI app and serves it
with uvicorn on a single asyncio event loop. uvicorn handles SIGINT/SIGTERM;
open sessions are cancelled on shutdown, which closes their upstream feeds.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from synthstream.config import AppSettings
from synthstream.logging import get_logger, setup_logging
from synthstream.server.app import create_app


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger = get_logger("synthstream.main")
    settings: AppSettings = app.state.settings
    logger.info(
        "synthstream_started",
        upstream=settings.upstream.url,
        zero_division=settings.evaluation.zero_division,
    )
    yield
    logger.info("synthstream_stopped")


async def run() -> None:
    """Run the synthstream server until interrupted."""
    settings = AppSettings()
    setup_logging(settings.log_level)
    logger = get_logger("synthstream.main")

    app = create_app(settings, lifespan=lifespan)

    logger.info("starting_server", host=settings.server.host, port=settings.server.port)

    config = uvicorn.Config(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # keep the structlog handler from setup_logging
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
