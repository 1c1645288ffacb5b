"""Structured logging for synthstream.

Events are snake_case names with key-value fields, e.g.
``evaluation_round_degraded reason=... trigger=btcusdt``. A client session
binds its id and stream text once via bind_session(); every event logged
while that session's task runs (coordinator rounds, upstream feed frames)
carries them, so interleaved sessions stay separable in one log stream.
"""

import logging
import os
from contextlib import AbstractContextManager
from typing import Any

import structlog

# Third-party loggers that are chatty below INFO.
_QUIET_LOGGERS = ("websockets", "uvicorn.access")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_level: str = "INFO") -> None:
    """Configure structlog and send stdlib records (uvicorn, websockets) through it.

    LOG_FORMAT=json for log shippers; anything else renders for a terminal.
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(os.environ.get("LOG_FORMAT", "console").lower()),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(root.level, logging.INFO))


def bind_session(**fields: Any) -> AbstractContextManager[Any]:
    """Bind session fields (session_id, stream) to every event logged in this task."""
    return structlog.contextvars.bound_contextvars(**fields)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
