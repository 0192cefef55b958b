"""Structured logging for the price service.

All modules log through structlog event names (`metal_synced`,
`snapshot_write_failed`, ...) with keyword fields. setup_logging routes those
events through the stdlib root logger, so library loggers (uvicorn, httpx)
share one handler and one output format.

Output format comes from the LOG_FORMAT environment variable: `json` for
scheduled runs and servers, anything else for a terminal.
"""

import logging
import os
from contextlib import AbstractContextManager

import structlog

# Libraries that log every request at INFO; price syncs make a handful per run.
_QUIET_LOGGERS = ("httpx", "httpcore", "aiosqlite")

_PRE_CHAIN: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_level: str = "INFO") -> None:
    """Install one stderr handler on the root logger and point structlog at it.

    Safe to call more than once: earlier root handlers are replaced.
    """
    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
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
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def sync_context(**fields: str) -> AbstractContextManager[None]:
    """Context manager tagging every event logged inside it with `fields`.

    Used around a sync run so per-metal events carry the run's source.
    """
    return structlog.contextvars.bound_contextvars(**fields)
