"""
Configures structured logging for ReadCore using structlog.

Extraction and artifact generation run inside a :func:`request_context` that
carries a correlation id together with the page URL or content fingerprint.
Every record logged inside it, whether from structlog or the standard library,
gets those fields.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, List
from uuid import uuid4

import structlog
from structlog.contextvars import bound_contextvars, get_contextvars

if TYPE_CHECKING:
    from readcore.config.config import MonitoringConfig

REQUEST_CONTEXT_KEYS = ("correlation_id", "url", "fingerprint")

# Libraries that log every statement at DEBUG
QUIET_LOGGERS = ("aiosqlite",)

# --- Request Context ---


def create_correlation_id() -> str:
    return uuid4().hex[:16]


@contextmanager
def request_context(**fields: Any) -> Iterator[str]:
    """
    Bind request fields (``url``, ``fingerprint``) for the duration of the block.

    A new correlation id is created unless one is already bound, so an
    extraction running inside an artifact request shares the request's id.
    ``None`` values are not bound.
    """
    correlation_id = get_contextvars().get("correlation_id") or create_correlation_id()
    values = {key: value for key, value in fields.items() if value is not None}
    with bound_contextvars(correlation_id=correlation_id, **values):
        yield correlation_id


# --- Custom Processors ---


def add_request_context(logger: logging.Logger, method_name: str, event_dict: Dict[Any, Any]) -> Dict[Any, Any]:
    """
    Adds the bound request fields to the log record.
    Fields passed explicitly to the log call win.
    """
    ctx = get_contextvars()
    for key in REQUEST_CONTEXT_KEYS:
        if key in ctx:
            event_dict.setdefault(key, ctx[key])
    return event_dict


class TruncateLongValues:
    """Shortens long string fields such as text excerpts and selectors."""

    def __init__(self, max_length: int) -> None:
        self.max_length = max_length

    def __call__(self, logger: logging.Logger, method_name: str, event_dict: Dict[Any, Any]) -> Dict[Any, Any]:
        for key, value in event_dict.items():
            if key in ("event", "exception") or not isinstance(value, str):
                continue
            if len(value) > self.max_length:
                event_dict[key] = value[: self.max_length - 3] + "..."
        return event_dict


# --- Configuration ---


def configure_logging(config: MonitoringConfig) -> None:
    """
    Sets up structlog to handle all logging for the application.

    Output is JSON lines when ``config.log_file`` is set and readable console
    output otherwise.
    """
    shared_processors: List[Any] = [
        add_request_context,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        TruncateLongValues(config.log_max_value_length),
    ]

    log_renderer: Any
    if config.log_file:
        log_renderer = structlog.processors.JSONRenderer()
        handler: logging.Handler = logging.FileHandler(config.log_file, encoding="utf-8")
    else:
        log_renderer = structlog.dev.ConsoleRenderer(colors=False)
        handler = logging.StreamHandler(sys.stdout)

    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, log_renderer],
            foreign_pre_chain=shared_processors,
        )
    )

    logging.basicConfig(
        format="%(message)s",
        level=config.log_level.upper(),
        handlers=[handler],
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, logging.getLogger().level))

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("readcore.logging")
    logger.info("Logging configured", level=config.log_level, output=config.log_file or "console")
