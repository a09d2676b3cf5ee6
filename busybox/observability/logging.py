from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from busybox.errors import StartupError


_CONFIGURED = False


def _drop_exc_info(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.pop("exc_info", None)
    event_dict.pop("stack_info", None)
    return event_dict


def resolve_level(level: str | int) -> int:
    """Map a stdlib level name (or number) to its numeric value."""

    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise StartupError(f"unknown log level {level!r}")
    return resolved


def configure_logging(
    level: str | int = logging.DEBUG,
    *,
    json_logs: bool = False,
    stacktrace: bool = True,
) -> None:
    """Configure structlog + stdlib logging.

    ``json_logs`` selects JSON output, otherwise records are rendered for a
    terminal. Safe to call multiple times (no-op after first call).
    """

    global _CONFIGURED
    numeric_level = resolve_level(level)
    if _CONFIGURED:
        return

    exc_processors: list[Any] = (
        [structlog.processors.StackInfoRenderer(), structlog.processors.format_exc_info]
        if stacktrace
        else [_drop_exc_info]
    )
    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        *exc_processors,
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer: Any = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=pre_chain,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(numeric_level)

    # Keep uvicorn's own loggers consistent with our handler.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers = [handler]
        logger.propagate = False
        logger.setLevel(numeric_level)

    _CONFIGURED = True
