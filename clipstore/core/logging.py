from __future__ import annotations

import logging
from typing import Any, Union

import structlog


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """Route structlog events through stdlib logging as one JSON object per line."""
    resolved = _resolve_level(level)
    logging.basicConfig(format="%(message)s", level=resolved)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(resolved),
        cache_logger_on_first_use=True,
    )


def get_logger(**initial_values: Any) -> structlog.BoundLogger:
    # Lazy proxy: binds against whatever configuration is active at first use.
    return structlog.get_logger(**initial_values)


__all__ = ["configure_logging", "get_logger"]
