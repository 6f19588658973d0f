"""Structured JSON logging using structlog."""

from __future__ import annotations

import logging
from typing import Any

import structlog

from src.core.config import get_settings


_CONFIGURED = False


def _add_default_context(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    del logger, method_name
    event_dict.setdefault("request_id", None)
    event_dict.setdefault("user_id", None)
    return event_dict


def _service_context_processor(service: str, env: str):
    def processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        del logger, method_name
        event_dict.setdefault("service", service)
        event_dict.setdefault("env", env)
        return event_dict

    return processor


def configure_logging() -> None:
    """Initialize structlog once for JSON-formatted logs."""

    global _CONFIGURED
    if _CONFIGURED:
        return

    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(level=level, format="%(message)s")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _add_default_context,
            _service_context_processor(settings.app_name, settings.env),
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.PrintLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )

    _CONFIGURED = True


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    configure_logging()
    if name:
        return structlog.get_logger(name).bind(logger=name)
    return structlog.get_logger()


def bind_request_context(request_id: str, user_id: str | None = None, **extra: Any) -> None:
    structlog.contextvars.bind_contextvars(request_id=request_id, user_id=user_id, **extra)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
