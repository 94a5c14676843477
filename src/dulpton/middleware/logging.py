"""structlog setup for the ledger service.

Ledger events carry timestamps (``unlock_at``, ``claimed_at``) and are
rendered as ISO strings so JSON log lines stay parseable.
"""

import logging
from datetime import datetime
from typing import Any

import structlog

from dulpton.config import Settings

# Libraries that log every statement at INFO.
_NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncio")


def _isoformat_datetimes(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:  # noqa: ANN401
    for key, value in event_dict.items():
        if isinstance(value, datetime):
            event_dict[key] = value.isoformat()
    return event_dict


def _service_context(settings: Settings) -> structlog.types.Processor:
    def add_service(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:  # noqa: ANN401
        event_dict.setdefault("service", "dulpton-api")
        event_dict.setdefault("environment", settings.environment)
        return event_dict

    return add_service


def setup_logging(settings: Settings) -> None:
    """Configure structlog (JSON in deployments, console locally) and stdlib levels."""
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            _service_context(settings),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _isoformat_datetimes,
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if settings.debug else max(level, logging.WARNING))
