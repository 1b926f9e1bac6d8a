"""Logging configuration for foundryhub.

Provides consistent JSON structured logging across all modules.
Supports Request ID context for request tracing.

setup_logging() is called once by the entrypoint with values from
LoggingConfig; modules only ever call logging.getLogger(__name__).
"""

import logging
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, Literal

from pythonjsonlogger.json import JsonFormatter as BaseJsonFormatter

# Context variable for request ID (set by middleware)
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore", "docker", "urllib3")


class FoundryHubJsonFormatter(BaseJsonFormatter):
    """JSON formatter with consistent field names.

    Adds:
    - timestamp (ISO 8601, UTC)
    - level
    - logger (logger name)
    - service
    - request_id (if available in context)
    """

    def __init__(self, *args: Any, service_name: str = "foundryhub", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._service = service_name

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.fromtimestamp(record.created, tz=UTC).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["service"] = self._service

        request_id = request_id_ctx.get()
        if request_id:
            log_record["request_id"] = request_id

        log_record.pop("levelname", None)
        log_record.pop("name", None)
        log_record.pop("color_message", None)


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    json_format: bool = True,
    service_name: str = "foundryhub",
) -> None:
    """Configure the root logger for the process."""
    root_logger = logging.getLogger()

    # Clear existing handlers to avoid duplicate logs
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level))

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level))

    formatter: logging.Formatter
    if json_format:
        formatter = FoundryHubJsonFormatter(
            fmt="%(message)s",
            service_name=service_name,
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_request_id() -> str | None:
    """Get current request ID from context."""
    return request_id_ctx.get()


def set_request_id(request_id: str | None) -> None:
    """Set request ID in context."""
    request_id_ctx.set(request_id)
