"""
Structured logging for the SatyaShodhak API.

Every event is rendered as one JSON line carrying the service name and the
correlation ID of the request being handled. Result, comment and user ids
are UUIDs and are rendered as plain strings; credentials never reach the log.
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

import structlog
from structlog.types import FilteringBoundLogger

SERVICE_NAME = "satyashodhak-api"

REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset({"authorization", "token", "api_key", "key", "token_hash"})

# Libraries that log every HTTP request or SQL statement at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "anthropic", "sqlalchemy.engine")

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Correlation ID of the current request, empty outside a request."""
    return correlation_id_ctx.get()


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """
    Bind a correlation ID to the current request.

    An incoming X-Correlation-ID is reused when present so a verification can
    be traced across the caller's logs and ours; otherwise a new one is made.
    """
    correlation_id = (correlation_id or "").strip() or str(uuid.uuid4())
    correlation_id_ctx.set(correlation_id)
    return correlation_id


def add_request_context(logger: FilteringBoundLogger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def render_identifiers(logger: FilteringBoundLogger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Render UUID values as strings instead of their repr."""
    for key, value in event_dict.items():
        if isinstance(value, uuid.UUID):
            event_dict[key] = str(value)
    return event_dict


def redact_credentials(logger: FilteringBoundLogger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask bearer tokens and API keys passed as log fields."""
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS and event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def setup_logging(log_level: str = "INFO") -> FilteringBoundLogger:
    """
    Configure structlog and the standard library root logger.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Root structured logger
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            add_request_context,
            redact_credentials,
            render_identifiers,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return structlog.get_logger(SERVICE_NAME)


def get_logger(name: Optional[str] = None) -> FilteringBoundLogger:
    """Structured logger for a module, usually called with __name__."""
    return structlog.get_logger(name) if name else structlog.get_logger()
