"""
Structured logging configuration using structlog.
Outputs JSON in production, pretty-printed in development.
Request context (request_id, method, path) is merged from contextvars,
and client identifiers are masked before any renderer sees them.
"""

import logging
import sys
import structlog
from marketing_api.core.config import get_settings

# Event keys carrying client identifiers
EMAIL_KEYS = ("email", "to")
IP_KEYS = ("ip", "ip_address")


def mask_email(email: str) -> str:
    """jane.doe@example.com -> ja***@example.com"""
    local, sep, domain = (email or "").partition("@")
    if not sep:
        return "***"
    return f"{local[:2]}***@{domain}"


def short_ip(ip_address: str) -> str:
    return f"{(ip_address or 'unknown')[:8]}..."


def redact_client_fields(logger, method_name: str, event_dict: dict) -> dict:
    """structlog processor: mask emails and shorten IPs wherever they are bound."""
    for key in EMAIL_KEYS:
        if isinstance(event_dict.get(key), str):
            event_dict[key] = mask_email(event_dict[key])
    for key in IP_KEYS:
        if isinstance(event_dict.get(key), str):
            event_dict[key] = short_ip(event_dict[key])
    return event_dict


def setup_logging() -> None:
    settings = get_settings()

    # Shared processors for all environments
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        redact_client_fields,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.ENVIRONMENT == "production":
        # JSON output for production (machine-parseable)
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        # Pretty console output for development
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ]
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    # Silence noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
