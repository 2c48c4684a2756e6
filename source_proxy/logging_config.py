"""
Structured logging configuration.

- JSON output in production (``APP_ENV=production``)
- Colored console output everywhere else
- Request-scoped fields bound through ``structlog.contextvars``; the
  authorization dependency binds ``resource`` so every later log line of
  that request carries it

Usage::

    from source_proxy.logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("export_completed", prefix="tenant-a", filename="report-008.csv")
"""
import logging
import sys
import structlog

from source_proxy.config import settings


def configure_logging() -> None:
    """Configure structlog processors and stdlib integration."""
    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.is_production:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

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
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.log_level.upper())

    # boto3 logs every request at INFO
    logging.getLogger("botocore").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger for *name*."""
    return structlog.get_logger(name)


def bind_request_context(**fields) -> None:
    """Attach *fields* to every log line emitted by the current request."""
    structlog.contextvars.bind_contextvars(**fields)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


# Auto-configure on import
configure_logging()
