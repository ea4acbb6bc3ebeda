"""structlog setup."""

import logging

import structlog

from dumptracker.config import Settings


def setup_logging(settings: Settings) -> None:
    """Configure structlog with a JSON renderer, or a console one for local work.

    Every event carries the app version and environment so entries from
    several deployments can share one sink.
    """
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer()
    )

    def add_app_context(
        _logger: structlog.types.WrappedLogger, _method: str, event_dict: structlog.types.EventDict
    ) -> structlog.types.EventDict:
        event_dict.setdefault("app_version", settings.app_version)
        event_dict.setdefault("environment", settings.environment)
        return event_dict

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            add_app_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    # httpx logs every backend call at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
