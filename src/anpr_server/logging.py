import logging.config

import structlog
from logfire.integrations.structlog import LogfireProcessor

from anpr_server.config import settings

Logger = structlog.stdlib.BoundLogger

timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)

shared_processors: list[structlog.typing.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.ExtraAdder(),
    timestamper,
]


def _get_renderer() -> structlog.typing.Processor:
    if settings.is_development() or settings.is_testing():
        return structlog.dev.ConsoleRenderer(colors=False)
    return structlog.processors.JSONRenderer()


def configure(*, logfire: bool = False) -> None:
    """
    Route structlog and stdlib logging through the same formatter.

    uvicorn, SQLAlchemy and our own loggers end up in a single stream, rendered
    for humans in development and as JSON lines everywhere else.
    """
    processors: list[structlog.typing.Processor] = [*shared_processors]
    if logfire:
        processors.append(LogfireProcessor())

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _get_renderer(),
                    ],
                },
            },
            "handlers": {
                "default": {
                    "level": settings.LOG_LEVEL,
                    "class": "logging.StreamHandler",
                    "formatter": "structlog",
                },
            },
            "loggers": {
                "": {
                    "handlers": ["default"],
                    "level": settings.LOG_LEVEL,
                    "propagate": False,
                },
                "uvicorn.error": {"handlers": ["default"], "propagate": False},
                "uvicorn.access": {"handlers": ["default"], "propagate": False},
                "sqlalchemy.engine": {
                    "level": "INFO" if settings.SQLALCHEMY_DEBUG else "WARNING",
                },
            },
        }
    )

    structlog.configure(
        processors=[
            *processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


__all__ = ["Logger", "configure"]
