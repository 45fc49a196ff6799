"""Logging setup for command-line entry points."""

import logging
from logging.config import dictConfig

DEFAULT_LOG_FORMAT = "%(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Route the root logger through a rich console handler."""
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": DEFAULT_LOG_FORMAT,
                    "datefmt": "[%X]",
                },
            },
            "handlers": {
                "default": {
                    "class": "rich.logging.RichHandler",
                    "formatter": "default",
                    "rich_tracebacks": True,
                },
            },
            "root": {
                "handlers": ["default"],
                "level": level.upper(),
            },
        }
    )

    # The Supabase client stack is chatty at DEBUG
    if level.upper() != "DEBUG":
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("hpack").setLevel(logging.WARNING)
