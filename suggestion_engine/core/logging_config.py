"""Logging configuration for the Suggestion Engine.
"""

import logging
import logging.config
from typing import Any, Dict

# Define logging format
LOG_FORMAT = "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

def build_logging_config(level: str = "INFO", stream: str = "ext://sys.stdout") -> Dict[str, Any]:
    """Builds the dictConfig dictionary for the given root level."""
    return {
        "version": 1,
        "disable_existing_loggers": False, # Keep loggers created at import time
        "formatters": {
            "default": {
                "format": LOG_FORMAT,
                "datefmt": DATE_FORMAT,
            },
        },
        "handlers": {
            "console": {
                "level": level,
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": stream,
            },
        },
        "loggers": {
            # Root logger configuration
            "": {
                "handlers": ["console"],
                "level": level,
                "propagate": True,
            },
            "httpx": {
                 "level": logging.WARNING, # Reduce verbosity from the ollama HTTP transport
                 "handlers": ["console"],
                 "propagate": False,
            },
        }
    }

LOGGING_CONFIG = build_logging_config()

def setup_logging(level: str = "INFO", stream: str = "ext://sys.stdout") -> None:
    """Applies the logging configuration with the given root level."""
    logging.config.dictConfig(build_logging_config(level.upper(), stream))
