import logging.config
import sys

from circuit_challenge.core.config import settings


def configure_logging(level: str = None, log_file: str = None):
    """
    Console for everything at `level`, rotating file for errors only.
    The generator logs every rejected attempt at DEBUG, so it gets its own
    level to keep that chatter out of normal runs.
    """
    level = (level or settings.LOG_LEVEL).upper()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%H:%M:%S",
            },
            "detailed": {
                "format": "%(asctime)s [%(levelname)s] %(name)s (%(module)s:%(lineno)d): %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "level": level,
                "class": "logging.StreamHandler",
                "formatter": "console",
                "stream": sys.stdout,
            },
            "error_file": {
                "level": "ERROR",
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "detailed",
                "filename": log_file or settings.LOG_FILE,
                "maxBytes": 5 * 1024 * 1024,
                "backupCount": 3,
                "delay": True,  # no file until the first error
            },
        },
        "loggers": {
            "": {
                "handlers": ["console", "error_file"],
                "level": level,
            },
            "circuit_challenge.engine.generator": {
                "level": settings.GENERATOR_LOG_LEVEL.upper(),
            },
            "sqlalchemy.engine": {  # INFO echoes every query
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
        },
    })
