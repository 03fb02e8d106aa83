# membership_app/core/logging_config.py
import logging
import logging.config
import sys
from typing import Dict, Any
from membership_app.core.config import settings


# Modules whose events form the card issuance audit trail
AUDIT_LOGGERS = (
    "app.card_ranges",
    "app.card_assignment",
    "app.membership_service",
)


def _level() -> str:
    return "DEBUG" if settings.DEBUG else "INFO"


def build_logging_config() -> Dict[str, Any]:
    """dictConfig for the service: console everywhere, files for the app and the audit trail"""
    formatter = "detailed" if settings.DEBUG else "default"

    loggers: Dict[str, Any] = {
        "": {  # Root logger
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        "app": {
            "handlers": ["console", "file"],
            "level": _level(),
            "propagate": False,
        },
        "uvicorn": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        "sqlalchemy": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
    }
    # Issuance events go to the audit file as well as the regular app handlers
    for name in AUDIT_LOGGERS:
        loggers[name] = {
            "handlers": ["console", "file", "audit"],
            "level": _level(),
            "propagate": False,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": _level(),
                "formatter": formatter,
                "stream": sys.stdout,
            },
            "file": {
                "class": "logging.FileHandler",
                "level": "INFO",
                "formatter": "detailed",
                "filename": settings.LOG_FILE,
                "mode": "a",
                "delay": True,
            },
            "audit": {
                "class": "logging.FileHandler",
                "level": "INFO",
                "formatter": "default",
                "filename": settings.AUDIT_LOG_FILE,
                "mode": "a",
                "delay": True,
            },
        },
        "loggers": loggers,
    }


def setup_logging() -> None:
    """Setup centralized logging configuration"""
    # A broken log stream must not abort a sweep or an assignment batch
    logging.raiseExceptions = False

    logging.config.dictConfig(build_logging_config())

    if settings.ENVIRONMENT == "production":
        logging.getLogger("app").setLevel(logging.INFO)
        logging.getLogger("uvicorn").setLevel(logging.WARNING)

    logger = get_logger("logging")
    logger.info(f"Logging configured for {settings.ENVIRONMENT} environment (debug={settings.DEBUG})")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name"""
    return logging.getLogger(f"app.{name}")


# Initialize logging when module is imported
setup_logging()
