"""
Structured Logging Configuration Module

Provides JSON-formatted log output for the CLI and the web service. The
calculation engine never logs; only the code around it does.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Optional

DEFAULT_LOGGER_NAME = "emi_calc"


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "loan_id": getattr(record, "loan_id", None),
            "field": getattr(record, "field", None),
            "installments": getattr(record, "installments", None),
        }

        # Remove None values
        log_entry = {k: v for k, v in log_entry.items() if v is not None}

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: Optional[str] = None, logger_name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """
    Setup structured JSON logging for the application.

    Args:
        level: Log level name. Falls back to ``EMI_CALC_LOG_LEVEL`` and then INFO.
        logger_name: Name of the root logger for the application

    Returns:
        Configured logger instance
    """
    level = level or os.environ.get("EMI_CALC_LOG_LEVEL", "INFO")
    logger = logging.getLogger(logger_name)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Get logger instance"""
    return logging.getLogger(name)
