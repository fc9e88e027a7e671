"""
Module: logger.py
Description: Structured logging configuration for the blob relay.

Configures structlog for JSON output so every retry decision and
terminal delivery outcome lands as one machine-readable log line.

Key Components:
- JSON output for log aggregation
- Timestamp and log level processors
- configure_logging() to apply the configured minimum level
- get_logger() helper function

Dependencies: structlog, logging, datetime
"""

import logging
from datetime import datetime, timezone

import structlog


def _add_timestamp(logger, method_name, event_dict):
    """
    Add ISO 8601 UTC timestamp to log entries.

    Args:
        logger: Logger instance
        method_name: Log method name (info, error, etc.)
        event_dict: Current log event dictionary

    Returns:
        Updated event dictionary with timestamp
    """
    event_dict["timestamp"] = (
        datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    )
    return event_dict


def _add_log_level(logger, method_name, event_dict):
    """Add upper-cased log level to event dictionary."""
    event_dict["level"] = method_name.upper()
    return event_dict


def configure_logging(level: str = "INFO") -> None:
    """
    Configure structlog for JSON output at the given minimum level.

    Args:
        level: Standard logging level name (DEBUG, INFO, ...)
    """
    structlog.configure(
        processors=[
            _add_timestamp,
            _add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.WriteLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        cache_logger_on_first_use=False,
    )


configure_logging()


def get_logger(name: str, **context) -> structlog.BoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)
        **context: Key/value pairs bound to every entry of this logger

    Returns:
        Configured structlog logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Downstream returned", status_code=200)
        {"status_code": 200, "event": "Downstream returned", "timestamp": "2024-01-15T10:30:00.000000Z", "level": "INFO"}
    """
    logger = structlog.get_logger(name)
    if context:
        logger = logger.bind(**context)
    return logger
