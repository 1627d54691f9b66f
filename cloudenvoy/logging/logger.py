"""
Logging configuration and utilities.
"""

import inspect
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from cloudenvoy.config import get_config

SERVICE_NAME = "cloudenvoy"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f") + "Z"


class CloudLoggingJSONFormatter(logging.Formatter):
    """
    Formatter that outputs JSON for Cloud Logging when the message carries structured data.
    Cloud Logging parses JSON from stdout if the line starts with '{'.
    """

    def format(self, record):
        message = record.getMessage()
        if message.strip().startswith("{"):
            try:
                parsed = json.loads(message)
                log_entry = {
                    "severity": record.levelname,
                    "message": parsed.get("message", str(message)),
                    "timestamp": _utc_timestamp(),
                    "service": record.name,
                }
                for key, value in parsed.items():
                    if key != "message":
                        log_entry[key] = value
                return json.dumps(log_entry)
            except (json.JSONDecodeError, ValueError, TypeError, AttributeError):
                pass

        return super().format(record)


def setup_logger(
    service_name: Optional[str] = None, log_level: Optional[str] = None
) -> logging.Logger:
    """Setup and configure the cloudenvoy logger."""
    name = service_name or SERVICE_NAME
    level = getattr(logging, (log_level or get_config().log_level).upper(), logging.INFO)

    # Handlers hang off the package logger so host applications keep control of root
    package_logger = logging.getLogger(SERVICE_NAME)
    package_logger.setLevel(level)

    formatter = CloudLoggingJSONFormatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    has_console_handler = False
    for handler in package_logger.handlers:
        if isinstance(handler, logging.StreamHandler):
            handler.setLevel(level)
            has_console_handler = True

    if not has_console_handler:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        package_logger.addHandler(console_handler)

    return logging.getLogger(name)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name, setting up the package handler if needed."""
    if not logging.getLogger(SERVICE_NAME).handlers:
        setup_logger()
    return logging.getLogger(name)


class StructuredLogger:
    """
    Wrapper around logger that adds structured fields for Google Cloud Logging.
    Allows filtering by fields like topic or subscription in Cloud Logging Explorer.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _format_structured_message(
        self,
        message: str,
        topic: Optional[str] = None,
        subscription: Optional[str] = None,
        **kwargs,
    ) -> str:
        """Format message with structured fields for Cloud Logging.

        Messages without structured fields are left as plain text.
        """
        if not (topic or subscription or kwargs):
            return message

        structured_data: Dict[str, Any] = {"message": message}
        if topic:
            structured_data["topic"] = topic
        if subscription:
            structured_data["subscription"] = subscription
        structured_data.update(kwargs)
        return json.dumps(structured_data, default=str)

    def debug(self, message: str, topic: Optional[str] = None, subscription: Optional[str] = None, **kwargs):
        self.logger.debug(self._format_structured_message(message, topic, subscription, **kwargs))

    def info(self, message: str, topic: Optional[str] = None, subscription: Optional[str] = None, **kwargs):
        self.logger.info(self._format_structured_message(message, topic, subscription, **kwargs))

    def warning(self, message: str, topic: Optional[str] = None, subscription: Optional[str] = None, **kwargs):
        self.logger.warning(self._format_structured_message(message, topic, subscription, **kwargs))

    def error(
        self,
        message: str,
        topic: Optional[str] = None,
        subscription: Optional[str] = None,
        exc_info: bool = False,
        **kwargs,
    ):
        self.logger.error(
            self._format_structured_message(message, topic, subscription, **kwargs),
            exc_info=exc_info,
        )

    def __getattr__(self, name: str):
        """Delegate other attributes to the underlying logger."""
        return getattr(self.logger, name)


def get_structured_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger.

    Usage:
        logger = get_structured_logger(__name__)
        logger.info("Created topic", topic="orders")

    In Cloud Logging Explorer, you can then filter by:
        jsonPayload.topic="orders"
    """
    return StructuredLogger(get_logger(name))


def _caller_name(logger_name: Optional[str]) -> str:
    if logger_name is not None:
        return logger_name
    # Two frames up: the log_* helper, then its caller
    frame = inspect.currentframe()
    try:
        return frame.f_back.f_back.f_globals.get("__name__", SERVICE_NAME)
    finally:
        del frame


def log_debug(message: str, logger_name: Optional[str] = None, **kwargs):
    """Log a debug message with optional structured fields (topic, subscription, ...)."""
    get_structured_logger(_caller_name(logger_name)).debug(message, **kwargs)


def log_info(message: str, logger_name: Optional[str] = None, **kwargs):
    """
    Log an info message with optional structured fields.

    Args:
        message: The log message
        logger_name: Optional logger name (defaults to caller's module name)
        **kwargs: Structured fields to include in the log (e.g., topic, subscription)
    """
    get_structured_logger(_caller_name(logger_name)).info(message, **kwargs)


def log_warning(message: str, logger_name: Optional[str] = None, **kwargs):
    """Log a warning message with optional structured fields."""
    get_structured_logger(_caller_name(logger_name)).warning(message, **kwargs)


def log_error(message: str, logger_name: Optional[str] = None, exc_info: bool = False, **kwargs):
    """Log an error message with optional structured fields."""
    get_structured_logger(_caller_name(logger_name)).error(message, exc_info=exc_info, **kwargs)
