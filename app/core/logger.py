"""
Centralized logging configuration for the Review Syndication Service.

Provides a structured logging interface with:
- Correlation IDs taken from the W3C trace context of the current request
- Console output for development and JSON lines for production
- Optional JSON file output
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from app.core.config import config
from app.middleware.trace_context import get_trace_id

LOG_LEVEL = config.log_level.upper()
LOG_FORMAT = config.log_format.lower()


class StructuredLogger:
    """
    Logger with structured metadata and correlation ID support.
    Wraps the root Python logger so third-party libraries share the handlers.
    """

    def __init__(self):
        self.service_name = config.service_name
        self.environment = config.environment
        self._setup_logging()

    def _setup_logging(self):
        """Configure Python logging with handlers"""
        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

        if config.log_to_console:
            console_handler = logging.StreamHandler(sys.stdout)
            if LOG_FORMAT == "json":
                console_handler.setFormatter(JSONFormatter())
            else:
                console_handler.setFormatter(ConsoleFormatter())
            root.addHandler(console_handler)

        if config.log_to_file:
            log_dir = os.path.dirname(config.log_file_path)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(config.log_file_path)
            file_handler.setFormatter(JSONFormatter())  # Always JSON for files
            root.addHandler(file_handler)

    def _build_log_entry(
        self,
        level: str,
        message: str,
        correlation_id: Optional[str] = None,
        user_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """Build structured log entry"""
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.upper(),
            "service": self.service_name,
            "environment": self.environment,
            "message": message,
            "correlationId": correlation_id or get_trace_id(),
        }

        if user_id:
            entry["userId"] = user_id

        if metadata:
            entry["metadata"] = metadata

        entry.update(kwargs)
        return entry

    def _log(
        self,
        level: str,
        message: str,
        correlation_id: Optional[str] = None,
        user_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        """Internal logging method"""
        log_entry = self._build_log_entry(
            level, message, correlation_id, user_id, metadata, **kwargs
        )

        log_method = getattr(logging.getLogger(), level.lower())

        if LOG_FORMAT == "json":
            log_method(json.dumps(log_entry, default=str))
        else:
            # 'message' is reserved on LogRecord
            extra_data = {k: v for k, v in log_entry.items() if k != "message"}
            log_method(message, extra=extra_data)

    @staticmethod
    def _with_error(
        metadata: Optional[Dict[str, Any]],
        error: Optional[Union[str, Exception]],
    ) -> Dict[str, Any]:
        if metadata is None:
            metadata = {}
        if error:
            if isinstance(error, Exception):
                metadata["error"] = {
                    "type": type(error).__name__,
                    "message": str(error),
                }
            else:
                metadata["error"] = {"message": str(error)}
        return metadata

    def debug(
        self,
        message: str,
        correlation_id: Optional[str] = None,
        user_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        """Debug level logging"""
        self._log("DEBUG", message, correlation_id, user_id, metadata, **kwargs)

    def info(
        self,
        message: str,
        correlation_id: Optional[str] = None,
        user_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        """Info level logging"""
        self._log("INFO", message, correlation_id, user_id, metadata, **kwargs)

    def warning(
        self,
        message: str,
        correlation_id: Optional[str] = None,
        user_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        """Warning level logging"""
        self._log("WARNING", message, correlation_id, user_id, metadata, **kwargs)

    def error(
        self,
        message: str,
        correlation_id: Optional[str] = None,
        user_id: Optional[str] = None,
        error: Optional[Union[str, Exception]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        """Error level logging"""
        metadata = self._with_error(metadata, error)
        self._log("ERROR", message, correlation_id, user_id, metadata, **kwargs)

    def critical(
        self,
        message: str,
        correlation_id: Optional[str] = None,
        user_id: Optional[str] = None,
        error: Optional[Union[str, Exception]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        """Critical level logging"""
        metadata = self._with_error(metadata, error)
        self._log("CRITICAL", message, correlation_id, user_id, metadata, **kwargs)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    RESERVED = {
        "name", "msg", "args", "created", "filename", "funcName", "levelname",
        "levelno", "lineno", "module", "msecs", "message", "pathname", "process",
        "processName", "relativeCreated", "thread", "threadName", "exc_info",
        "exc_text", "stack_info", "taskName",
    }

    def format(self, record):
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": config.service_name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in self.RESERVED:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored console formatter for development"""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record):
        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        reset = self.COLORS['RESET']

        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')

        return f"{color}[{timestamp}] {record.levelname}{reset} - {record.getMessage()}"


# Create and export the logger instance
logger = StructuredLogger()
