"""Structured logging for the chat Cloud Functions.

Emits one JSON object per line on stdout so Google Cloud Logging picks up
severity and structured fields without an agent.
"""
import logging
import json
import sys
from typing import Any, Dict, Optional

from .config import LOG_LEVEL


class JSONFormatter(logging.Formatter):
    """JSON formatter compatible with Cloud Logging structured payloads."""

    def __init__(self, component: str):
        """Initialize formatter with component name.

        Args:
            component: Name of the cloud function (e.g., 'chat-notifier')
        """
        super().__init__()
        self.component = component

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_obj = {
            "severity": record.levelname,
            "message": record.getMessage(),
            "component": self.component,
        }

        if hasattr(record, "extra"):
            log_obj.update(record.extra)

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # Firestore values (timestamps, sentinels) are not JSON native
        return json.dumps(log_obj, default=str)


class CloudFunctionLogger:
    """Structured logger for Google Cloud Functions.

    Example:
        logger = CloudFunctionLogger("chat-notifier")
        logger.info("Notification sent", recipient_id="u1")
        event_logger = logger.bind(event_id="abc", thread_id="u1_u2")
        event_logger.exception("Reaction failed")
    """

    def __init__(
        self,
        component: str,
        level: str = LOG_LEVEL,
        context: Optional[Dict[str, Any]] = None,
        _logger: Optional[logging.Logger] = None,
    ):
        """Initialize logger for a Cloud Function.

        Args:
            component: Name of the cloud function
            level: Minimum severity name (defaults to LOG_LEVEL)
            context: Fields added to every record
        """
        self.component = component
        self.context = dict(context or {})
        self.logger = _logger or self._setup_logger(level)

    def _setup_logger(self, level: str) -> logging.Logger:
        """Configure logger with JSON formatter for Cloud Logging."""
        logger = logging.getLogger(self.component)
        logger.setLevel(getattr(logging, level, logging.INFO))
        logger.propagate = False

        # Remove existing handlers to avoid duplicates
        logger.handlers = []

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter(self.component))
        logger.addHandler(handler)

        return logger

    def bind(self, **fields: Any) -> "CloudFunctionLogger":
        """Return a logger sharing this handler that adds fields to each record."""
        context = dict(self.context)
        context.update(fields)
        return CloudFunctionLogger(
            self.component, context=context, _logger=self.logger)

    def _log(self, level: int, message: str, exc_info=None, **kwargs: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        record = self.logger.makeRecord(
            self.component, level, "", 0, message, (), exc_info
        )
        extra = dict(self.context)
        extra.update(kwargs)
        record.extra = extra
        self.logger.handle(record)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message with structured data."""
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message with structured data (e.g., error=str(e))."""
        self._log(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log error message with the active exception's traceback.

        Call from inside an ``except`` block.
        """
        self._log(logging.ERROR, message, exc_info=sys.exc_info(), **kwargs)
