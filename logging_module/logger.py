"""Logger setup for the stream worker.

Configures console and rotating JSON file logging for the whole process and
makes sure secrets such as the stream key never reach a log sink.
"""

import json
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Iterable, Optional, Set

from logging_module.config import LoggingConfig

REDACTED = "***"

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord carries; anything else was passed via ``extra``.
_RESERVED_ATTRS = {
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "thread",
    "threadName",
    "taskName",
    "exc_info",
    "exc_text",
    "stack_info",
}


class SecretRedactingFilter(logging.Filter):
    """Replaces registered secret values with ``***`` in every record.

    The filter renders the message once (``msg % args``), redacts it and
    stores the result back on the record, so all handlers sharing the record
    see the redacted text. Formatted tracebacks are redacted as well.

    Example:
        >>> redactor = SecretRedactingFilter(["abcd-1234"])
        >>> handler.addFilter(redactor)
    """

    def __init__(self, secrets: Optional[Iterable[str]] = None):
        super().__init__()
        self._secrets: Set[str] = set()
        for secret in secrets or ():
            self.add_secret(secret)

    def add_secret(self, secret: Optional[str]) -> None:
        """Register a value that must never be logged."""
        if secret:
            self._secrets.add(secret)

    def redact(self, text: str) -> str:
        """Return ``text`` with every registered secret masked."""
        # Longest first so a secret containing another is masked whole
        for secret in sorted(self._secrets, key=len, reverse=True):
            text = text.replace(secret, REDACTED)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True

        record.msg = self.redact(record.getMessage())
        record.args = None

        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = self.redact(record.exc_text)

        for key, value in list(record.__dict__.items()):
            if key not in _RESERVED_ATTRS and isinstance(value, str):
                setattr(record, key, self.redact(value))

        return True


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Formats log records as JSON with timestamp, level, message, and extra fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted string
        """
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add all custom extra fields
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        # Add exception info if present
        if record.exc_text:
            log_data["exception"] = record.exc_text
        elif record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(
    config: Optional[LoggingConfig] = None,
    secrets: Optional[Iterable[str]] = None,
) -> SecretRedactingFilter:
    """Configure the root logger for the worker process.

    Installs a stdout handler (plain text or JSON) and, when ``log_path`` is
    set, a rotating JSON file handler. Every handler carries the same
    redacting filter.

    Args:
        config: Logging configuration (loaded from environment if not provided)
        secrets: Values that must be masked in all log output

    Returns:
        The redacting filter, so callers can register more secrets later

    Raises:
        ValueError: If configuration is invalid
    """
    if config is None:
        config = LoggingConfig.from_env()
    config.validate()

    redactor = SecretRedactingFilter(secrets)
    level = getattr(logging, config.log_level)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()  # Remove any existing handlers

    # Console handler (stdout)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    if config.log_format == "json":
        console_handler.setFormatter(JsonFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    console_handler.addFilter(redactor)
    root.addHandler(console_handler)

    # Rotating file handler (JSON format)
    if config.log_path:
        try:
            os.makedirs(config.log_path, exist_ok=True)
            log_file = os.path.join(config.log_path, "stream_worker.log")

            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=config.log_file_max_bytes,
                backupCount=config.log_file_backup_count,
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(JsonFormatter())
            file_handler.addFilter(redactor)
            root.addHandler(file_handler)
        except OSError as e:
            root.warning(f"Could not create log file: {e}. Logging to console only.")

    # Third-party chatter
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

    return redactor
