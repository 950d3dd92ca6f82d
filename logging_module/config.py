"""Configuration management for the logging module.

This module handles configuration loading from environment variables
and provides validated configuration objects.
"""

import os
from dataclasses import dataclass
from typing import Optional

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_LOG_FORMATS = ["text", "json"]


@dataclass
class LoggingConfig:
    """Configuration for worker logging.

    All settings can be overridden via environment variables.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Console output format ("text" or "json")
        log_path: Directory for rotating JSON log files (console only if unset)
        log_file_max_bytes: Maximum size of log file before rotation
        log_file_backup_count: Number of backup log files to keep
    """

    log_level: str = "INFO"
    log_format: str = "text"
    log_path: Optional[str] = None
    log_file_max_bytes: int = 10 * 1024 * 1024  # 10 MB
    log_file_backup_count: int = 5

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        """Create configuration from environment variables.

        Environment variables:
            LOG_LEVEL: Logging level (default: INFO)
            LOG_FORMAT: Console format, text or json (default: text)
            LOG_PATH: Log file directory (default: unset, console only)
            LOG_FILE_MAX_BYTES: Max log file size (default: 10MB)
            LOG_FILE_BACKUP_COUNT: Number of backup files (default: 5)

        Returns:
            LoggingConfig instance with values from environment
        """
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", "text").lower(),
            log_path=os.getenv("LOG_PATH") or None,
            log_file_max_bytes=int(
                os.getenv("LOG_FILE_MAX_BYTES", str(10 * 1024 * 1024))
            ),
            log_file_backup_count=int(os.getenv("LOG_FILE_BACKUP_COUNT", "5")),
        )

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If configuration is invalid
        """
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log_level: {self.log_level}. Must be one of {VALID_LOG_LEVELS}"
            )

        if self.log_format not in VALID_LOG_FORMATS:
            raise ValueError(
                f"Invalid log_format: {self.log_format}. Must be one of {VALID_LOG_FORMATS}"
            )

        if self.log_file_max_bytes < 1024:  # At least 1 KB
            raise ValueError(
                f"log_file_max_bytes must be >= 1024, got {self.log_file_max_bytes}"
            )

        if self.log_file_backup_count < 1:
            raise ValueError(
                f"log_file_backup_count must be >= 1, got {self.log_file_backup_count}"
            )
