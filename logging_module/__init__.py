"""Logging Module for the Stream Worker.

This module configures process-wide logging: a console handler, an optional
rotating JSON log file, and redaction of secrets such as the stream key.

Main Components:
    - setup_logging: Configure the root logger
    - SecretRedactingFilter: Masks registered secrets in every record
    - JsonFormatter: Structured JSON formatter
    - LoggingConfig: Configuration management

Example:
    >>> from logging_module import LoggingConfig, setup_logging
    >>> redactor = setup_logging(LoggingConfig.from_env(), secrets=["my-key"])
"""

from logging_module.config import LoggingConfig
from logging_module.logger import JsonFormatter, SecretRedactingFilter, setup_logging

__version__ = "1.0.0"
__all__ = ["LoggingConfig", "JsonFormatter", "SecretRedactingFilter", "setup_logging"]
