"""
Exception types and error handling helpers.

This module provides the domain exceptions raised by latencymon together with
the small set of error handling helpers used at the seams where failures are
logged rather than propagated (the background processor, persistence).
"""

import logging
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class LatencyMonitorError(Exception):
    """Base class for every error raised by latencymon."""


class ConfigurationError(LatencyMonitorError):
    """
    Raised when configuration cannot be loaded or is inconsistent.

    This is the only error surfaced to callers of ``MonitorFactory.init``
    and ``MonitorFactory.init_from``.
    """


class ValidationError(ConfigurationError):
    """
    Exception raised when validation of a single field fails.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class HistoryLoadError(LatencyMonitorError):
    """Raised when a persisted duration file contains an unreadable line."""

    def __init__(self, message: str, path: Optional[str] = None,
                 line_number: Optional[int] = None):
        super().__init__(message)
        self.path = path
        self.line_number = line_number


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg, exc_info=True)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_file_error(error: Exception, context: str, **kwargs) -> None:
    """Handle file-related errors."""
    handle_error(error, f"file {context}", **kwargs)


def handle_alert_error(error: Exception, handler_id: str, **kwargs) -> None:
    """Handle a failure raised from inside an alert handler."""
    handle_error(error, f"alert handler '{handler_id}'", **kwargs)
