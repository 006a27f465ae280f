"""
Validation and error handling for the latencymon package.

This module provides input validation and the domain exception hierarchy
with consistent error reporting across the library.
"""

from .exceptions import (
    ConfigurationError,
    ErrorSeverity,
    HistoryLoadError,
    LatencyMonitorError,
    ValidationError,
    handle_alert_error,
    handle_config_error,
    handle_error,
    handle_file_error,
)

from .validators import (
    validate_boolean,
    validate_enum_choice,
    validate_non_empty_string,
    validate_positive_float,
    validate_positive_integer,
    validate_string_mapping,
)

__all__ = [
    # Exceptions
    "ConfigurationError",
    "ErrorSeverity",
    "HistoryLoadError",
    "LatencyMonitorError",
    "ValidationError",
    # Error handling
    "handle_alert_error",
    "handle_config_error",
    "handle_error",
    "handle_file_error",
    # Validators
    "validate_boolean",
    "validate_enum_choice",
    "validate_non_empty_string",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_string_mapping",
]
