"""
Alert handlers: sinks for breach and failure notifications.
"""

from .base import AlertHandler
from .factory import available_alert_handler_types, create_alert_handler, register_alert_handler_type
from .formatter import (
    CAP_BREACH_MSG_PARAM,
    DEFAULT_MESSAGES,
    TOLERANCE_BREACH_MSG_PARAM,
    WORK_FAILURE_MSG_PARAM,
    format_cap_exceeded_message,
    format_tolerance_exceeded_message,
    format_work_failure_message,
)
from .log_handler import LOG_LEVEL_PARAM, LOGGER_CATEGORY_PARAM, TRACE_LEVEL, LogAlertHandler
from .mail_handler import MailAlertHandler, parse_addresses

__all__ = [
    "AlertHandler",
    "LogAlertHandler",
    "MailAlertHandler",
    "create_alert_handler",
    "register_alert_handler_type",
    "available_alert_handler_types",
    "format_cap_exceeded_message",
    "format_tolerance_exceeded_message",
    "format_work_failure_message",
    "parse_addresses",
    "DEFAULT_MESSAGES",
    "CAP_BREACH_MSG_PARAM",
    "TOLERANCE_BREACH_MSG_PARAM",
    "WORK_FAILURE_MSG_PARAM",
    "LOGGER_CATEGORY_PARAM",
    "LOG_LEVEL_PARAM",
    "TRACE_LEVEL",
]
