"""
Alert handler that writes breach and failure messages to a logger.
"""

import logging
from typing import Dict, Optional

from ..models.duration import DurationRecord
from ..validation import validate_enum_choice, validate_non_empty_string
from .base import AlertHandler

logger = logging.getLogger(__name__)

LOGGER_CATEGORY_PARAM = "logger.category"
LOG_LEVEL_PARAM = "logLevel"

DEFAULT_LOGGER_CATEGORY = "latencymon"
DEFAULT_LOG_LEVEL = "INFO"

TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

LOG_LEVELS: Dict[str, int] = {
    "TRACE": TRACE_LEVEL,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


class LogAlertHandler(AlertHandler):
    """
    Writes alerts through the standard logging module.

    Parameters:
        logger.category: Name of the target logger (default ``latencymon``)
        logLevel: TRACE, DEBUG, INFO, WARN/WARNING or ERROR (default INFO)
    """

    def __init__(self, alert_handler_id: Optional[str] = None,
                 parameters: Optional[Dict[str, str]] = None):
        super().__init__(alert_handler_id, parameters)
        self.target_logger: Optional[logging.Logger] = None
        self.level = logging.INFO

    def init(self) -> None:
        super().init()

        category = self._parameters.get(LOGGER_CATEGORY_PARAM, DEFAULT_LOGGER_CATEGORY)
        category = validate_non_empty_string(category, field_name=LOGGER_CATEGORY_PARAM)

        level_name = validate_enum_choice(
            self._parameters.get(LOG_LEVEL_PARAM, DEFAULT_LOG_LEVEL),
            list(LOG_LEVELS),
            field_name=LOG_LEVEL_PARAM,
            case_sensitive=False,
        )

        self.target_logger = logging.getLogger(category)
        self.level = LOG_LEVELS[level_name.upper()]
        self._mark_initialized()
        logger.debug(
            f"Log alert handler '{self.alert_handler_id}' writing to '{category}' "
            f"at {logging.getLevelName(self.level)}"
        )

    def latency_exceeded_cap(self, requirement, record: DurationRecord) -> None:
        self._emit(self.prepare_cap_exceeded_message(requirement, record))

    def latency_deviation_exceeded_tolerance(self, requirement, record: DurationRecord,
                                             deviation: float, mean: float) -> None:
        self._emit(self.prepare_tolerance_exceeded_message(requirement, record, deviation, mean))

    def work_category_failed(self, requirement, record: DurationRecord) -> None:
        self._emit(self.prepare_work_failure_message(requirement, record))

    def _emit(self, message: str) -> None:
        self.target_logger.log(self.level, message)
