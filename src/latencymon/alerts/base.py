"""
Alert handler interface.

Alert handlers receive typed callbacks from the background processor when a
requirement is breached or a tracked execution fails. Callbacks for one record
are delivered serially, on the processor thread, in the order the handlers are
declared on the requirement. Handlers hold no reference to the requirements
that use them; the requirement is passed into every callback.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, Optional

from ..models.duration import DurationRecord
from ..validation import ConfigurationError, LatencyMonitorError
from .formatter import (
    CAP_BREACH_MSG_PARAM,
    DEFAULT_MESSAGES,
    TOLERANCE_BREACH_MSG_PARAM,
    WORK_FAILURE_MSG_PARAM,
    format_cap_exceeded_message,
    format_tolerance_exceeded_message,
    format_work_failure_message,
)

if TYPE_CHECKING:
    from ..models.requirements import (
        CappedLatencyRequirement,
        LatencyRequirement,
        StatisticalLatencyRequirement,
    )

logger = logging.getLogger(__name__)


class AlertHandler(ABC):
    """
    Receives breach and failure notifications.

    Handlers are constructed with an identifier and a string-keyed parameter
    map and must be initialised exactly once with ``init()`` before use.
    """

    def __init__(self, alert_handler_id: Optional[str] = None,
                 parameters: Optional[Dict[str, str]] = None):
        self._alert_handler_id = alert_handler_id
        self._parameters: Dict[str, str] = dict(parameters or {})
        self._initialized = False

    @property
    def alert_handler_id(self) -> Optional[str]:
        return self._alert_handler_id

    @alert_handler_id.setter
    def alert_handler_id(self, value: str) -> None:
        self._assert_not_initialized()
        self._alert_handler_id = value

    @property
    def parameters(self) -> Dict[str, str]:
        return self._parameters

    @parameters.setter
    def parameters(self, value: Optional[Dict[str, str]]) -> None:
        self._assert_not_initialized()
        self._parameters = dict(value or {})

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def init(self) -> None:
        """
        Validate parameters and prepare the handler.

        Subclasses extend this and must call ``super().init()`` first.

        Raises:
            ConfigurationError: If the handler has no identifier or
                its parameters are invalid
            LatencyMonitorError: If the handler was already initialised
        """
        self._assert_not_initialized()
        if not self._alert_handler_id:
            raise ConfigurationError("No identifier specified for alert handler")
        for key, template in DEFAULT_MESSAGES.items():
            self._parameters.setdefault(key, template)

    def _mark_initialized(self) -> None:
        self._initialized = True

    @abstractmethod
    def latency_exceeded_cap(self, requirement: "CappedLatencyRequirement",
                             record: DurationRecord) -> None:
        """A root execution took longer than a capped requirement allows."""

    @abstractmethod
    def latency_deviation_exceeded_tolerance(self, requirement: "StatisticalLatencyRequirement",
                                             record: DurationRecord, deviation: float,
                                             mean: float) -> None:
        """An execution deviated from the running mean by more than the tolerance."""

    @abstractmethod
    def work_category_failed(self, requirement: "LatencyRequirement",
                             record: DurationRecord) -> None:
        """A tracked execution ended with an error."""

    # -- message preparation -------------------------------------------------

    def prepare_cap_exceeded_message(self, requirement: "CappedLatencyRequirement",
                                     record: DurationRecord) -> str:
        self._assert_initialized()
        return format_cap_exceeded_message(
            self._parameters[CAP_BREACH_MSG_PARAM], requirement, record
        )

    def prepare_tolerance_exceeded_message(self, requirement: "StatisticalLatencyRequirement",
                                           record: DurationRecord, deviation: float,
                                           mean: float) -> str:
        self._assert_initialized()
        return format_tolerance_exceeded_message(
            self._parameters[TOLERANCE_BREACH_MSG_PARAM], requirement, record, deviation, mean
        )

    def prepare_work_failure_message(self, requirement: "LatencyRequirement",
                                     record: DurationRecord) -> str:
        self._assert_initialized()
        return format_work_failure_message(
            self._parameters[WORK_FAILURE_MSG_PARAM], requirement, record
        )

    def _assert_initialized(self) -> None:
        if not self._initialized:
            raise LatencyMonitorError(
                f"Alert handler '{self._alert_handler_id}' not initialised"
            )

    def _assert_not_initialized(self) -> None:
        if self._initialized:
            raise LatencyMonitorError(
                f"Alert handler '{self._alert_handler_id}' is already initialised"
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._alert_handler_id!r})"
