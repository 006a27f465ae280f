"""
Latency requirement models.

A requirement is the policy attached to a work category. Two variants exist:

- CappedLatencyRequirement: a root execution breaches the requirement when it
  takes longer than a fixed number of milliseconds.
- StatisticalLatencyRequirement: once enough observations have been collected,
  an execution breaches the requirement when it deviates from the running mean
  by more than a configured fraction.

Requirements are frozen once constructed. Construction validates the policy
and installs an initialised default persistence manager if none is supplied,
which makes construction the single initialisation of a requirement.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Tuple

from ..validation import (
    validate_non_empty_string,
    validate_positive_float,
    validate_positive_integer,
)

if TYPE_CHECKING:
    from ..alerts.base import AlertHandler
    from ..persistence.base import DurationPersistenceManager

DEFAULT_EXPECTED_LATENCY_MS = 100
DEFAULT_SIGNIFICANCE_BARRIER = 50
DEFAULT_TOLERANCE_LEVEL = 0.10


@dataclass(frozen=True)
class LatencyRequirement:
    """
    Common fields of every latency requirement.

    Attributes:
        work_category: The category this requirement applies to (non-empty)
        ignore_errors: When True, errored executions are dropped silently
        alert_handlers: Handlers notified of breaches, in declaration order
        persistence_manager: Where completed executions are appended
    """

    work_category: str
    ignore_errors: bool = True
    alert_handlers: Tuple["AlertHandler", ...] = field(default=(), compare=False)
    persistence_manager: Optional["DurationPersistenceManager"] = field(
        default=None, compare=False, repr=False
    )

    def __post_init__(self):
        validate_non_empty_string(self.work_category, field_name="work_category")
        object.__setattr__(self, "alert_handlers", tuple(self.alert_handlers))
        self._validate_policy()
        if self.persistence_manager is None:
            object.__setattr__(
                self, "persistence_manager", _create_default_persistence_manager()
            )

    def _validate_policy(self) -> None:
        """Variant specific validation, run once during construction."""


@dataclass(frozen=True)
class CappedLatencyRequirement(LatencyRequirement):
    """A fixed latency ceiling, in milliseconds, for root executions."""

    expected_latency_ms: int = DEFAULT_EXPECTED_LATENCY_MS

    def _validate_policy(self) -> None:
        latency = validate_positive_integer(
            self.expected_latency_ms,
            min_value=1,
            field_name=f"{self.work_category}.expected_latency",
        )
        object.__setattr__(self, "expected_latency_ms", latency)


@dataclass(frozen=True)
class StatisticalLatencyRequirement(LatencyRequirement):
    """A tolerance relative to the running mean, active after calibration."""

    observations_significance_barrier: int = DEFAULT_SIGNIFICANCE_BARRIER
    tolerance_level: float = DEFAULT_TOLERANCE_LEVEL

    def _validate_policy(self) -> None:
        barrier = validate_positive_integer(
            self.observations_significance_barrier,
            min_value=0,
            field_name=f"{self.work_category}.observations_significance_barrier",
        )
        tolerance = validate_positive_float(
            self.tolerance_level,
            min_value=0.0,
            field_name=f"{self.work_category}.tolerance_level",
        )
        object.__setattr__(self, "observations_significance_barrier", barrier)
        object.__setattr__(self, "tolerance_level", tolerance)

    @property
    def tolerance_percent(self) -> float:
        return self.tolerance_level * 100


def _create_default_persistence_manager() -> "DurationPersistenceManager":
    # Imported lazily: persistence depends on models.duration only, and
    # keeping the import here avoids a models <-> persistence cycle.
    from ..persistence.file_manager import FilePersistenceManager

    manager = FilePersistenceManager()
    manager.init()
    return manager
