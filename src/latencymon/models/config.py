"""
Configuration data models.

This module contains the validated, declarative form of a latencymon
configuration file: alert handler declarations and the capped and
statistical requirement declarations that reference them.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .requirements import (
    DEFAULT_EXPECTED_LATENCY_MS,
    DEFAULT_SIGNIFICANCE_BARRIER,
    DEFAULT_TOLERANCE_LEVEL,
)


@dataclass
class AlertHandlerConfig:
    """
    An entry of the ``[[alert_handlers]]`` array.
    """

    # Identifier referenced by requirements through alert_handler_ids.
    id: str
    # Registered handler type name (e.g. "log", "mail").
    type: str
    # Free-form string parameters handed to the handler at construction.
    parameters: Dict[str, str] = field(default_factory=dict)


@dataclass
class RequirementConfig:
    """
    Fields shared by capped and statistical requirement declarations.
    """

    # The work category the requirement applies to.
    work_category: str
    # Handler ids, resolved against the declared alert handlers.
    alert_handler_ids: List[str]
    # None means "use the requirement default" (ignore errors).
    ignore_errors: Optional[bool] = None
    # Registered persistence manager type name; None selects the default file store.
    persistence_manager: Optional[str] = None
    # Parameters for the persistence manager's init().
    persistence_parameters: Dict[str, str] = field(default_factory=dict)


@dataclass
class CappedRequirementConfig(RequirementConfig):
    """An entry of ``[[latency_requirements.capped]]``."""

    expected_latency: int = DEFAULT_EXPECTED_LATENCY_MS


@dataclass
class StatisticalRequirementConfig(RequirementConfig):
    """An entry of ``[[latency_requirements.statistical]]``."""

    observations_significance_barrier: int = DEFAULT_SIGNIFICANCE_BARRIER
    tolerance_level: float = DEFAULT_TOLERANCE_LEVEL


@dataclass
class LatencyConfig:
    """
    The root configuration object aggregating all declarations.
    """

    alert_handlers: List[AlertHandlerConfig] = field(default_factory=list)
    capped_requirements: List[CappedRequirementConfig] = field(default_factory=list)
    statistical_requirements: List[StatisticalRequirementConfig] = field(default_factory=list)

    @property
    def requirements(self) -> List[RequirementConfig]:
        return [*self.capped_requirements, *self.statistical_requirements]
