"""
Data models for the latency monitor.

Duration Models:
- Per-execution timing records and their (category, thread) identity
- Millisecond duration rendering used in alert messages

Requirement Models:
- Capped and statistical latency requirements (immutable once built)

Configuration Models:
- Declarative alert handler and requirement entries read from TOML
"""

from .duration import (
    OPEN_END_MS,
    DurationIdentifier,
    DurationRecord,
    current_time_millis,
    format_elapsed,
)

from .requirements import (
    DEFAULT_EXPECTED_LATENCY_MS,
    DEFAULT_SIGNIFICANCE_BARRIER,
    DEFAULT_TOLERANCE_LEVEL,
    CappedLatencyRequirement,
    LatencyRequirement,
    StatisticalLatencyRequirement,
)

from .config import (
    AlertHandlerConfig,
    CappedRequirementConfig,
    LatencyConfig,
    RequirementConfig,
    StatisticalRequirementConfig,
)

__all__ = [
    # Durations
    "OPEN_END_MS",
    "DurationIdentifier",
    "DurationRecord",
    "current_time_millis",
    "format_elapsed",
    # Requirements
    "DEFAULT_EXPECTED_LATENCY_MS",
    "DEFAULT_SIGNIFICANCE_BARRIER",
    "DEFAULT_TOLERANCE_LEVEL",
    "CappedLatencyRequirement",
    "LatencyRequirement",
    "StatisticalLatencyRequirement",
    # Configuration
    "AlertHandlerConfig",
    "CappedRequirementConfig",
    "LatencyConfig",
    "RequirementConfig",
    "StatisticalRequirementConfig",
]
