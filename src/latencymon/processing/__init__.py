"""
Runtime engine: monitors, the background processor and the monitor factory.
"""

from .stats import ROOT_KEY, RunningStats, StatsMap, stats_key_for
from .processor import LatencyProcessor, QueueEntry
from .monitor import LatencyMonitor, resolve_caller_name
from .registry import ResourceRegistry
from .factory import MonitorFactory, create_implicit_requirement

__all__ = [
    "ROOT_KEY",
    "RunningStats",
    "StatsMap",
    "stats_key_for",
    "LatencyProcessor",
    "QueueEntry",
    "LatencyMonitor",
    "resolve_caller_name",
    "ResourceRegistry",
    "MonitorFactory",
    "create_implicit_requirement",
]
