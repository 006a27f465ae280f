"""
latencymon: in-process latency monitoring.

Application code marks the start and end of units of work per work category;
a background processor compares elapsed times against capped or statistical
latency requirements, alerts configured handlers on breaches and failures,
and appends durations to per-category history files.

The package is organized into specialized modules:
- models: Duration records, requirements and configuration models
- validation: Input validation and error handling
- persistence: Append-only history files and their line codec
- alerts: Alert handler interface with log and mail implementations
- processing: Monitors, the background processor and the monitor factory
- config: TOML configuration loading
- interceptors: Decorator and context manager helpers
- plotter / cli: History inspection

Usage:
    from latencymon import MonitorFactory

    with MonitorFactory("latencymon.toml") as factory:
        monitor = factory.get_monitor("orders")
        monitor.start()
        try:
            place_order()
        except Exception as e:
            monitor.error(e)
            raise
        else:
            monitor.complete()
"""

# Main interfaces
from .processing import LatencyMonitor, LatencyProcessor, MonitorFactory
from .handle import get_factory, get_monitor, initialize_from, reset_factory
from .interceptors import monitor_scope, monitored

# Model classes for external use
from .models import (
    CappedLatencyRequirement,
    DurationIdentifier,
    DurationRecord,
    LatencyRequirement,
    StatisticalLatencyRequirement,
)

# Extension points
from .alerts import AlertHandler, LogAlertHandler, MailAlertHandler, register_alert_handler_type
from .persistence import (
    DurationPersistenceManager,
    FilePersistenceManager,
    register_persistence_manager_type,
)

# Errors
from .validation import (
    ConfigurationError,
    HistoryLoadError,
    LatencyMonitorError,
    ValidationError,
)

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "MonitorFactory",
    "LatencyMonitor",
    "LatencyProcessor",
    "get_factory",
    "get_monitor",
    "initialize_from",
    "reset_factory",
    "monitored",
    "monitor_scope",
    # Models
    "DurationIdentifier",
    "DurationRecord",
    "LatencyRequirement",
    "CappedLatencyRequirement",
    "StatisticalLatencyRequirement",
    # Extension points
    "AlertHandler",
    "LogAlertHandler",
    "MailAlertHandler",
    "register_alert_handler_type",
    "DurationPersistenceManager",
    "FilePersistenceManager",
    "register_persistence_manager_type",
    # Errors
    "LatencyMonitorError",
    "ConfigurationError",
    "ValidationError",
    "HistoryLoadError",
]
