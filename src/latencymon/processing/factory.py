"""
Monitor factory.

The factory owns the resource registry and the single background processor,
and hands out one canonical LatencyMonitor per work category. Categories
without a configured requirement get an implicit statistical requirement
that logs breaches to a logger named after the category.
"""

import logging
import threading
from pathlib import Path
from typing import IO, Callable, Dict, Optional, Union

from ..alerts.log_handler import LOGGER_CATEGORY_PARAM, LogAlertHandler
from ..config.loader import find_config_source, open_config_source
from ..config.reader import read_configuration
from ..models.duration import current_time_millis
from ..models.requirements import LatencyRequirement, StatisticalLatencyRequirement
from ..validation import ConfigurationError, LatencyMonitorError
from .monitor import LatencyMonitor
from .processor import LatencyProcessor
from .registry import ResourceRegistry

logger = logging.getLogger(__name__)


def create_implicit_requirement(category: str) -> StatisticalLatencyRequirement:
    """A default statistical requirement logging to a logger named ``category``."""
    handler = LogAlertHandler(
        alert_handler_id=f"{category}{current_time_millis()}",
        parameters={LOGGER_CATEGORY_PARAM: category},
    )
    handler.init()
    return StatisticalLatencyRequirement(work_category=category, alert_handlers=(handler,))


class MonitorFactory:
    """
    Creates and caches latency monitors.

    Args:
        config_path: Explicit configuration source used by ``init()``
        auto_start: Start the processor and load configuration on construction
        processor: Processor to use instead of a new one
        clock: Millisecond clock passed to every monitor
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None,
                 auto_start: bool = True,
                 processor: Optional[LatencyProcessor] = None,
                 clock: Callable[[], int] = current_time_millis):
        self.config_path = config_path
        self.clock = clock
        self.processor = processor or LatencyProcessor()
        self._registry = ResourceRegistry()
        self._monitors: Dict[str, LatencyMonitor] = {}
        self._monitors_lock = threading.Lock()
        self._initialized = False

        if auto_start:
            # No worker is left behind when the configuration fails to load
            self.init()
            self.processor.start()

    @property
    def registry(self) -> ResourceRegistry:
        return self._registry

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def init(self) -> None:
        """
        Load configuration from the explicit path, ``$LATENCYMON_CONFIG`` or the
        default resource, in that order. A missing default resource is not an error.

        Raises:
            ConfigurationError: If a configured source is missing or invalid
        """
        if self._initialized:
            raise LatencyMonitorError("Monitor factory is already initialised")

        source, is_default = find_config_source(self.config_path)
        try:
            stream = open_config_source(source)
        except FileNotFoundError as e:
            if not is_default:
                raise ConfigurationError(f"Configuration not found: {e}") from e
            logger.warning(
                f"No configuration found at {source}; only implicit requirements will be used"
            )
            self._initialized = True
            return

        with stream:
            self._load(stream, description=source)
        self._initialized = True

    def init_from(self, stream: IO[bytes], description: str = "configuration stream") -> None:
        """
        Replace all requirements and handlers with those read from ``stream``.

        Monitors handed out earlier keep the requirement they were built with.

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        self._load(stream, description)
        self._initialized = True

    def _load(self, stream: IO[bytes], description: str) -> None:
        registry = ResourceRegistry()
        read_configuration(registry, stream, description)
        with self._monitors_lock:
            previous, self._registry = self._registry, registry
            self._monitors.clear()
        previous.reset()
        self.processor.discard_statistics(registry.requirements)

    def register_requirement(self, requirement: LatencyRequirement) -> None:
        """Register or replace the requirement of a category programmatically."""
        with self._monitors_lock:
            self._registry.add_requirement(requirement, replace=True)
            self._monitors.pop(requirement.work_category, None)

    def get_monitor(self, category: str) -> LatencyMonitor:
        """Return the canonical monitor of a work category, creating it if needed."""
        monitor = self._monitors.get(category)
        if monitor is None:
            with self._monitors_lock:
                monitor = self._monitors.get(category)
                if monitor is None:
                    monitor = self._create_monitor(category)
                    self._monitors[category] = monitor
        return monitor

    def _create_monitor(self, category: str) -> LatencyMonitor:
        requirement = self._registry.get_requirement(category)
        if requirement is None:
            logger.debug(f"No requirement for '{category}', creating an implicit one")
            requirement = create_implicit_requirement(category)
            self._registry.add_requirement(requirement)
        logger.debug(f"Creating monitor for '{category}' ({type(requirement).__name__})")
        return LatencyMonitor(requirement, self.processor, clock=self.clock)

    def shutdown(self, timeout: float = 5.0) -> None:
        """Process what is queued (within ``timeout``), stop the worker and close files."""
        if self.processor.is_running and not self.processor.flush(timeout):
            logger.warning("Pending durations were not processed before shutdown")
        self.processor.stop(timeout)
        for requirement in self._registry.requirements:
            if requirement.persistence_manager is not None:
                requirement.persistence_manager.close()

    def __enter__(self) -> "MonitorFactory":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
