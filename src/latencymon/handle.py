"""
Process-wide monitor factory.

A convenience accessor for code that does not pass a factory around. The
factory is created on first use and loads configuration with ``init()``;
a missing default configuration leaves it serving implicit requirements.
"""

import logging
import threading
from typing import IO, Optional

from .processing.factory import MonitorFactory
from .processing.monitor import LatencyMonitor

logger = logging.getLogger(__name__)

# This global variable holds the single process-wide factory.
_FACTORY: Optional[MonitorFactory] = None
_FACTORY_LOCK = threading.Lock()


def get_factory() -> MonitorFactory:
    """Return the process-wide factory, creating it on first use."""
    global _FACTORY
    factory = _FACTORY
    if factory is None:
        with _FACTORY_LOCK:
            if _FACTORY is None:
                logger.debug("Creating process-wide monitor factory")
                _FACTORY = MonitorFactory()
            factory = _FACTORY
    return factory


def get_monitor(category: str) -> LatencyMonitor:
    return get_factory().get_monitor(category)


def initialize_from(stream: IO[bytes], description: str = "configuration stream") -> None:
    """Reload the process-wide factory's configuration from a stream."""
    get_factory().init_from(stream, description)


def reset_factory(timeout: float = 5.0) -> None:
    """Shut down and forget the process-wide factory."""
    global _FACTORY
    with _FACTORY_LOCK:
        factory, _FACTORY = _FACTORY, None
    if factory is not None:
        factory.shutdown(timeout)
