"""
Registry of configured alert handlers and latency requirements.
"""

import logging
import threading
from typing import Dict, List, Optional

from ..alerts.base import AlertHandler
from ..models.requirements import LatencyRequirement
from ..validation import ConfigurationError

logger = logging.getLogger(__name__)


class ResourceRegistry:
    """
    Handlers keyed by id and requirements keyed by work category.

    Writers take the lock; lookups read the dictionaries directly.
    """

    def __init__(self):
        self._handlers: Dict[str, AlertHandler] = {}
        self._requirements: Dict[str, LatencyRequirement] = {}
        self._lock = threading.Lock()

    def add_alert_handler(self, handler: AlertHandler) -> None:
        handler_id = handler.alert_handler_id
        with self._lock:
            if handler_id in self._handlers:
                raise ConfigurationError(f"Duplicate alert handler id '{handler_id}'")
            self._handlers[handler_id] = handler
        logger.debug(f"Registered alert handler {handler!r}")

    def get_alert_handler(self, handler_id: str) -> Optional[AlertHandler]:
        return self._handlers.get(handler_id)

    def add_requirement(self, requirement: LatencyRequirement, replace: bool = False) -> None:
        category = requirement.work_category
        with self._lock:
            if category in self._requirements and not replace:
                raise ConfigurationError(
                    f"Duplicate latency requirement for work category '{category}'"
                )
            self._requirements[category] = requirement
        logger.debug(f"Registered {type(requirement).__name__} for '{category}'")

    def get_requirement(self, category: str) -> Optional[LatencyRequirement]:
        return self._requirements.get(category)

    @property
    def alert_handlers(self) -> List[AlertHandler]:
        return list(self._handlers.values())

    @property
    def requirements(self) -> List[LatencyRequirement]:
        return list(self._requirements.values())

    def reset(self) -> None:
        """Forget every handler and requirement, closing their persistence managers."""
        with self._lock:
            requirements = list(self._requirements.values())
            self._handlers.clear()
            self._requirements.clear()
        for requirement in requirements:
            if requirement.persistence_manager is not None:
                requirement.persistence_manager.close()
        logger.debug("Resource registry reset")

    def __len__(self) -> int:
        return len(self._requirements)
