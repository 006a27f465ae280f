"""
Abstract base class for duration persistence implementations.

This module defines the DurationPersistenceManager interface. A persistence
manager appends closed duration records for a work category and can replay
them later, so that running averages survive process restarts.

The background processor is the only caller of ``save``; ``load_history`` is
called once per statistical requirement when its statistics are first needed.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from ..models.duration import DurationRecord


class DurationPersistenceManager(ABC):
    """Abstract base class for duration persistence implementations."""

    @abstractmethod
    def init(self, parameters: Optional[Dict[str, str]] = None) -> None:
        """
        Configure the manager. Must be called once before any other method.

        Args:
            parameters: Implementation specific string parameters
        """
        pass

    @abstractmethod
    def save(self, record: DurationRecord) -> None:
        """
        Append a closed record to the log of its category.

        Implementations must not raise for I/O failures; they log and drop
        the record instead.

        Args:
            record: The closed duration record to persist
        """
        pass

    @abstractmethod
    def load_history(self, category: str) -> List[DurationRecord]:
        """
        Load every persisted record of a category, oldest first.

        Args:
            category: The work category whose history is requested

        Returns:
            The persisted records; an empty list when nothing was persisted

        Raises:
            HistoryLoadError: If a persisted line is missing mandatory fields
        """
        pass

    def close(self) -> None:
        """Release any open resources. The default implementation does nothing."""
        pass
