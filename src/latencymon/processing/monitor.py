"""
Per-category latency monitor.

Application code calls ``start()`` before a unit of work and exactly one of
``complete()`` or ``error(cause)`` after it. Open records are kept on a
per-thread stack, so nested calls within one thread close in LIFO order and
only the outermost one is marked as the root. Closed records are handed to
the processor without blocking; no I/O happens on the caller's thread.
"""

import inspect
import logging
import threading
from typing import Callable, List, Optional

from ..models.duration import DurationIdentifier, DurationRecord, current_time_millis
from ..models.requirements import LatencyRequirement
from .processor import LatencyProcessor

logger = logging.getLogger(__name__)

_PACKAGE_PREFIX = __name__.split(".")[0]


def resolve_caller_name(default: str) -> str:
    """
    Name the nearest calling frame outside this package as ``module.qualname``.

    Falls back to ``default`` when no such frame can be found.
    """
    frame = inspect.currentframe()
    try:
        while frame is not None:
            module = frame.f_globals.get("__name__", "")
            if module != _PACKAGE_PREFIX and not module.startswith(_PACKAGE_PREFIX + "."):
                return f"{module}.{frame.f_code.co_qualname}"
            frame = frame.f_back
        return default
    finally:
        del frame


class LatencyMonitor:
    """Tracks executions of one work category."""

    def __init__(self, requirement: LatencyRequirement, processor: LatencyProcessor,
                 clock: Callable[[], int] = current_time_millis):
        self.requirement = requirement
        self.processor = processor
        self.clock = clock
        self._local = threading.local()

    @property
    def category(self) -> str:
        return self.requirement.work_category

    def start(self, method_name: Optional[str] = None) -> DurationRecord:
        """
        Open a record for the calling thread.

        Args:
            method_name: Name of the monitored call site. When omitted, the
                nearest caller outside latencymon is used.

        Returns:
            The open record
        """
        if method_name is None:
            method_name = resolve_caller_name(self.category)

        stack = self._stack()
        record = DurationRecord(
            identifier=DurationIdentifier(self.category, threading.current_thread().name),
            method_name=method_name,
            start_ms=self.clock(),
            root=not stack,
        )
        stack.append(record)
        return record

    def complete(self) -> Optional[DurationRecord]:
        """
        Close the innermost open record of the calling thread successfully.

        Returns:
            The closed record, or None if the thread has nothing open
        """
        return self._close(errored=False, error=None)

    def error(self, cause: Optional[BaseException] = None) -> Optional[DurationRecord]:
        """
        Close the innermost open record of the calling thread as failed.

        Returns:
            The closed record, or None if the thread has nothing open
        """
        return self._close(errored=True, error=cause)

    def open_count(self) -> int:
        """Number of records the calling thread has open in this category."""
        return len(getattr(self._local, "stack", ()))

    def _close(self, errored: bool, error: Optional[BaseException]) -> Optional[DurationRecord]:
        stack = getattr(self._local, "stack", None)
        if not stack:
            logger.debug(
                f"No open duration for '{self.category}' on "
                f"{threading.current_thread().name}; ignoring close"
            )
            return None

        record = stack.pop().close(self.clock(), errored=errored, error=error)
        if not stack:
            del self._local.stack
        self.processor.submit(record, self.requirement)
        return record

    def _stack(self) -> List[DurationRecord]:
        stack = getattr(self._local, "stack", None)
        if stack is None:
            stack = self._local.stack = []
        return stack

    def __repr__(self) -> str:
        return f"LatencyMonitor(category={self.category!r}, requirement={type(self.requirement).__name__})"
