"""
Timed execution records.

A DurationRecord describes a single execution of a work category on one
thread. Records are created open (``end_ms == -1``) by ``LatencyMonitor.start``
and closed exactly once by ``complete`` or ``error``; closing produces a new
frozen value rather than mutating the open one.
"""

import time
from dataclasses import dataclass, field, replace
from typing import Optional

# Sentinel end time for records that are still open.
OPEN_END_MS = -1

_MS_PER_SECOND = 1000
_MS_PER_MINUTE = 60 * _MS_PER_SECOND
_MS_PER_HOUR = 60 * _MS_PER_MINUTE
_MS_PER_DAY = 24 * _MS_PER_HOUR


def current_time_millis() -> int:
    """Wall-clock time in whole milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def format_elapsed(elapsed_ms: int) -> str:
    """
    Render a millisecond duration as ``[<D>d.][<H>h.][<M>m.][<S>s.]<ms>ms``.

    Each unit above milliseconds is omitted when it is zero; milliseconds are
    always printed, e.g. ``format_elapsed(90061001) == "1d.1h.1m.1s.1ms"``.
    """
    remainder = max(0, int(elapsed_ms))
    parts = []
    for unit_ms, suffix in (
        (_MS_PER_DAY, "d."),
        (_MS_PER_HOUR, "h."),
        (_MS_PER_MINUTE, "m."),
        (_MS_PER_SECOND, "s."),
    ):
        count, remainder = divmod(remainder, unit_ms)
        if count > 0:
            parts.append(f"{count}{suffix}")
    parts.append(f"{remainder}ms")
    return "".join(parts)


@dataclass(frozen=True)
class DurationIdentifier:
    """
    Identity of a stream of executions: one work category on one thread.

    Equality and hashing are by the ``(category, thread_id)`` pair.
    """

    category: str
    thread_id: str

    def __str__(self) -> str:
        return f"{self.category}@{self.thread_id}"


@dataclass(frozen=True)
class DurationRecord:
    """
    One timed execution of a work category.

    Attributes:
        identifier: The (category, thread) pair the execution belongs to
        method_name: Name of the monitored call site
        start_ms: Start time in epoch milliseconds
        end_ms: End time in epoch milliseconds, -1 while the record is open
        root: True if this was the outermost open record of its thread
        errored: True if the execution ended with an error
        error: The error that ended the execution, if any (never persisted)
    """

    identifier: DurationIdentifier
    method_name: str
    start_ms: int
    end_ms: int = OPEN_END_MS
    root: bool = False
    errored: bool = False
    error: Optional[BaseException] = field(default=None, compare=False, repr=False)

    @property
    def category(self) -> str:
        return self.identifier.category

    @property
    def thread_id(self) -> str:
        return self.identifier.thread_id

    @property
    def is_open(self) -> bool:
        return self.end_ms == OPEN_END_MS

    @property
    def elapsed_ms(self) -> int:
        """Elapsed wall time, clamped at zero. Open records report 0."""
        if self.is_open:
            return 0
        return max(0, self.end_ms - self.start_ms)

    def close(
        self,
        end_ms: int,
        errored: bool = False,
        error: Optional[BaseException] = None,
    ) -> "DurationRecord":
        """Return the closed copy of this record."""
        return replace(self, end_ms=end_ms, errored=errored, error=error)

    def format_elapsed(self) -> str:
        return format_elapsed(self.elapsed_ms)

    def __str__(self) -> str:
        return f"[{self.category} {self.format_elapsed()}]"

    def describe(self) -> str:
        """Long form used in debug logging."""
        return (
            f"[{self.identifier}] {self.method_name}({self.format_elapsed()})"
            f" root={self.root}, errored={self.errored}"
        )
