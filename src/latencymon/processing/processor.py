"""
Background latency processor.

Monitors hand every closed duration record to the processor together with the
requirement of its category. A single daemon worker thread drains the queue,
evaluates the requirement, fans alerts out to the requirement's handlers and
appends successful executions to the requirement's persistence manager.

The caller side only ever performs a non-blocking ``put`` on an unbounded
queue. Handler and persistence failures are logged and never stop the worker.
"""

import logging
import queue
import threading
import time
from typing import Dict, Iterable, NamedTuple, Optional, Tuple

from ..models.duration import DurationRecord
from ..models.requirements import (
    CappedLatencyRequirement,
    LatencyRequirement,
    StatisticalLatencyRequirement,
)
from ..validation import handle_alert_error, handle_error
from .stats import StatsMap

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_TIMEOUT = 0.1


class QueueEntry(NamedTuple):
    """A closed record and the requirement it is evaluated against."""
    record: DurationRecord
    requirement: LatencyRequirement


def _stats_map_key(requirement: LatencyRequirement) -> Tuple[str, int]:
    return requirement.work_category, id(requirement)


class LatencyProcessor:
    """
    Single-consumer evaluator of closed duration records.

    Evaluation of one entry:

    1. Errored records are dropped when the requirement ignores errors, and
       otherwise reported through ``work_category_failed``. Errored records
       are never persisted.
    2. Capped requirements alert when a root record exceeds the cap.
    3. Statistical requirements calibrate a running mean per stats key until
       the significance barrier is reached, then alert when an execution
       exceeds the mean by more than ``mean * tolerance_level``.
    4. Non-errored records are appended to the persistence manager.
    """

    def __init__(self, queue_timeout: float = DEFAULT_QUEUE_TIMEOUT,
                 name: str = "LatencyProcessor"):
        self.name = name
        self.queue_timeout = queue_timeout
        self._queue: "queue.Queue[QueueEntry]" = queue.Queue()
        self._stats_maps: Dict[Tuple[str, int], StatsMap] = {}
        self._latest_stats: Dict[str, StatsMap] = {}
        self._stats_lock = threading.Lock()

        self.stop_event = threading.Event()
        self.thread: Optional[threading.Thread] = None
        self.running = False

        self.processed_count = 0
        self.failed_count = 0
        self.last_activity_time = 0.0

    @property
    def is_running(self) -> bool:
        return self.running and self.thread is not None and self.thread.is_alive()

    @property
    def pending_count(self) -> int:
        return self._queue.unfinished_tasks

    def start(self) -> None:
        """Start the worker thread."""
        if self.running:
            logger.warning(f"{self.name} already running")
            return

        self.running = True
        self.stop_event.clear()
        self.thread = threading.Thread(
            target=self.processing_loop,
            name=self.name,
            daemon=True
        )
        self.thread.start()
        logger.info(f"{self.name} started")

    def stop(self, timeout: float = 5.0) -> None:
        """
        Stop the worker thread. Entries still queued are dropped.

        Args:
            timeout: Seconds to wait for the worker to finish
        """
        if not self.running:
            return

        logger.info(f"Stopping {self.name}...")
        self.running = False
        self.stop_event.set()

        if self.thread and self.thread.is_alive():
            self.thread.join(timeout=timeout)
            if self.thread.is_alive():
                logger.warning(f"{self.name} did not stop within timeout")
            else:
                logger.info(f"{self.name} stopped successfully")

        dropped = self._drain()
        if dropped:
            logger.warning(f"{self.name} dropped {dropped} unprocessed duration(s)")

    def submit(self, record: DurationRecord, requirement: LatencyRequirement) -> None:
        """Queue a closed record for evaluation. Never blocks."""
        self._queue.put_nowait(QueueEntry(record, requirement))

    def flush(self, timeout: float = 5.0) -> bool:
        """
        Wait until every queued entry has been processed.

        Returns:
            True if the queue drained within the timeout
        """
        deadline = time.monotonic() + timeout
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    def statistics_for(self, category: str,
                       requirement: Optional[LatencyRequirement] = None) -> Optional[StatsMap]:
        """
        A stats map built for a statistical category.

        Args:
            category: Work category
            requirement: The requirement whose map is wanted; by default the
                map built most recently for the category

        Returns:
            The stats map, or None if none has been built
        """
        with self._stats_lock:
            if requirement is not None:
                return self._stats_maps.get(_stats_map_key(requirement))
            return self._latest_stats.get(category)

    def discard_statistics(self, keep: Iterable[LatencyRequirement]) -> None:
        """Forget the stats maps of every requirement not in ``keep``."""
        kept = {id(requirement) for requirement in keep}
        with self._stats_lock:
            stale = [key for key in self._stats_maps if key[1] not in kept]
            for key in stale:
                del self._stats_maps[key]
            for category, stats_map in list(self._latest_stats.items()):
                if id(stats_map.requirement) not in kept:
                    del self._latest_stats[category]
        if stale:
            logger.debug(f"Discarded {len(stale)} stats map(s) of replaced requirements")

    def processing_loop(self) -> None:
        """Main worker loop."""
        logger.debug(f"{self.name} loop started")

        try:
            while not self.stop_event.is_set():
                try:
                    entry = self._queue.get(timeout=self.queue_timeout)
                except queue.Empty:
                    continue

                try:
                    self.process(entry.record, entry.requirement)
                except Exception as e:
                    logger.error(
                        f"Error in {self.name} processing {entry.record.describe()}: {e}",
                        exc_info=True
                    )
                    self.failed_count += 1
                finally:
                    self._queue.task_done()
                    self.last_activity_time = time.time()

        except Exception as e:
            logger.error(f"Fatal error in {self.name}: {e}", exc_info=True)
        finally:
            logger.debug(f"{self.name} loop finished")

    def process(self, record: DurationRecord, requirement: LatencyRequirement) -> None:
        """Evaluate one closed record against its requirement."""
        self.processed_count += 1
        logger.debug(f"Processing {record.describe()}")

        if record.errored:
            if not requirement.ignore_errors:
                self._notify(requirement, "work_category_failed", requirement, record)
            return

        if isinstance(requirement, CappedLatencyRequirement):
            self._evaluate_capped(requirement, record)
        elif isinstance(requirement, StatisticalLatencyRequirement):
            self._evaluate_statistical(requirement, record)

        self._persist(requirement, record)

    def _evaluate_capped(self, requirement: CappedLatencyRequirement,
                         record: DurationRecord) -> None:
        if record.root and record.elapsed_ms > requirement.expected_latency_ms:
            self._notify(requirement, "latency_exceeded_cap", requirement, record)

    def _evaluate_statistical(self, requirement: StatisticalLatencyRequirement,
                              record: DurationRecord) -> None:
        stats = self._stats_map_for(requirement).for_record(record)
        elapsed = record.elapsed_ms

        if stats.significance_barrier_breached:
            mean = stats.running_average
            deviation = elapsed - mean
            allowed = mean * requirement.tolerance_level
            if deviation > allowed:
                self._notify(
                    requirement, "latency_deviation_exceeded_tolerance",
                    requirement, record, deviation, mean
                )

        stats.update(elapsed)

    def _stats_map_for(self, requirement: StatisticalLatencyRequirement) -> StatsMap:
        # One map per requirement object, so pre-reload monitors keep their own
        key = _stats_map_key(requirement)
        stats_map = self._stats_maps.get(key)
        if stats_map is None:
            stats_map = StatsMap(requirement)
            with self._stats_lock:
                self._stats_maps[key] = stats_map
                self._latest_stats[requirement.work_category] = stats_map
        return stats_map

    def _notify(self, requirement: LatencyRequirement, callback: str, *args) -> None:
        for handler in requirement.alert_handlers:
            try:
                getattr(handler, callback)(*args)
            except Exception as e:
                self.failed_count += 1
                handle_alert_error(
                    error=e,
                    handler_id=handler.alert_handler_id,
                    reraise=False,
                    logger=logger,
                )

    def _persist(self, requirement: LatencyRequirement, record: DurationRecord) -> None:
        manager = requirement.persistence_manager
        if manager is None:
            return
        try:
            manager.save(record)
        except Exception as e:
            self.failed_count += 1
            handle_error(
                error=e,
                context=f"persisting {record.identifier}",
                severity="warning",
                reraise=False,
                logger=logger,
            )

    def _drain(self) -> int:
        dropped = 0
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return dropped
            self._queue.task_done()
            dropped += 1
