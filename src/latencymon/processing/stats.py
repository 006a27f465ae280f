"""
Running statistics for statistical latency requirements.

Each statistical requirement owns a StatsMap: one RunningStats bucket per
method name, plus a shared bucket for root executions. A StatsMap is seeded
from the requirement's persisted history the first time it is built.

Both types are touched by the processor thread only and are not locked.
"""

import logging
from typing import Dict, Iterator, Optional

from ..models.duration import DurationRecord
from ..models.requirements import StatisticalLatencyRequirement
from ..validation import HistoryLoadError, handle_error

logger = logging.getLogger(__name__)

# Stats key used for root executions
ROOT_KEY = "<CALL.ROOT>"


def stats_key_for(record: DurationRecord) -> str:
    return ROOT_KEY if record.root else record.method_name


class RunningStats:
    """Cumulative mean of elapsed times for one stats key."""

    __slots__ = ("significance_barrier", "total_ms", "observations", "running_average")

    def __init__(self, significance_barrier: int):
        self.significance_barrier = significance_barrier
        self.total_ms = 0
        self.observations = 0
        self.running_average = 0.0

    @property
    def significance_barrier_breached(self) -> bool:
        return self.observations >= self.significance_barrier

    def update(self, elapsed_ms: int) -> None:
        # Python ints do not overflow
        self.total_ms += elapsed_ms
        self.observations += 1
        self.running_average = self.total_ms / self.observations

    def __repr__(self) -> str:
        return (
            f"RunningStats(observations={self.observations}, "
            f"running_average={self.running_average:.3f}, "
            f"barrier={self.significance_barrier})"
        )


class StatsMap:
    """Stats buckets of one statistical requirement, keyed by stats key."""

    def __init__(self, requirement: StatisticalLatencyRequirement, load_history: bool = True):
        self.requirement = requirement
        self._stats: Dict[str, RunningStats] = {}
        self.replayed_count = 0
        if load_history:
            self._replay_history()

    def get_or_create(self, key: str) -> RunningStats:
        stats = self._stats.get(key)
        if stats is None:
            stats = RunningStats(self.requirement.observations_significance_barrier)
            self._stats[key] = stats
        return stats

    def get(self, key: str) -> Optional[RunningStats]:
        return self._stats.get(key)

    def for_record(self, record: DurationRecord) -> RunningStats:
        return self.get_or_create(stats_key_for(record))

    def keys(self):
        return self._stats.keys()

    def __contains__(self, key: str) -> bool:
        return key in self._stats

    def __iter__(self) -> Iterator[str]:
        return iter(self._stats)

    def __len__(self) -> int:
        return len(self._stats)

    def _replay_history(self) -> None:
        manager = self.requirement.persistence_manager
        if manager is None:
            return

        category = self.requirement.work_category
        try:
            history = manager.load_history(category)
        except HistoryLoadError as e:
            handle_error(
                error=e,
                context=f"replaying history for '{category}'",
                severity="warning",
                reraise=False,
                logger=logger,
            )
            return
        except OSError as e:
            handle_error(
                error=e,
                context=f"reading history for '{category}'",
                severity="warning",
                reraise=False,
                logger=logger,
            )
            return

        for record in history:
            if record.errored:
                continue
            self.for_record(record).update(record.elapsed_ms)
            self.replayed_count += 1

        if self.replayed_count:
            logger.info(
                f"Replayed {self.replayed_count} historical durations "
                f"into {len(self._stats)} stats bucket(s) for '{category}'"
            )
