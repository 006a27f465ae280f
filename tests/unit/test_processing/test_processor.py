"""
Unit tests for the background latency processor.
"""

import logging
from unittest.mock import MagicMock, patch

import pytest

from latencymon.models.requirements import (
    CappedLatencyRequirement,
    StatisticalLatencyRequirement,
)
from latencymon.processing.processor import LatencyProcessor
from latencymon.processing.stats import ROOT_KEY, StatsMap


@pytest.fixture
def processor():
    processor = LatencyProcessor(queue_timeout=0.01)
    yield processor
    processor.stop(timeout=1.0)


@pytest.mark.unit
class TestCappedEvaluation:
    """Test cases for capped requirement evaluation."""

    def test_root_over_cap_alerts(self, processor, recording_handler, file_persistence, test_utils):
        requirement = CappedLatencyRequirement(
            "svc", expected_latency_ms=100, alert_handlers=[recording_handler],
            persistence_manager=file_persistence,
        )

        processor.process(test_utils.create_record(elapsed_ms=100), requirement)
        processor.process(test_utils.create_record(elapsed_ms=101), requirement)

        assert [r.elapsed_ms for r in recording_handler.cap_exceeded] == [101]

    def test_nested_record_never_alerts_but_is_persisted(self, processor, recording_handler,
                                                         file_persistence, test_utils):
        requirement = CappedLatencyRequirement(
            "svc", expected_latency_ms=1, alert_handlers=[recording_handler],
            persistence_manager=file_persistence,
        )

        processor.process(test_utils.create_record(elapsed_ms=500, root=False), requirement)

        assert recording_handler.total_alerts == 0
        assert len(file_persistence.load_history("svc")) == 1


@pytest.mark.unit
class TestStatisticalEvaluation:
    """Test cases for statistical requirement evaluation."""

    def test_calibration_then_alerts(self, processor, recording_handler, file_persistence, test_utils):
        requirement = StatisticalLatencyRequirement(
            "svc", observations_significance_barrier=2, tolerance_level=0.5,
            alert_handlers=[recording_handler], persistence_manager=file_persistence,
        )

        for elapsed in (100, 100, 150, 200):
            processor.process(test_utils.create_record(elapsed_ms=elapsed), requirement)

        # mean 100 -> 150 is not above 100 + 50; mean 116.7 -> 200 is
        [(record, deviation, mean)] = recording_handler.tolerance_exceeded
        assert record.elapsed_ms == 200
        assert mean == pytest.approx(350 / 3)
        assert deviation == pytest.approx(200 - 350 / 3)

    def test_stats_keyed_by_root_and_method(self, processor, file_persistence, test_utils):
        requirement = StatisticalLatencyRequirement("svc", persistence_manager=file_persistence)

        processor.process(test_utils.create_record(elapsed_ms=10, root=True), requirement)
        processor.process(test_utils.create_record(elapsed_ms=4, root=False, method_name="inner"),
                          requirement)

        stats_map = processor.statistics_for("svc")
        assert stats_map.get(ROOT_KEY).running_average == pytest.approx(10.0)
        assert stats_map.get("inner").running_average == pytest.approx(4.0)

    def test_new_requirement_object_gets_fresh_stats(self, processor, file_persistence, test_utils):
        first = StatisticalLatencyRequirement("svc", persistence_manager=file_persistence)
        processor.process(test_utils.create_record(elapsed_ms=10), first)
        old_map = processor.statistics_for("svc")

        second = StatisticalLatencyRequirement("svc", persistence_manager=file_persistence)
        processor.process(test_utils.create_record(elapsed_ms=10), second)

        assert processor.statistics_for("svc") is not old_map
        assert processor.statistics_for("svc", first) is old_map
        # the fresh map replayed the record persisted for the first requirement
        assert processor.statistics_for("svc").get(ROOT_KEY).observations == 2

    def test_alternating_requirements_replay_history_once_each(self, processor, file_persistence,
                                                              test_utils):
        old = StatisticalLatencyRequirement("svc", persistence_manager=file_persistence)
        new = StatisticalLatencyRequirement("svc", persistence_manager=file_persistence)

        with patch("latencymon.processing.processor.StatsMap", wraps=StatsMap) as stats_map_class:
            for index in range(10):
                requirement = old if index % 2 == 0 else new
                processor.process(test_utils.create_record(elapsed_ms=10), requirement)

        assert stats_map_class.call_count == 2
        assert processor.statistics_for("svc", old).get(ROOT_KEY).observations == 5
        # one record of the old requirement was already on disk when the new map replayed
        assert processor.statistics_for("svc", new).get(ROOT_KEY).observations == 6

    def test_discard_statistics_keeps_current_requirements(self, processor, file_persistence,
                                                           test_utils):
        old = StatisticalLatencyRequirement("svc", persistence_manager=file_persistence)
        new = StatisticalLatencyRequirement("svc", persistence_manager=file_persistence)
        processor.process(test_utils.create_record(), old)
        processor.process(test_utils.create_record(), new)

        processor.discard_statistics([new])

        assert processor.statistics_for("svc", old) is None
        assert processor.statistics_for("svc", new) is processor.statistics_for("svc")


@pytest.mark.unit
class TestErrorHandling:
    """Test cases for errored records and failing collaborators."""

    def test_errors_ignored_by_default(self, processor, recording_handler, file_persistence, test_utils):
        requirement = CappedLatencyRequirement(
            "svc", alert_handlers=[recording_handler], persistence_manager=file_persistence,
        )

        processor.process(test_utils.create_record(errored=True, elapsed_ms=5000), requirement)

        assert recording_handler.total_alerts == 0
        assert file_persistence.load_history("svc") == []

    def test_errors_reported_when_not_ignored(self, processor, make_handler, file_persistence,
                                              test_utils):
        first, second = make_handler("a"), make_handler("b")
        requirement = CappedLatencyRequirement(
            "svc", ignore_errors=False, alert_handlers=[first, second],
            persistence_manager=file_persistence,
        )

        processor.process(test_utils.create_record(errored=True), requirement)

        assert len(first.failures) == 1
        assert len(second.failures) == 1
        assert file_persistence.load_history("svc") == []

    def test_failing_handler_does_not_stop_others(self, processor, recording_handler,
                                                  file_persistence, test_utils, caplog):
        broken = MagicMock()
        broken.alert_handler_id = "broken"
        broken.latency_exceeded_cap.side_effect = RuntimeError("handler bug")
        requirement = CappedLatencyRequirement(
            "svc", expected_latency_ms=1, alert_handlers=[broken, recording_handler],
            persistence_manager=file_persistence,
        )

        with caplog.at_level(logging.ERROR):
            processor.process(test_utils.create_record(elapsed_ms=50), requirement)

        assert len(recording_handler.cap_exceeded) == 1
        assert processor.failed_count == 1
        assert "alert handler 'broken'" in caplog.text
        assert len(file_persistence.load_history("svc")) == 1

    def test_failing_persistence_is_swallowed(self, processor, test_utils, caplog):
        manager = MagicMock()
        manager.save.side_effect = RuntimeError("store offline")
        requirement = CappedLatencyRequirement("svc", persistence_manager=manager)

        with caplog.at_level(logging.WARNING):
            processor.process(test_utils.create_record(), requirement)

        assert processor.failed_count == 1
        assert "store offline" in caplog.text


@pytest.mark.unit
class TestWorkerLifecycle:
    """Test cases for the worker thread."""

    def test_submit_and_flush(self, processor, recording_handler, file_persistence, test_utils):
        requirement = CappedLatencyRequirement(
            "svc", expected_latency_ms=10, alert_handlers=[recording_handler],
            persistence_manager=file_persistence,
        )
        processor.start()
        assert processor.is_running

        for elapsed in (5, 50, 500):
            processor.submit(test_utils.create_record(elapsed_ms=elapsed), requirement)

        assert processor.flush(timeout=5.0)
        assert processor.processed_count == 3
        assert len(recording_handler.cap_exceeded) == 2

    def test_stop_drops_pending_entries(self, processor, file_persistence, test_utils, caplog):
        requirement = CappedLatencyRequirement("svc", persistence_manager=file_persistence)
        processor.start()
        # let the worker exit before anything is queued
        processor.stop_event.set()
        processor.thread.join(timeout=1.0)
        processor.submit(test_utils.create_record(), requirement)

        with caplog.at_level(logging.WARNING):
            processor.stop(timeout=1.0)

        assert not processor.is_running
        assert processor.pending_count == 0
        assert processor.processed_count == 0
        assert "dropped 1 unprocessed duration" in caplog.text

    def test_flush_times_out_without_worker(self, processor, file_persistence, test_utils):
        requirement = CappedLatencyRequirement("svc", persistence_manager=file_persistence)
        processor.submit(test_utils.create_record(), requirement)

        assert processor.flush(timeout=0.05) is False

    def test_start_twice_warns(self, processor, caplog):
        processor.start()
        with caplog.at_level(logging.WARNING):
            processor.start()
        assert "already running" in caplog.text
