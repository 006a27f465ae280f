"""
Unit tests for alert message templates.
"""

import pytest

from latencymon.alerts.formatter import (
    DEFAULT_CAP_EXCEEDED_MESSAGE,
    format_cap_exceeded_message,
    format_tolerance_exceeded_message,
    format_work_failure_message,
)
from latencymon.models.requirements import (
    CappedLatencyRequirement,
    StatisticalLatencyRequirement,
)


@pytest.fixture
def capped(file_persistence):
    return CappedLatencyRequirement("svc", expected_latency_ms=100, persistence_manager=file_persistence)


@pytest.fixture
def statistical(file_persistence):
    return StatisticalLatencyRequirement("svc", tolerance_level=0.25, persistence_manager=file_persistence)


@pytest.mark.unit
class TestFormatter:
    """Test cases for token substitution."""

    def test_default_cap_message(self, capped, test_utils):
        record = test_utils.create_record(thread_id="worker-1", elapsed_ms=1500)

        message = format_cap_exceeded_message(DEFAULT_CAP_EXCEEDED_MESSAGE, capped, record)

        assert message == (
            "worker-1: WorkCategory 'svc' exceeded specified latency 100, actual duration 1s.500ms."
        )

    def test_tolerance_tokens(self, statistical, test_utils):
        record = test_utils.create_record(elapsed_ms=15)
        template = "@work.category@ @tolerance@% mean=@mean@ dev=@deviation@ took @duration@"

        message = format_tolerance_exceeded_message(template, statistical, record, 5.0, 10.0)

        assert message == "svc 25% mean=10 dev=5 took 15ms"

    def test_failure_tokens(self, capped, test_utils):
        try:
            raise ValueError("broken pipe")
        except ValueError as e:
            record = test_utils.create_record(errored=True, error=e)

        message = format_work_failure_message(
            "@exception.message@|@exception.stacktrace@", capped, record
        )

        text, trace = message.split("|", 1)
        assert text == "broken pipe"
        assert "Traceback" in trace
        assert "ValueError: broken pipe" in trace

    def test_failure_without_error_leaves_tokens_empty(self, capped, test_utils):
        record = test_utils.create_record(errored=True)

        message = format_work_failure_message("[@exception.message@]", capped, record)

        assert message == "[]"

    def test_unknown_tokens_pass_through(self, capped, test_utils):
        record = test_utils.create_record()

        message = format_cap_exceeded_message("@host@ @work.category@", capped, record)

        assert message == "@host@ svc"
