"""
Pytest configuration and shared fixtures for the latencymon test suite.

This module provides common fixtures, test doubles and configuration
for all test modules in the latencymon project.
"""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import List, Optional

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from latencymon.alerts.base import AlertHandler  # noqa: E402
from latencymon.models.duration import DurationIdentifier, DurationRecord  # noqa: E402
from latencymon.persistence.file_manager import (  # noqa: E402
    DATA_DIRECTORY_PARAM,
    FilePersistenceManager,
)


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Test Doubles
# ============================================================================


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, elapsed_ms: int) -> None:
        self.now += elapsed_ms


class RecordingAlertHandler(AlertHandler):
    """Alert handler that remembers every callback it receives."""

    def __init__(self, alert_handler_id: str = "H", parameters=None):
        super().__init__(alert_handler_id, parameters)
        self.cap_exceeded: List[DurationRecord] = []
        self.tolerance_exceeded: List[tuple] = []
        self.failures: List[DurationRecord] = []
        self.calls: List[str] = []

    def init(self) -> None:
        super().init()
        self._mark_initialized()

    def latency_exceeded_cap(self, requirement, record):
        self.calls.append("cap")
        self.cap_exceeded.append(record)

    def latency_deviation_exceeded_tolerance(self, requirement, record, deviation, mean):
        self.calls.append("tolerance")
        self.tolerance_exceeded.append((record, deviation, mean))

    def work_category_failed(self, requirement, record):
        self.calls.append("failure")
        self.failures.append(record)

    @property
    def total_alerts(self) -> int:
        return len(self.calls)


class TestUtils:
    """Utility functions for testing."""

    @staticmethod
    def create_record(
        category: str = "svc",
        thread_id: str = "MainThread",
        method_name: str = "app.work",
        start_ms: int = 1000,
        elapsed_ms: int = 10,
        root: bool = True,
        errored: bool = False,
        error: Optional[BaseException] = None,
    ) -> DurationRecord:
        """Create a closed duration record."""
        return DurationRecord(
            identifier=DurationIdentifier(category, thread_id),
            method_name=method_name,
            start_ms=start_ms,
            end_ms=start_ms + elapsed_ms,
            root=root,
            errored=errored,
            error=error,
        )

    @staticmethod
    def run_timed(monitor, clock: FakeClock, elapsed_ms: int, method_name: str = "app.work",
                  error: Optional[BaseException] = None, errored: bool = False):
        """Run one start/complete (or start/error) pair taking ``elapsed_ms``."""
        monitor.start(method_name)
        clock.advance(elapsed_ms)
        if errored or error is not None:
            return monitor.error(error)
        return monitor.complete()


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_default_data_dir(temp_dir, monkeypatch):
    """Point the default persistence directory at a per-test directory."""
    default_dir = temp_dir / "default-data"
    default_dir.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(default_dir))
    monkeypatch.delenv("LATENCYMON_CONFIG", raising=False)
    yield default_dir


@pytest.fixture(autouse=True)
def reset_process_factory():
    """Shut down the process-wide factory after each test."""
    yield
    from latencymon.handle import reset_factory

    reset_factory(timeout=1.0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recording_handler():
    handler = RecordingAlertHandler("H")
    handler.init()
    return handler


@pytest.fixture
def data_dir(temp_dir):
    path = temp_dir / "data"
    path.mkdir()
    return path


@pytest.fixture
def file_persistence(data_dir):
    """Initialised file persistence manager writing to a temp directory."""
    manager = FilePersistenceManager()
    manager.init({DATA_DIRECTORY_PARAM: str(data_dir)})
    yield manager
    manager.close()


@pytest.fixture
def test_utils():
    """Provide test utility functions."""
    return TestUtils


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def sample_config_data(data_dir):
    """Sample configuration document."""
    return {
        "alert_handlers": [
            {
                "id": "ops-log",
                "type": "log",
                "parameters": {"logger.category": "ops", "logLevel": "WARN"},
            },
        ],
        "latency_requirements": {
            "capped": [
                {
                    "work_category": "svc",
                    "expected_latency": 100,
                    "ignore_errors": False,
                    "persistence_parameters": {"data.directory": str(data_dir)},
                    "alert_handler_ids": ["ops-log"],
                },
            ],
            "statistical": [
                {
                    "work_category": "db",
                    "observations_significance_barrier": 5,
                    "tolerance_level": 0.25,
                    "persistence_manager": "file",
                    "persistence_parameters": {"data.directory": str(data_dir)},
                    "alert_handler_ids": ["ops-log"],
                },
            ],
        },
    }


@pytest.fixture
def config_file(temp_dir, sample_config_data):
    """Write the sample configuration to a TOML file."""
    import toml

    path = temp_dir / "latencymon.toml"
    with open(path, "w") as f:
        toml.dump(sample_config_data, f)
    return path


@pytest.fixture
def make_handler():
    """Factory for initialised recording alert handlers."""

    def _make(alert_handler_id: str = "H", parameters=None) -> RecordingAlertHandler:
        handler = RecordingAlertHandler(alert_handler_id, parameters)
        handler.init()
        return handler

    return _make
