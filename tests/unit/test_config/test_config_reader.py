"""
Unit tests for building resources from configuration.
"""

import io

import pytest
import toml

from latencymon.alerts.log_handler import LogAlertHandler
from latencymon.config.reader import parse_configuration, read_configuration
from latencymon.models.requirements import (
    CappedLatencyRequirement,
    StatisticalLatencyRequirement,
)
from latencymon.persistence.file_manager import FilePersistenceManager
from latencymon.processing.registry import ResourceRegistry
from latencymon.validation import ConfigurationError


def as_stream(data) -> io.BytesIO:
    return io.BytesIO(toml.dumps(data).encode("utf-8"))


@pytest.mark.unit
class TestReadConfiguration:
    """Test cases for read_configuration."""

    def test_registers_handlers_and_requirements(self, sample_config_data, data_dir):
        registry = ResourceRegistry()

        read_configuration(registry, as_stream(sample_config_data), "sample")

        handler = registry.get_alert_handler("ops-log")
        assert isinstance(handler, LogAlertHandler)
        assert handler.is_initialized
        assert handler.target_logger.name == "ops"

        svc = registry.get_requirement("svc")
        db = registry.get_requirement("db")
        assert isinstance(svc, CappedLatencyRequirement)
        assert isinstance(db, StatisticalLatencyRequirement)
        assert svc.alert_handlers == (handler,)
        assert db.alert_handlers[0] is handler
        assert isinstance(svc.persistence_manager, FilePersistenceManager)
        assert svc.persistence_manager.data_directory == data_dir
        registry.reset()

    def test_default_persistence_when_unconfigured(self, isolated_default_data_dir):
        registry = ResourceRegistry()
        data = {
            "alert_handlers": [{"id": "h", "type": "log"}],
            "latency_requirements": {
                "capped": [{"work_category": "plain", "alert_handler_ids": ["h"]}]
            },
        }

        read_configuration(registry, as_stream(data))

        requirement = registry.get_requirement("plain")
        assert requirement.ignore_errors is True
        assert requirement.persistence_manager.data_directory == isolated_default_data_dir
        registry.reset()

    def test_unknown_handler_type_registers_nothing(self, sample_config_data):
        sample_config_data["alert_handlers"].append({"id": "pager", "type": "pager"})
        registry = ResourceRegistry()

        with pytest.raises(ConfigurationError):
            read_configuration(registry, as_stream(sample_config_data))

        assert len(registry) == 0
        assert registry.alert_handlers == []

    def test_unknown_persistence_type(self, sample_config_data):
        sample_config_data["latency_requirements"]["statistical"][0]["persistence_manager"] = "s3"

        with pytest.raises(ConfigurationError):
            read_configuration(ResourceRegistry(), as_stream(sample_config_data))


@pytest.mark.unit
class TestParseConfiguration:
    """Test cases for parse_configuration."""

    def test_malformed_toml(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_configuration(io.BytesIO(b"[[alert_handlers]\n"), "bad.toml")
        assert "bad.toml" in str(exc_info.value)

    def test_undecodable_bytes(self):
        with pytest.raises(ConfigurationError):
            parse_configuration(io.BytesIO(b"\xff\xfe\x00"), "binary")
