"""
Unit tests for field validators and error handling helpers.
"""

import logging

import pytest

from latencymon.validation import (
    ConfigurationError,
    ErrorSeverity,
    LatencyMonitorError,
    ValidationError,
    handle_error,
    validate_boolean,
    validate_enum_choice,
    validate_non_empty_string,
    validate_positive_float,
    validate_positive_integer,
    validate_string_mapping,
)


@pytest.mark.unit
class TestValidators:
    """Test cases for the field validators."""

    def test_positive_integer_accepts_numeric_strings(self):
        assert validate_positive_integer("42") == 42

    @pytest.mark.parametrize("value", [True, "abc", 1.5, None])
    def test_positive_integer_rejects_invalid(self, value):
        with pytest.raises(ValidationError):
            validate_positive_integer(value)

    def test_positive_integer_bounds(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_positive_integer(70000, max_value=65535, field_name="mail.port")
        assert exc_info.value.field_name == "mail.port"
        assert exc_info.value.value == 70000

    def test_positive_float(self):
        assert validate_positive_float("0.25") == pytest.approx(0.25)
        with pytest.raises(ValidationError):
            validate_positive_float(-0.1)

    def test_non_empty_string(self):
        assert validate_non_empty_string("svc") == "svc"
        with pytest.raises(ValidationError):
            validate_non_empty_string("   ")

    @pytest.mark.parametrize("value,expected", [(True, True), ("false", False), (" TRUE ", True)])
    def test_boolean(self, value, expected):
        assert validate_boolean(value) is expected

    def test_boolean_rejects_other_literals(self):
        with pytest.raises(ValidationError):
            validate_boolean("yes")

    def test_enum_choice_case_insensitive(self):
        assert validate_enum_choice("warn", ["INFO", "WARN"], case_sensitive=False) == "WARN"
        with pytest.raises(ValidationError):
            validate_enum_choice("warn", ["INFO", "WARN"])

    def test_string_mapping_normalises_values(self):
        result = validate_string_mapping({"max.file.bytes": 1024, "flag": True, "name": "x"})
        assert result == {"max.file.bytes": "1024", "flag": "true", "name": "x"}

    def test_string_mapping_rejects_nested_values(self):
        with pytest.raises(ValidationError):
            validate_string_mapping({"nested": {"a": 1}})

    def test_validation_error_is_configuration_error(self):
        assert issubclass(ValidationError, ConfigurationError)
        assert issubclass(ConfigurationError, LatencyMonitorError)


@pytest.mark.unit
class TestHandleError:
    """Test cases for handle_error."""

    def test_logs_and_reraises(self, caplog):
        with caplog.at_level(logging.ERROR):
            with pytest.raises(ValueError):
                handle_error(ValueError("bad"), "unit test")
        assert "Error in unit test: bad" in caplog.text

    def test_logs_without_reraise(self, caplog):
        with caplog.at_level(logging.WARNING):
            handle_error(OSError("disk"), "saving", severity=ErrorSeverity.WARNING, reraise=False)
        assert "Error in saving: disk" in caplog.text
