"""
Unit tests for configuration source resolution.
"""

import io
import logging
import tomllib

import pytest

from latencymon.config.loader import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_RESOURCE,
    find_config_source,
    load_toml_source,
    load_toml_stream,
    open_config_source,
    resolve_classpath_resource,
)


@pytest.mark.unit
class TestFindConfigSource:
    """Test cases for source precedence."""

    def test_explicit_wins(self, monkeypatch, temp_dir):
        monkeypatch.setenv(CONFIG_ENV_VAR, "/from/env.toml")
        assert find_config_source(temp_dir / "x.toml") == (str(temp_dir / "x.toml"), False)

    def test_environment(self, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, "/from/env.toml")
        assert find_config_source() == ("/from/env.toml", False)

    def test_default(self):
        assert find_config_source() == (DEFAULT_CONFIG_RESOURCE, True)


@pytest.mark.unit
class TestOpenConfigSource:
    """Test cases for opening sources."""

    def test_plain_path(self, config_file):
        with open_config_source(config_file) as stream:
            assert b"ops-log" in stream.read()

    def test_missing_path(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            open_config_source(temp_dir / "absent.toml")

    def test_classpath_resource(self, config_file, monkeypatch):
        monkeypatch.syspath_prepend(str(config_file.parent))

        assert resolve_classpath_resource(config_file.name) == config_file
        with open_config_source(f"CLASSPATH:{config_file.name}") as stream:
            assert b"ops-log" in stream.read()

    def test_missing_classpath_resource(self):
        with pytest.raises(FileNotFoundError):
            open_config_source("CLASSPATH:no-such-latencymon.toml")

    def test_file_url(self, config_file):
        with open_config_source(config_file.as_uri()) as stream:
            assert b"ops-log" in stream.read()

    def test_missing_file_url(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            open_config_source((temp_dir / "absent.toml").as_uri())


@pytest.mark.unit
class TestLoadToml:
    """Test cases for TOML parsing."""

    def test_load_source(self, config_file):
        data = load_toml_source(config_file)
        assert data["alert_handlers"][0]["id"] == "ops-log"
        assert data["alert_handlers"][0]["parameters"]["logger.category"] == "ops"

    def test_malformed_stream(self):
        with pytest.raises(tomllib.TOMLDecodeError):
            load_toml_stream(io.BytesIO(b"alert_handlers = [unclosed"), "broken.toml")

    def test_malformed_stream_logged_once(self, caplog):
        with caplog.at_level(logging.CRITICAL):
            with pytest.raises(tomllib.TOMLDecodeError):
                load_toml_stream(io.BytesIO(b"x = "), "broken.toml")

        critical = [r for r in caplog.records if r.levelno == logging.CRITICAL]
        assert len(critical) == 1
        assert "parsing broken.toml" in critical[0].getMessage()
