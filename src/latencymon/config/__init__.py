"""
Configuration loading for latencymon.

Configuration is a TOML document declaring alert handlers and the capped and
statistical latency requirements that use them.
"""

from .loader import (
    CLASSPATH_PREFIX,
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_RESOURCE,
    find_config_source,
    load_toml_source,
    load_toml_stream,
    open_config_source,
    resolve_classpath_resource,
)
from .reader import build_resources, parse_configuration, read_configuration
from .validators import validate_latency_config

__all__ = [
    "CLASSPATH_PREFIX",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_RESOURCE",
    "find_config_source",
    "open_config_source",
    "resolve_classpath_resource",
    "load_toml_source",
    "load_toml_stream",
    "parse_configuration",
    "read_configuration",
    "build_resources",
    "validate_latency_config",
]
