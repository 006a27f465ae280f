"""
Configuration source resolution and TOML loading.

A configuration source is one of:

- ``CLASSPATH:<name>``: a resource looked up on each ``sys.path`` entry
- an ``http://``, ``https://`` or ``file://`` URL
- a filesystem path

The factory tries, in order, an explicit source, the ``LATENCYMON_CONFIG``
environment variable and the default ``CLASSPATH:latencymon.toml`` resource.
"""

import logging
import os
import sys
import tomllib
import urllib.request
from pathlib import Path
from typing import IO, Any, Dict, Optional, Tuple, Union

from ..validation import ErrorSeverity, handle_config_error

logger = logging.getLogger(__name__)

CLASSPATH_PREFIX = "CLASSPATH:"
CONFIG_ENV_VAR = "LATENCYMON_CONFIG"
DEFAULT_CONFIG_RESOURCE = f"{CLASSPATH_PREFIX}latencymon.toml"

_URL_SCHEMES = ("http://", "https://", "file://")

ConfigSource = Union[str, Path]


def find_config_source(explicit: Optional[ConfigSource] = None) -> Tuple[str, bool]:
    """
    Pick the configuration source to load.

    Args:
        explicit: Source given by the caller, if any

    Returns:
        (source, is_default) where is_default marks the fallback resource
    """
    if explicit:
        return str(explicit), False

    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        logger.debug(f"Using configuration from ${CONFIG_ENV_VAR}: {from_env}")
        return from_env, False

    return DEFAULT_CONFIG_RESOURCE, True


def resolve_classpath_resource(name: str) -> Optional[Path]:
    """Find ``name`` relative to the entries of ``sys.path``."""
    relative = name.lstrip("/")
    for entry in sys.path:
        candidate = Path(entry or os.getcwd()) / relative
        if candidate.is_file():
            return candidate
    return None


def open_config_source(source: ConfigSource) -> IO[bytes]:
    """
    Open a configuration source as a binary stream.

    Raises:
        FileNotFoundError: If the source does not exist
    """
    source = str(source)

    if source.upper().startswith(CLASSPATH_PREFIX):
        name = source[len(CLASSPATH_PREFIX):]
        path = resolve_classpath_resource(name)
        if path is None:
            raise FileNotFoundError(f"Resource '{name}' not found on sys.path")
        logger.info(f"Loading configuration resource from: {path}")
        return open(path, "rb")

    if source.lower().startswith(_URL_SCHEMES):
        logger.info(f"Loading configuration from URL: {source}")
        try:
            return urllib.request.urlopen(source)
        except OSError as e:
            raise FileNotFoundError(f"Unable to open configuration URL {source}: {e}") from e

    path = Path(source).expanduser()
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    logger.info(f"Loading configuration file from: {path}")
    return open(path, "rb")


def load_toml_stream(stream: IO[bytes], description: str = "configuration") -> Dict[str, Any]:
    """
    Parse TOML from a binary stream.

    Raises:
        tomllib.TOMLDecodeError: If the content is malformed
    """
    try:
        return tomllib.load(stream)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.CRITICAL,
            reraise=False,
            logger=logger
        )
        raise


def load_toml_source(source: ConfigSource) -> Dict[str, Any]:
    """Open and parse a configuration source."""
    with open_config_source(source) as stream:
        return load_toml_stream(stream, description=str(source))
