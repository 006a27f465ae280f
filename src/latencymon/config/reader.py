"""
Builds alert handlers and requirements from a configuration document.
"""

import logging
import tomllib
from typing import IO, TYPE_CHECKING, Any, Dict, List, Mapping, Tuple

from ..alerts.base import AlertHandler
from ..alerts.factory import create_alert_handler
from ..models.config import (
    CappedRequirementConfig,
    LatencyConfig,
    RequirementConfig,
    StatisticalRequirementConfig,
)
from ..models.requirements import (
    CappedLatencyRequirement,
    LatencyRequirement,
    StatisticalLatencyRequirement,
)
from ..persistence.factory import DEFAULT_PERSISTENCE_TYPE, create_persistence_manager
from ..validation import ConfigurationError
from .loader import load_toml_stream
from .validators import validate_latency_config

if TYPE_CHECKING:
    from ..processing.registry import ResourceRegistry

logger = logging.getLogger(__name__)


def _build_requirement(config: RequirementConfig,
                       handlers: Mapping[str, AlertHandler]) -> LatencyRequirement:
    kwargs: Dict[str, Any] = {
        "work_category": config.work_category,
        "alert_handlers": tuple(handlers[handler_id] for handler_id in config.alert_handler_ids),
    }
    if config.ignore_errors is not None:
        kwargs["ignore_errors"] = config.ignore_errors
    if config.persistence_manager or config.persistence_parameters:
        kwargs["persistence_manager"] = create_persistence_manager(
            config.persistence_manager or DEFAULT_PERSISTENCE_TYPE,
            config.persistence_parameters,
        )

    if isinstance(config, CappedRequirementConfig):
        return CappedLatencyRequirement(expected_latency_ms=config.expected_latency, **kwargs)
    if isinstance(config, StatisticalRequirementConfig):
        return StatisticalLatencyRequirement(
            observations_significance_barrier=config.observations_significance_barrier,
            tolerance_level=config.tolerance_level,
            **kwargs
        )
    raise ConfigurationError(f"Unsupported requirement declaration: {type(config).__name__}")


def build_resources(config: LatencyConfig) -> Tuple[List[AlertHandler], List[LatencyRequirement]]:
    """
    Create initialised handlers and requirements for a validated configuration.

    Raises:
        ConfigurationError: If a handler or persistence manager cannot be created
    """
    handlers: Dict[str, AlertHandler] = {}
    for handler_config in config.alert_handlers:
        handlers[handler_config.id] = create_alert_handler(
            handler_config.id, handler_config.type, handler_config.parameters
        )

    requirements = [_build_requirement(item, handlers) for item in config.requirements]
    return list(handlers.values()), requirements


def parse_configuration(stream: IO[bytes], description: str = "configuration") -> LatencyConfig:
    """
    Parse and validate a TOML configuration stream.

    Raises:
        ConfigurationError: If the stream cannot be read or is invalid
    """
    try:
        data = load_toml_stream(stream, description)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Malformed {description}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Unable to read {description}: {e}") from e
    return validate_latency_config(data)


def read_configuration(registry: "ResourceRegistry", stream: IO[bytes],
                       description: str = "configuration") -> LatencyConfig:
    """
    Load a configuration stream into a registry.

    Nothing is registered unless the whole configuration builds.

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    config = parse_configuration(stream, description)
    try:
        handlers, requirements = build_resources(config)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Unable to build {description}: {e}") from e

    for handler in handlers:
        registry.add_alert_handler(handler)
    for requirement in requirements:
        registry.add_requirement(requirement)

    logger.info(
        f"Loaded {len(requirements)} latency requirement(s) and "
        f"{len(handlers)} alert handler(s) from {description}"
    )
    return config
