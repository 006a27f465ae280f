"""
Factory for creating persistence manager instances.

Configuration names a persistence manager type by a registered name rather
than a class path. Applications can register their own implementations with
``register_persistence_manager_type``.
"""

import logging
from typing import Callable, Dict, Optional

from ..validation import ConfigurationError
from .base import DurationPersistenceManager
from .file_manager import FilePersistenceManager

logger = logging.getLogger(__name__)

DEFAULT_PERSISTENCE_TYPE = "file"

_PERSISTENCE_TYPES: Dict[str, Callable[[], DurationPersistenceManager]] = {
    DEFAULT_PERSISTENCE_TYPE: FilePersistenceManager,
}


def register_persistence_manager_type(
    name: str, factory: Callable[[], DurationPersistenceManager]
) -> None:
    """
    Register a persistence manager type under a configuration name.

    Args:
        name: Name used in configuration (``persistence_manager = "<name>"``)
        factory: Zero-argument callable returning an uninitialised manager
    """
    if name in _PERSISTENCE_TYPES:
        logger.warning(f"Replacing persistence manager type '{name}'")
    _PERSISTENCE_TYPES[name] = factory


def create_persistence_manager(
    type_name: str = DEFAULT_PERSISTENCE_TYPE,
    parameters: Optional[Dict[str, str]] = None,
) -> DurationPersistenceManager:
    """
    Create and initialise a persistence manager.

    Args:
        type_name: Registered persistence manager type
        parameters: Parameters passed to the manager's init()

    Returns:
        An initialised DurationPersistenceManager

    Raises:
        ConfigurationError: If the type is unknown or initialisation fails
    """
    factory = _PERSISTENCE_TYPES.get(type_name)
    if factory is None:
        raise ConfigurationError(
            f"Unsupported persistence manager type: {type_name}. "
            f"Known types: {sorted(_PERSISTENCE_TYPES)}"
        )

    logger.debug(f"Creating '{type_name}' persistence manager")
    try:
        manager = factory()
        manager.init(parameters or {})
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Unable to create persistence manager '{type_name}': {e}"
        ) from e
    return manager
