"""
Factory for creating alert handler instances.

Configuration refers to handler types by registered name. The stock types are
``log`` and ``mail``; applications add their own with
``register_alert_handler_type``.
"""

import logging
from typing import Callable, Dict, Optional

from ..validation import ConfigurationError
from .base import AlertHandler
from .log_handler import LogAlertHandler
from .mail_handler import MailAlertHandler

logger = logging.getLogger(__name__)

AlertHandlerFactory = Callable[[str, Dict[str, str]], AlertHandler]

_HANDLER_TYPES: Dict[str, AlertHandlerFactory] = {
    "log": LogAlertHandler,
    "mail": MailAlertHandler,
}


def register_alert_handler_type(name: str, factory: AlertHandlerFactory) -> None:
    """
    Register an alert handler type under a configuration name.

    Args:
        name: Name used in configuration (``type = "<name>"``)
        factory: Callable taking ``(alert_handler_id, parameters)`` and
            returning an uninitialised handler
    """
    if name in _HANDLER_TYPES:
        logger.warning(f"Replacing alert handler type '{name}'")
    _HANDLER_TYPES[name] = factory


def available_alert_handler_types():
    return sorted(_HANDLER_TYPES)


def create_alert_handler(
    alert_handler_id: str,
    type_name: str,
    parameters: Optional[Dict[str, str]] = None,
) -> AlertHandler:
    """
    Create and initialise an alert handler.

    Raises:
        ConfigurationError: If the type is unknown or the handler rejects
            its parameters
    """
    factory = _HANDLER_TYPES.get(type_name)
    if factory is None:
        raise ConfigurationError(
            f"Unsupported alert handler type '{type_name}' for handler '{alert_handler_id}'. "
            f"Known types: {available_alert_handler_types()}"
        )

    logger.debug(f"Creating '{type_name}' alert handler '{alert_handler_id}'")
    try:
        handler = factory(alert_handler_id, dict(parameters or {}))
        handler.init()
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Unable to create alert handler '{alert_handler_id}': {e}"
        ) from e
    return handler
