"""
Configuration validation utilities.

Turns the raw TOML document into the declarative models of
``latencymon.models.config``. Handler references are checked here so that a
configuration naming an undeclared handler fails before anything is built.
"""

import logging
from typing import Any, Dict, List, Mapping, Set

from ..models.config import (
    AlertHandlerConfig,
    CappedRequirementConfig,
    LatencyConfig,
    StatisticalRequirementConfig,
)
from ..models.requirements import (
    DEFAULT_EXPECTED_LATENCY_MS,
    DEFAULT_SIGNIFICANCE_BARRIER,
    DEFAULT_TOLERANCE_LEVEL,
)
from ..validation import (
    ValidationError,
    validate_boolean,
    validate_non_empty_string,
    validate_positive_float,
    validate_positive_integer,
    validate_string_mapping,
)

logger = logging.getLogger(__name__)


def _as_table_list(value: Any, field_name: str) -> List[Mapping[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, Mapping) for item in value):
        raise ValidationError(
            f"{field_name} must be an array of tables",
            field_name=field_name,
            value=value
        )
    return value


def validate_alert_handler_config(data: Mapping[str, Any], index: int) -> AlertHandlerConfig:
    """
    Validate one ``[[alert_handlers]]`` entry.

    Raises:
        ValidationError: If validation fails
    """
    prefix = f"alert_handlers[{index}]"
    handler_id = validate_non_empty_string(data.get("id"), field_name=f"{prefix}.id")
    type_name = validate_non_empty_string(data.get("type"), field_name=f"{prefix}.type")
    parameters = validate_string_mapping(data.get("parameters"), field_name=f"{prefix}.parameters")
    return AlertHandlerConfig(id=handler_id, type=type_name, parameters=parameters)


def _validate_common(data: Mapping[str, Any], prefix: str,
                     handler_ids: Set[str]) -> Dict[str, Any]:
    work_category = validate_non_empty_string(
        data.get("work_category"), field_name=f"{prefix}.work_category"
    )

    raw_ids = data.get("alert_handler_ids")
    if isinstance(raw_ids, str):
        raw_ids = [raw_ids]
    if not isinstance(raw_ids, list) or not raw_ids:
        raise ValidationError(
            f"{prefix}.alert_handler_ids must list at least one alert handler id",
            field_name=f"{prefix}.alert_handler_ids",
            value=raw_ids
        )
    alert_handler_ids = []
    for handler_id in raw_ids:
        handler_id = validate_non_empty_string(handler_id, field_name=f"{prefix}.alert_handler_ids")
        if handler_id not in handler_ids:
            raise ValidationError(
                f"{prefix} references unknown alert handler '{handler_id}'",
                field_name=f"{prefix}.alert_handler_ids",
                value=handler_id
            )
        alert_handler_ids.append(handler_id)

    ignore_errors = data.get("ignore_errors")
    if ignore_errors is not None:
        ignore_errors = validate_boolean(ignore_errors, field_name=f"{prefix}.ignore_errors")

    persistence_manager = data.get("persistence_manager")
    if persistence_manager is not None:
        persistence_manager = validate_non_empty_string(
            persistence_manager, field_name=f"{prefix}.persistence_manager"
        )

    persistence_parameters = validate_string_mapping(
        data.get("persistence_parameters"), field_name=f"{prefix}.persistence_parameters"
    )

    return {
        "work_category": work_category,
        "alert_handler_ids": alert_handler_ids,
        "ignore_errors": ignore_errors,
        "persistence_manager": persistence_manager,
        "persistence_parameters": persistence_parameters,
    }


def validate_capped_requirement_config(data: Mapping[str, Any], index: int,
                                       handler_ids: Set[str]) -> CappedRequirementConfig:
    prefix = f"latency_requirements.capped[{index}]"
    common = _validate_common(data, prefix, handler_ids)
    expected_latency = validate_positive_integer(
        data.get("expected_latency", DEFAULT_EXPECTED_LATENCY_MS),
        min_value=1,
        field_name=f"{prefix}.expected_latency",
    )
    return CappedRequirementConfig(expected_latency=expected_latency, **common)


def validate_statistical_requirement_config(data: Mapping[str, Any], index: int,
                                            handler_ids: Set[str]) -> StatisticalRequirementConfig:
    prefix = f"latency_requirements.statistical[{index}]"
    common = _validate_common(data, prefix, handler_ids)
    barrier = validate_positive_integer(
        data.get("observations_significance_barrier", DEFAULT_SIGNIFICANCE_BARRIER),
        min_value=0,
        field_name=f"{prefix}.observations_significance_barrier",
    )
    tolerance = validate_positive_float(
        data.get("tolerance_level", DEFAULT_TOLERANCE_LEVEL),
        min_value=0.0,
        field_name=f"{prefix}.tolerance_level",
    )
    return StatisticalRequirementConfig(
        observations_significance_barrier=barrier,
        tolerance_level=tolerance,
        **common
    )


def validate_latency_config(data: Mapping[str, Any]) -> LatencyConfig:
    """
    Validate and create a LatencyConfig from raw configuration data.

    Args:
        data: Parsed TOML document

    Returns:
        Validated LatencyConfig instance

    Raises:
        ValidationError: If validation fails
    """
    handlers = [
        validate_alert_handler_config(item, index)
        for index, item in enumerate(_as_table_list(data.get("alert_handlers"), "alert_handlers"))
    ]

    handler_ids: Set[str] = set()
    for handler in handlers:
        if handler.id in handler_ids:
            raise ValidationError(
                f"Duplicate alert handler id '{handler.id}'",
                field_name="alert_handlers.id",
                value=handler.id
            )
        handler_ids.add(handler.id)

    requirements_data = data.get("latency_requirements") or {}
    if not isinstance(requirements_data, Mapping):
        raise ValidationError(
            "latency_requirements must be a table",
            field_name="latency_requirements",
            value=requirements_data
        )

    capped = [
        validate_capped_requirement_config(item, index, handler_ids)
        for index, item in enumerate(
            _as_table_list(requirements_data.get("capped"), "latency_requirements.capped")
        )
    ]
    statistical = [
        validate_statistical_requirement_config(item, index, handler_ids)
        for index, item in enumerate(
            _as_table_list(requirements_data.get("statistical"), "latency_requirements.statistical")
        )
    ]

    categories: Set[str] = set()
    for requirement in [*capped, *statistical]:
        if requirement.work_category in categories:
            raise ValidationError(
                f"Duplicate latency requirement for work category '{requirement.work_category}'",
                field_name="work_category",
                value=requirement.work_category
            )
        categories.add(requirement.work_category)

    config = LatencyConfig(
        alert_handlers=handlers,
        capped_requirements=capped,
        statistical_requirements=statistical,
    )
    logger.debug(
        f"Validated configuration: {len(handlers)} alert handler(s), "
        f"{len(capped)} capped and {len(statistical)} statistical requirement(s)"
    )
    return config
