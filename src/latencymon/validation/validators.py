"""
Simplified validation functions.

This module provides the field validators used when requirements and alert
handlers are built from configuration data.
"""

from typing import Any, Dict, List, Mapping, Optional

from .exceptions import ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within the given bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    # bool is an int subclass; "true" is never a latency
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if isinstance(value, float) and value != int_value:
        raise ValidationError(
            f"{field_name} must be a whole number, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a float within the given bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_non_empty_string(value: Any, field_name: str = "value") -> str:
    """
    Validate that a value is a string with at least one non-blank character.

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string, got {value!r}",
            field_name=field_name,
            value=value
        )
    return value


def validate_boolean(value: Any, field_name: str = "value") -> bool:
    """
    Validate a boolean flag. The literals ``"true"`` and ``"false"`` are accepted.

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(
        f"{field_name} must be a boolean, got {value!r}",
        field_name=field_name,
        value=value
    )


def validate_enum_choice(
    value: Any,
    valid_choices: List[str],
    field_name: str = "value",
    case_sensitive: bool = True
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Args:
        value: Value to validate
        valid_choices: List of valid choices
        field_name: Name of the field being validated
        case_sensitive: Whether comparison should be case sensitive

    Returns:
        Validated choice (as listed in valid_choices)

    Raises:
        ValidationError: If value is not in valid choices
    """
    str_value = str(value)
    for choice in valid_choices:
        if choice == str_value or (not case_sensitive and choice.lower() == str_value.lower()):
            return choice

    raise ValidationError(
        f"{field_name} must be one of {valid_choices}, got '{str_value}'",
        field_name=field_name,
        value=value
    )


def validate_string_mapping(value: Any, field_name: str = "value") -> Dict[str, str]:
    """
    Validate a parameter table and normalise its values to strings.

    Handler and persistence parameters are string-keyed string maps; TOML
    numbers and booleans are converted so that ``max.file.bytes = 1024`` and
    ``max.file.bytes = "1024"`` mean the same thing.

    Raises:
        ValidationError: If the value is not a flat mapping
    """
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValidationError(
            f"{field_name} must be a table of string parameters, got {type(value).__name__}",
            field_name=field_name,
            value=value
        )

    result: Dict[str, str] = {}
    for key, item in value.items():
        if isinstance(item, (Mapping, list)):
            raise ValidationError(
                f"{field_name}.{key} must be a scalar value",
                field_name=f"{field_name}.{key}",
                value=item
            )
        if isinstance(item, bool):
            result[str(key)] = "true" if item else "false"
        else:
            result[str(key)] = str(item)
    return result
