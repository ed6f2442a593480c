"""
Enum conversion utilities.

Detectors receive their parameters as plain dictionaries, so method selectors
may arrive as enum members or as strings in any case.
"""

from typing import Any, Type, TypeVar

T = TypeVar("T")


def parse_enum(value: Any, enum_class: Type[T], default: T, normalize: bool = True) -> T:
    """
    Parse value to enum with fallback to default.

    Args:
        value: Value to parse (string, enum, or None)
        enum_class: Enum class to parse to
        default: Enum value used when value is None
        normalize: Whether to lowercase string before parsing

    Returns:
        Parsed enum value or default

    Raises:
        ValueError: If value is a string that names no member of enum_class
    """
    if isinstance(value, enum_class):
        return value

    if value is None:
        return default

    str_value = str(value).lower() if normalize else value
    try:
        return enum_class(str_value)
    except ValueError:
        valid = [member.value for member in enum_class]
        raise ValueError(f"Unknown {enum_class.__name__}: {value!r}. Must be one of {valid}")


def enum_to_string(value: Any) -> str:
    """
    Convert enum to string value, or pass through if already string.

    Example:
        >>> enum_to_string(EdgeMethod.CANNY)
        'canny'
    """
    return value.value if hasattr(value, "value") else value
