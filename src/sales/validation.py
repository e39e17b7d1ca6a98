"""Explicit input validation for service entry points.

Each helper returns the normalized value or raises ``InvalidArgument`` for
the first violated constraint.
"""

from sales.errors import InvalidArgument


def require_identifier(value, field: str) -> str:
    if value is None or isinstance(value, bool):
        raise InvalidArgument(f"{field} is required", field=field)
    text = str(value).strip()
    if not text:
        raise InvalidArgument(f"{field} must not be empty", field=field)
    if len(text) > 255:
        raise InvalidArgument(f"{field} must be at most 255 characters", field=field)
    return text


def require_positive_quantity(value, field: str = "quantity") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{field} must be an integer", field=field, value=repr(value))
    if value < 1:
        raise InvalidArgument(f"{field} must be at least 1", field=field, value=value)
    return value


def require_choice(value, choices, field: str) -> str:
    allowed = [choice.value for choice in choices]
    if value not in allowed:
        raise InvalidArgument(
            f"{field} must be one of: {', '.join(allowed)}",
            field=field,
            value=value,
        )
    return value


def require_timeout(value, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise InvalidArgument("timeout must be a positive number of seconds", field="timeout", value=value)
    return float(value)
