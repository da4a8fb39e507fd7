"""Field checks shared by the service layer."""

import math
from typing import Optional, Type
from enum import Enum

from visiondesk.core.errors import ValidationError


def check_choice(value: Optional[str], choices: Type[Enum], field: str) -> Optional[str]:
    """Return the enum value for ``value`` or raise ``ValidationError``."""
    if value is None:
        return None
    value = getattr(value, "value", value)
    allowed = [choice.value for choice in choices]
    if value not in allowed:
        raise ValidationError(
            f"Invalid {field}: {value}",
            errors=[{"field": field, "message": f"Must be one of: {', '.join(allowed)}"}],
        )
    return value


def check_length(value: Optional[str], field: str, min_length: int = 0, max_length: Optional[int] = None) -> Optional[str]:
    """Strip ``value`` and check its length bounds."""
    if value is None:
        return None
    value = value.strip()
    if len(value) < min_length or (max_length is not None and len(value) > max_length):
        bounds = f"between {min_length} and {max_length}" if max_length is not None else f"at least {min_length}"
        raise ValidationError(
            f"{field} must be {bounds} characters",
            errors=[{"field": field, "message": f"Length must be {bounds} characters"}],
        )
    return value


def check_range(value, field: str, minimum=None, maximum=None):
    if value is None:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(
            f"{field} must be a finite number",
            errors=[{"field": field, "message": "Must be a finite number"}],
        )
    if (minimum is not None and value < minimum) or (maximum is not None and value > maximum):
        raise ValidationError(
            f"{field} is out of range",
            errors=[{"field": field, "message": f"Must be between {minimum} and {maximum}"}],
        )
    return value
