from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError
from .datetime_utils import parse_hhmm


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_hhmm(value: str, field_name: str) -> str:
    try:
        parse_hhmm(str(value or ""))
    except ValueError:
        raise ValidationError(f"{field_name} must be HH:MM")
    return str(value).strip()


def require_non_negative(value: int, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if number < 0:
        raise ValidationError(f"{field_name} must be >= 0")
    return number


_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}


def require_bool(value, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValidationError(f"{field_name} must be true or false")
