from __future__ import annotations

from datetime import date

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} must not be blank")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_non_negative(value: int, field_name: str) -> int:
    if value is None or int(value) < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return int(value)


def require_period(start: date, end: date, message: str) -> None:
    if start > end:
        raise ValidationError(message)


def require_email(value: str) -> str:
    value = require_non_empty(value, "Email")
    if "@" not in value:
        raise ValidationError("Email is not valid")
    return value.lower()
