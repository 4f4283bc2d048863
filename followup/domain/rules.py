from __future__ import annotations

import re
from datetime import UTC, date, datetime
from enum import Enum
from typing import TypeVar

E = TypeVar("E", bound=Enum)

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class ValidationError(ValueError):
    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


def require(value: str | None, field: str) -> str:
    if value is None or str(value).strip() == "":
        raise ValidationError(field, f"{field} is required.")
    return str(value).strip()


def clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def validate_enum(value: object, enum_cls: type[E], field: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            field, f"{field} must be one of: {allowed} (got {value!r})."
        ) from exc


def validate_optional_enum(value: object, enum_cls: type[E], field: str) -> E | None:
    if value is None:
        return None
    return validate_enum(value, enum_cls, field)


def validate_identifier(value: str | None, field: str) -> str:
    if value is None or not UUID_RE.match(str(value)):
        raise ValidationError(field, f"{field} is not a valid identifier: {value!r}.")
    return str(value)


def non_negative(value: float | None, field: str) -> float | None:
    if value is None:
        return None
    if value < 0:
        raise ValidationError(field, f"{field} must be non-negative.")
    return value


def parse_number(value: str | None, field: str) -> float | None:
    if value is None or value.strip() == "":
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise ValidationError(field, f"{field} must be a number.") from exc


def parse_date(value: str | date | None, field: str) -> date | None:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(field, f"{field} must be YYYY-MM-DD.") from exc


def parse_datetime(value: str | datetime | None, field: str) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError as exc:
            raise ValidationError(field, f"{field} must be ISO 8601.") from exc
    # Stored timestamps without an offset are UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
