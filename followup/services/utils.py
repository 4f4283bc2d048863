from __future__ import annotations

from datetime import UTC, date, datetime


def utc_now() -> datetime:
    return datetime.now(UTC).replace(microsecond=0)


def to_iso(value: datetime | date | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def today_iso() -> str:
    return date.today().isoformat()


def fmt_money(value: float | None) -> str:
    if value is None:
        return "-"
    return f"${value:,.0f}"


def fmt_last_touch(days: int | None) -> str:
    if days is None:
        return "never"
    if days == 0:
        return "today"
    return f"{days}d"
