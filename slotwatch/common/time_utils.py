"""Date helpers: range expansion and UTC timestamps."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from slotwatch.common.constants import DATE_FORMAT
from slotwatch.common.errors import ConfigError


def parse_iso_date(value: str, *, field: str) -> date:
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {field} date: {value!r}") from exc


def expand_date_range(start: str, end: str) -> list[date]:
    """Return every calendar day from ``start`` to ``end`` inclusive."""
    start_date = parse_iso_date(start, field="start")
    end_date = parse_iso_date(end, field="end")
    if end_date < start_date:
        raise ConfigError(f"Date range end {end} is before start {start}")

    span = (end_date - start_date).days
    return [start_date + timedelta(days=offset) for offset in range(span + 1)]


def utc_timestamp_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds")
