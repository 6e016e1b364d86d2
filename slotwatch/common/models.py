"""Data models used across the watcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from slotwatch.common.errors import FetchError, ParseError

_REQUIRED_TEXT_FIELDS = {
    "name": "name",
    "state": "state",
    "city": "city",
    "address": "address",
    "postalCode": "postal_code",
}
_OPTIONAL_TEXT_FIELDS = {
    "addressAdditional": "address_additional",
    "phoneNumber": "phone_number",
}


@dataclass(frozen=True)
class Location:
    id: int
    name: str
    state: str
    city: str
    address: str
    postal_code: str
    address_additional: str | None = None
    phone_number: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "Location":
        """Parse one API element; unknown keys are ignored."""
        if not isinstance(payload, dict):
            raise ParseError(f"Expected an object, got {type(payload).__name__}")

        location_id = payload.get("id")
        if isinstance(location_id, bool) or not isinstance(location_id, int) or location_id < 0:
            raise ParseError(f"Invalid or missing id: {location_id!r}")

        values: dict[str, Any] = {"id": location_id}
        for key, attr in _REQUIRED_TEXT_FIELDS.items():
            value = payload.get(key)
            if not isinstance(value, str):
                raise ParseError(f"Invalid or missing {key}: {value!r}")
            values[attr] = value
        for key, attr in _OPTIONAL_TEXT_FIELDS.items():
            value = payload.get(key)
            if value is not None and not isinstance(value, str):
                raise ParseError(f"Invalid {key}: {value!r}")
            values[attr] = value
        return cls(**values)


@dataclass(frozen=True)
class FetchedLocation:
    date: date
    location: Location
    raw_json: str


@dataclass(frozen=True)
class FetchOutcome:
    date: date
    items: list[FetchedLocation] | None = None
    error: Exception | None = None
    crashed: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, day: date, items: list[FetchedLocation]) -> "FetchOutcome":
        return cls(date=day, items=list(items))

    @classmethod
    def failure(cls, day: date, error: FetchError) -> "FetchOutcome":
        return cls(date=day, error=error)

    @classmethod
    def fault(cls, day: date, error: Exception) -> "FetchOutcome":
        return cls(date=day, error=error, crashed=True)


@dataclass
class AggregateResult:
    locations: list[FetchedLocation] = field(default_factory=list)
    failed_dates: list[date] = field(default_factory=list)
    dates_seen: int = 0


@dataclass(frozen=True)
class CycleReport:
    run_id: str
    dates_total: int
    failed_dates: tuple[date, ...]
    location_count: int
    sink: str
    delivered: bool

    @property
    def fetch_ok(self) -> bool:
        return not self.failed_dates
