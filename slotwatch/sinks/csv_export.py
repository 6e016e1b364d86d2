"""CSV export of fetched locations."""

from __future__ import annotations

import csv
from pathlib import Path

from slotwatch.common.constants import CSV_HEADERS, PHONE_PLACEHOLDER
from slotwatch.common.errors import SinkError
from slotwatch.common.fs import write_csv
from slotwatch.common.models import FetchedLocation


def _serialize_row(item: FetchedLocation) -> dict:
    loc = item.location
    return {
        "Date": item.date.isoformat(),
        "ID": str(loc.id),
        "Name": loc.name,
        "State": loc.state,
        "City": loc.city,
        "Address": loc.address,
        "PostalCode": loc.postal_code,
        "Phone": loc.phone_number or PHONE_PLACEHOLDER,
        "RawJSON": item.raw_json,
    }


def export_to_csv(fetched_locations: list[FetchedLocation], path: Path) -> Path:
    try:
        write_csv(path, CSV_HEADERS, (_serialize_row(item) for item in fetched_locations))
    except (OSError, UnicodeError, csv.Error) as exc:
        raise SinkError(f"Could not write CSV to {path}: {exc}") from exc
    return path
