from __future__ import annotations

import csv
import json
import logging
import threading
from dataclasses import replace
from datetime import date
from pathlib import Path
from urllib.parse import parse_qs, urlparse

import pytest

from slotwatch.common.config_loader import DateRange, WatchConfig
from slotwatch.common.errors import ConfigError
from slotwatch.common.http import StatusError
from slotwatch.fetch.cycle import run_cycle

LOGGER = logging.getLogger("slotwatch.tests.cycle")


def _location(location_id: int, state: str = "CA") -> dict:
    return {
        "id": location_id,
        "name": f"Center {location_id}",
        "state": state,
        "city": "Somewhere",
        "address": "1 Main St",
        "postalCode": "00001",
    }


class DateRoutedClient:
    """Serves a fixed body per requested date; a date mapped to an int fails with that status."""

    def __init__(self, routes: dict[str, object]):
        self.routes = routes
        self.lock = threading.Lock()
        self.requests: list[str] = []
        self.posts: list[dict] = []

    def get_text(self, url: str, **_kwargs) -> str:
        day = parse_qs(urlparse(url).query)["timestamp"][0]
        with self.lock:
            self.requests.append(day)
        route = self.routes[day]
        if isinstance(route, int):
            raise StatusError(route, url)
        return json.dumps(route)

    def post_json(self, url: str, **kwargs):
        self.posts.append(kwargs["payload"])
        return {"ok": True}


def _config(**overrides) -> WatchConfig:
    base = WatchConfig(
        enable_slack=False,
        slack_token="",
        slack_channel_id="",
        fetch_interval_minutes=0,
        search_states=("CA",),
        date_range=DateRange(start="2026-06-01", end="2026-06-05"),
        api_rate_limit_seconds=0.0,
        max_concurrent_fetches=2,
        max_retries=3,
    )
    return replace(base, **overrides)


ROUTES = {
    "2026-06-01": [],
    "2026-06-02": [_location(1), _location(2), _location(3), _location(99, "NV")],
    "2026-06-03": 503,
    "2026-06-04": [_location(4), _location(5), _location(6)],
    "2026-06-05": [_location(100, "NV")],
}


@pytest.mark.integration
def test_cycle_aggregates_successes_and_isolates_failures(tmp_path: Path):
    client = DateRoutedClient(ROUTES)
    sleeps: list[float] = []
    csv_path = tmp_path / "out" / "appointments.csv"

    report = run_cycle(_config(), client, LOGGER, run_id="cycle-test", csv_path=csv_path, sleep=sleeps.append)

    assert report.dates_total == 5
    assert report.location_count == 6
    assert report.failed_dates == (date(2026, 6, 3),)
    assert report.sink == "csv"
    assert report.delivered is True
    assert client.requests.count("2026-06-03") == 3
    assert sorted(s for s in sleeps if s) == [1, 2]

    with csv_path.open("r", encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert sorted(int(row["ID"]) for row in rows) == [1, 2, 3, 4, 5, 6]
    assert client.posts == []


@pytest.mark.integration
def test_cycle_posts_to_slack_only_when_enabled(tmp_path: Path):
    client = DateRoutedClient(ROUTES)
    csv_path = tmp_path / "appointments.csv"

    report = run_cycle(
        _config(enable_slack=True, slack_token="xoxb-t", slack_channel_id="C9"),
        client,
        LOGGER,
        run_id="cycle-slack",
        csv_path=csv_path,
        sleep=lambda _s: None,
    )

    assert report.sink == "slack"
    assert len(client.posts) == 1
    assert client.posts[0]["channel"] == "C9"
    assert "...and 1 more." in client.posts[0]["text"]
    assert not csv_path.exists()


@pytest.mark.integration
def test_cycle_rejects_reversed_range_before_fetching(tmp_path: Path):
    client = DateRoutedClient(ROUTES)

    with pytest.raises(ConfigError):
        run_cycle(
            _config(date_range=DateRange(start="2026-06-05", end="2026-06-01")),
            client,
            LOGGER,
            run_id="cycle-bad",
            csv_path=tmp_path / "x.csv",
            sleep=lambda _s: None,
        )
    assert client.requests == []


@pytest.mark.integration
def test_cycle_reports_undelivered_when_slack_rejects(tmp_path: Path):
    class RejectingClient(DateRoutedClient):
        def post_json(self, url: str, **kwargs):
            return {"ok": False, "error": "not_in_channel"}

    report = run_cycle(
        _config(enable_slack=True, slack_token="t", slack_channel_id="C"),
        RejectingClient(ROUTES),
        LOGGER,
        run_id="cycle-reject",
        csv_path=tmp_path / "x.csv",
        sleep=lambda _s: None,
    )

    assert report.delivered is False
    assert report.location_count == 6
