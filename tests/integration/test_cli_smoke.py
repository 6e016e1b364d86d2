from __future__ import annotations

import csv
import json
import logging
from pathlib import Path

import pytest

from slotwatch import cli
from slotwatch.common.config_loader import DateRange, WatchConfig
from slotwatch.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from slotwatch.common.http import StatusError
from slotwatch.common.models import CycleReport

CONFIG_YAML = """enable_slack: false
slack_token: ""
slack_channel_id: ""
fetch_interval_minutes: 0
search_states: [CA]
date_range:
  start: "2026-07-01"
  end: "2026-07-02"
api_rate_limit_seconds: 0
max_concurrent_fetches: 2
max_retries: 1
"""


class FakeHttpClient:
    def __init__(self, *args, **kwargs):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return None

    def get_text(self, url: str, **_kwargs) -> str:
        return json.dumps(
            [{"id": 1, "name": "A", "state": "CA", "city": "B", "address": "C", "postalCode": "D"}]
        )


@pytest.mark.integration
def test_cli_single_shot_writes_csv(monkeypatch, tmp_path: Path):
    config_path = tmp_path / "watch.yml"
    config_path.write_text(CONFIG_YAML, encoding="utf-8")
    csv_path = tmp_path / "appointments.csv"
    monkeypatch.setattr(cli, "HttpClient", FakeHttpClient)

    exit_code = cli.main(["--config", str(config_path), "--csv-path", str(csv_path), "--log-dir", str(tmp_path / "logs")])

    assert exit_code == EXIT_SUCCESS
    with csv_path.open("r", encoding="utf-8", newline="") as f:
        rows = list(csv.reader(f))
    assert len(rows) == 3
    assert list((tmp_path / "logs").glob("*.log.jsonl"))


@pytest.mark.integration
def test_cli_bad_config_is_hard_failure(tmp_path: Path):
    config_path = tmp_path / "watch.yml"
    config_path.write_text(CONFIG_YAML.replace('end: "2026-07-02"', 'end: "2026-06-01"'), encoding="utf-8")

    assert cli.main(["--config", str(config_path), "--csv-path", str(tmp_path / "a.csv")]) == EXIT_HARD_FAIL


@pytest.mark.integration
def test_repeating_loop_survives_failed_cycles(monkeypatch, tmp_path: Path):
    calls: list[str] = []

    def flaky_cycle(*_args, **kwargs):
        calls.append(kwargs["run_id"])
        if len(calls) == 1:
            raise RuntimeError("transient")
        return CycleReport(run_id=kwargs["run_id"], dates_total=1, failed_dates=(), location_count=0, sink="csv", delivered=True)

    monkeypatch.setattr(cli, "run_cycle", flaky_cycle)
    sleeps: list[float] = []
    config = WatchConfig(
        enable_slack=False,
        slack_token="",
        slack_channel_id="",
        fetch_interval_minutes=15,
        search_states=("CA",),
        date_range=DateRange(start="2026-07-01", end="2026-07-01"),
        api_rate_limit_seconds=0.0,
        max_concurrent_fetches=1,
        max_retries=1,
    )

    exit_code = cli.run_watch(
        config,
        FakeHttpClient(),
        logging.getLogger("slotwatch.tests.loop"),
        csv_path=tmp_path / "a.csv",
        sleep=sleeps.append,
        max_cycles=3,
    )

    assert len(calls) == 3
    assert sleeps == [900, 900]
    assert exit_code == EXIT_SUCCESS


@pytest.mark.integration
def test_single_shot_partial_when_a_date_fails(monkeypatch, tmp_path: Path):
    class HalfBrokenClient(FakeHttpClient):
        def get_text(self, url: str, **kwargs) -> str:
            if "2026-07-02" in url:
                raise StatusError(502, url)
            return super().get_text(url, **kwargs)

    config_path = tmp_path / "watch.yml"
    config_path.write_text(CONFIG_YAML, encoding="utf-8")
    monkeypatch.setattr(cli, "HttpClient", HalfBrokenClient)

    assert cli.main(["--config", str(config_path), "--csv-path", str(tmp_path / "a.csv")]) == EXIT_PARTIAL
