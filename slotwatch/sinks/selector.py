"""Choice of exactly one output sink per cycle."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from slotwatch.common.config_loader import WatchConfig
from slotwatch.common.errors import SinkError
from slotwatch.common.http import HttpClient
from slotwatch.common.logging import log_event
from slotwatch.common.models import FetchedLocation
from slotwatch.sinks.csv_export import export_to_csv
from slotwatch.sinks.slack import build_slack_message, post_to_slack


@dataclass(frozen=True)
class SlackSink:
    client: HttpClient
    token: str = field(repr=False)
    channel: str
    name: str = "slack"

    def deliver(self, fetched_locations: list[FetchedLocation]) -> str:
        post_to_slack(self.client, self.token, self.channel, build_slack_message(fetched_locations))
        return f"posted {len(fetched_locations)} location(s) to Slack channel {self.channel}"


@dataclass(frozen=True)
class CsvSink:
    path: Path
    name: str = "csv"

    def deliver(self, fetched_locations: list[FetchedLocation]) -> str:
        export_to_csv(fetched_locations, self.path)
        return f"exported {len(fetched_locations)} location(s) to {self.path}"


Sink = Union[SlackSink, CsvSink]


def select_sink(config: WatchConfig, *, client: HttpClient, csv_path: Path) -> Sink:
    if config.enable_slack:
        return SlackSink(client=client, token=config.slack_token, channel=config.slack_channel_id)
    return CsvSink(path=csv_path)


def deliver(sink: Sink, fetched_locations: list[FetchedLocation], logger: logging.Logger, *, run_id: str | None = None) -> bool:
    try:
        summary = sink.deliver(fetched_locations)
    except SinkError as exc:
        log_event(
            logger,
            f"error delivering to {sink.name}: {exc}",
            level=logging.ERROR,
            run_id=run_id,
            event="SINK_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return False
    log_event(logger, summary, run_id=run_id, event="SINK_OK", status="ok", items=len(fetched_locations))
    return True
