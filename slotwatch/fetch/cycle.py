"""One watch cycle: expand dates, fetch under the gate, aggregate, deliver."""

from __future__ import annotations

import logging
import time
from datetime import date
from pathlib import Path
from typing import Callable

from slotwatch.common.config_loader import WatchConfig
from slotwatch.common.http import HttpClient
from slotwatch.common.logging import log_event
from slotwatch.common.models import CycleReport, FetchedLocation
from slotwatch.common.time_utils import expand_date_range
from slotwatch.fetch.aggregator import aggregate_outcomes
from slotwatch.fetch.fetcher import FetchSettings, Sleeper, fetch_for_date
from slotwatch.fetch.gate import ConcurrencyGate
from slotwatch.sinks.selector import deliver, select_sink

FetchFn = Callable[..., list[FetchedLocation]]


def run_cycle(
    config: WatchConfig,
    client: HttpClient,
    logger: logging.Logger,
    *,
    run_id: str,
    csv_path: Path,
    sleep: Sleeper = time.sleep,
    fetch: FetchFn = fetch_for_date,
) -> CycleReport:
    log_event(logger, "starting cycle", run_id=run_id, event="CYCLE_START", status="ok")
    started = time.monotonic()

    # Raises ConfigError before any request is issued.
    dates = expand_date_range(config.date_range.start, config.date_range.end)
    settings = FetchSettings.from_config(config)
    gate = ConcurrencyGate(config.max_concurrent_fetches)

    def _task(day: date) -> list[FetchedLocation]:
        return fetch(client, settings, day, logger=logger, sleep=sleep)

    aggregate = aggregate_outcomes(gate.run(dates, _task), logger)
    log_event(
        logger,
        f"fetched {len(aggregate.locations)} locations total",
        run_id=run_id,
        event="FETCH_DONE",
        status="ok" if not aggregate.failed_dates else "partial",
        items=len(aggregate.locations),
        duration_ms=int((time.monotonic() - started) * 1000),
    )

    sink = select_sink(config, client=client, csv_path=csv_path)
    delivered = deliver(sink, aggregate.locations, logger, run_id=run_id)

    return CycleReport(
        run_id=run_id,
        dates_total=len(dates),
        failed_dates=tuple(sorted(aggregate.failed_dates)),
        location_count=len(aggregate.locations),
        sink=sink.name,
        delivered=delivered,
    )
