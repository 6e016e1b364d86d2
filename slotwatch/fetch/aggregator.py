"""Merge per-date outcomes into one collection."""

from __future__ import annotations

import logging
from typing import Iterable

from slotwatch.common.logging import log_event
from slotwatch.common.models import AggregateResult, FetchOutcome


def aggregate_outcomes(outcomes: Iterable[FetchOutcome], logger: logging.Logger) -> AggregateResult:
    """Drain outcomes in completion order; failed dates are logged and dropped."""
    result = AggregateResult()
    for outcome in outcomes:
        result.dates_seen += 1
        day = outcome.date.isoformat()
        if outcome.ok:
            result.locations.extend(outcome.items or [])
            continue

        result.failed_dates.append(outcome.date)
        if outcome.crashed:
            log_event(
                logger,
                f"fetch task for {day} crashed: {outcome.error!r}",
                level=logging.WARNING,
                date=day,
                event="TASK_FAULT",
                status="error",
                error_code="UNEXPECTED_ERROR",
            )
        else:
            log_event(
                logger,
                f"error fetching {day}: {outcome.error}",
                level=logging.WARNING,
                date=day,
                event="FETCH_FAIL",
                status="error",
                error_code=getattr(outcome.error, "error_code", "FETCH_ERROR"),
            )
    return result
