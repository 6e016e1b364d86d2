"""Per-date slot fetch with bounded retries and post-success pacing."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable
from urllib.parse import quote, urlencode

from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from slotwatch.common.config_loader import WatchConfig
from slotwatch.common.constants import SERVICE_NAME, SLOTS_ENDPOINT
from slotwatch.common.errors import FetchError, ParseError
from slotwatch.common.http import HttpClient, RetryableHttpError
from slotwatch.common.logging import log_event
from slotwatch.common.models import FetchedLocation, Location

Sleeper = Callable[[float], None]


@dataclass(frozen=True)
class FetchSettings:
    max_retries: int
    rate_limit_seconds: float
    search_states: frozenset[str]

    @classmethod
    def from_config(cls, config: WatchConfig) -> "FetchSettings":
        return cls(
            max_retries=config.max_retries,
            rate_limit_seconds=config.api_rate_limit_seconds,
            search_states=frozenset(config.search_states),
        )


def build_slots_url(day: date) -> str:
    params = {
        "minimum": "1",
        "filterTimestampBy": "on",
        "timestamp": day.isoformat(),
        "serviceName": SERVICE_NAME,
    }
    return f"{SLOTS_ENDPOINT}?{urlencode(params, quote_via=quote)}"


def serialize_raw(element: Any) -> str:
    return json.dumps(element, ensure_ascii=False, separators=(",", ":"), sort_keys=True)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not valid JSON")


def _reject_duplicate_keys(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    obj: dict[str, Any] = {}
    for key, value in pairs:
        if key in obj:
            raise ValueError(f"duplicate key {key!r}")
        obj[key] = value
    return obj


def _load_elements(text: str, day: date) -> list[tuple[Any, str]]:
    """Decode the body strictly and pair each element with its raw text.

    NaN/Infinity, duplicate keys and lone surrogates that cannot be encoded as
    UTF-8 reject the whole body.
    """
    try:
        elements = json.loads(text, parse_constant=_reject_constant, object_pairs_hook=_reject_duplicate_keys)
    except ValueError as exc:
        raise FetchError(f"Response for {day} is not valid JSON: {exc}") from exc
    if not isinstance(elements, list):
        raise FetchError(f"Response for {day} is not a JSON array")

    pairs = []
    for element in elements:
        raw_json = serialize_raw(element)
        try:
            raw_json.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise FetchError(f"Response for {day} is not valid UTF-8 JSON") from exc
        pairs.append((element, raw_json))
    return pairs


def parse_slot_payload(
    text: str,
    day: date,
    search_states: frozenset[str],
    *,
    logger: logging.Logger,
) -> list[FetchedLocation]:
    """Turn a response body into the locations that pass the state filter.

    Elements that do not match the location shape are logged and skipped; the
    rest of the array is unaffected. A body that is not a JSON array fails the
    whole date.
    """
    results: list[FetchedLocation] = []
    for element, raw_json in _load_elements(text, day):
        try:
            location = Location.from_payload(element)
        except ParseError as exc:
            log_event(
                logger,
                f"failed to parse location: {exc}",
                level=logging.WARNING,
                date=day.isoformat(),
                event="PARSE_SKIP",
                status="skipped",
                error_code=exc.error_code,
            )
            continue
        if location.state in search_states:
            results.append(FetchedLocation(date=day, location=location, raw_json=raw_json))
    return results


def _log_retry(logger: logging.Logger, day: date) -> Callable[[RetryCallState], None]:
    def _before_sleep(retry_state: RetryCallState) -> None:
        wait = retry_state.next_action.sleep if retry_state.next_action else None
        log_event(
            logger,
            f"retrying date {day} in {wait} second(s)",
            level=logging.WARNING,
            date=day.isoformat(),
            event="FETCH_RETRY",
            status="retry",
            attempt=retry_state.attempt_number,
        )

    return _before_sleep


def fetch_for_date(
    client: HttpClient,
    settings: FetchSettings,
    day: date,
    *,
    logger: logging.Logger,
    sleep: Sleeper = time.sleep,
) -> list[FetchedLocation]:
    url = build_slots_url(day)
    if settings.max_retries < 1:
        raise FetchError(f"Unknown error fetching date {day}: no attempts allowed")

    retrying = Retrying(
        stop=stop_after_attempt(settings.max_retries),
        wait=wait_exponential(multiplier=1, exp_base=2),
        retry=retry_if_exception_type(RetryableHttpError),
        sleep=sleep,
        before_sleep=_log_retry(logger, day),
        reraise=True,
    )

    started = time.monotonic()
    try:
        for attempt in retrying:
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                logger.debug("attempt %s of %s for date %s: GET %s", attempt_number, settings.max_retries, day, url)
                try:
                    text = client.get_text(url)
                except RetryableHttpError as exc:
                    log_event(
                        logger,
                        str(exc),
                        level=logging.WARNING,
                        date=day.isoformat(),
                        event="FETCH_ATTEMPT_FAIL",
                        status="error",
                        attempt=attempt_number,
                        error_code=exc.error_code,
                    )
                    raise
    except RetryableHttpError as exc:
        raise FetchError(
            f"Giving up on date {day} after {settings.max_retries} attempt(s): {exc}",
            last_error=exc,
        ) from exc

    results = parse_slot_payload(text, day, settings.search_states, logger=logger)
    log_event(
        logger,
        f"fetched {len(results)} matching location(s) for {day}",
        date=day.isoformat(),
        event="FETCH_OK",
        status="ok",
        items=len(results),
        duration_ms=int((time.monotonic() - started) * 1000),
    )
    sleep(settings.rate_limit_seconds)
    return results
