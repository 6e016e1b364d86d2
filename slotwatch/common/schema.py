"""Minimal strict schema for the watcher config document."""

from __future__ import annotations

from slotwatch.common.errors import ConfigError

TOP_LEVEL_KEYS = {
    "enable_slack",
    "slack_token",
    "slack_channel_id",
    "fetch_interval_minutes",
    "search_states",
    "date_range",
    "api_rate_limit_seconds",
    "max_concurrent_fetches",
    "max_retries",
}


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_int(value: object, ctx: str, *, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{ctx} must be an integer")
    if value < minimum:
        raise ConfigError(f"{ctx} must be >= {minimum}")


def validate_watch_config(cfg: object, *, allow_unknown: bool = False) -> dict:
    if not isinstance(cfg, dict):
        raise ConfigError("Config document must be a mapping")

    _assert_required_keys(cfg, TOP_LEVEL_KEYS, "config")
    _assert_no_unknown_keys(cfg, TOP_LEVEL_KEYS, "config", allow_unknown)

    if not isinstance(cfg["enable_slack"], bool):
        raise ConfigError("enable_slack must be a boolean")
    for key in ("slack_token", "slack_channel_id"):
        if not isinstance(cfg[key], str):
            raise ConfigError(f"{key} must be a string")
    if cfg["enable_slack"] and not (cfg["slack_token"] and cfg["slack_channel_id"]):
        raise ConfigError("enable_slack requires slack_token and slack_channel_id")

    states = cfg["search_states"]
    if not isinstance(states, list) or not all(isinstance(state, str) for state in states):
        raise ConfigError("search_states must be a list of strings")

    date_range = cfg["date_range"]
    if not isinstance(date_range, dict):
        raise ConfigError("date_range must be a mapping")
    _assert_required_keys(date_range, {"start", "end"}, "date_range")
    _assert_no_unknown_keys(date_range, {"start", "end"}, "date_range", allow_unknown)

    rate_limit = cfg["api_rate_limit_seconds"]
    if isinstance(rate_limit, bool) or not isinstance(rate_limit, (int, float)) or rate_limit < 0:
        raise ConfigError("api_rate_limit_seconds must be a non-negative number")

    _assert_int(cfg["fetch_interval_minutes"], "fetch_interval_minutes", minimum=0)
    _assert_int(cfg["max_concurrent_fetches"], "max_concurrent_fetches", minimum=1)
    _assert_int(cfg["max_retries"], "max_retries", minimum=1)

    return cfg
