"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from slotwatch.common.errors import ConfigError
from slotwatch.common.fs import read_yaml
from slotwatch.common.schema import validate_watch_config


@dataclass(frozen=True)
class DateRange:
    start: str
    end: str


@dataclass(frozen=True)
class WatchConfig:
    enable_slack: bool
    slack_token: str = field(repr=False)
    slack_channel_id: str
    fetch_interval_minutes: int
    search_states: tuple[str, ...]
    date_range: DateRange
    api_rate_limit_seconds: float
    max_concurrent_fetches: int
    max_retries: int

    @classmethod
    def from_dict(cls, cfg: dict) -> "WatchConfig":
        return cls(
            enable_slack=cfg["enable_slack"],
            slack_token=cfg["slack_token"],
            slack_channel_id=cfg["slack_channel_id"],
            fetch_interval_minutes=cfg["fetch_interval_minutes"],
            search_states=tuple(cfg["search_states"]),
            date_range=DateRange(
                start=str(cfg["date_range"]["start"]),
                end=str(cfg["date_range"]["end"]),
            ),
            api_rate_limit_seconds=float(cfg["api_rate_limit_seconds"]),
            max_concurrent_fetches=cfg["max_concurrent_fetches"],
            max_retries=cfg["max_retries"],
        )


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _read_document(path: Path) -> Any:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        return read_yaml(path)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file is not valid YAML/JSON: {path}") from exc


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> Any:
    base = _read_document(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = _read_document(overlay_path)
    if overlay is None:
        return base
    return _deep_merge(base, overlay)


def load_config(
    path: Path,
    *,
    overlay_path: Path | None = None,
    allow_unknown: bool = False,
) -> WatchConfig:
    # YAML is a superset of JSON, so JSON config files load unchanged.
    cfg = _load_yaml_with_overlay(path, overlay_path)
    validated = validate_watch_config(cfg, allow_unknown=allow_unknown)
    return WatchConfig.from_dict(validated)
