"""CLI entrypoint for the appointment slot watcher."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from slotwatch.common.config_loader import WatchConfig, load_config
from slotwatch.common.constants import DEFAULT_CSV_PATH, EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from slotwatch.common.errors import WatchError
from slotwatch.common.http import HttpClient
from slotwatch.common.ids import generate_run_id
from slotwatch.common.logging import build_logger, log_event
from slotwatch.common.models import CycleReport
from slotwatch.fetch.cycle import run_cycle
from slotwatch.fetch.fetcher import Sleeper


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", default="./config/watch.yml")
    parser.add_argument("--overlay-config", default=None)
    parser.add_argument("--csv-path", default=DEFAULT_CSV_PATH)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--once", action="store_true", help="run a single cycle regardless of fetch_interval_minutes")
    parser.add_argument("--allow-unknown-config", action="store_true")
    return parser.parse_args(argv)


def exit_code_for(report: CycleReport) -> int:
    if report.fetch_ok and report.delivered:
        return EXIT_SUCCESS
    return EXIT_PARTIAL


def run_watch(
    config: WatchConfig,
    client: HttpClient,
    logger: logging.Logger,
    *,
    csv_path: Path,
    once: bool = False,
    sleep: Sleeper = time.sleep,
    max_cycles: int | None = None,
) -> int:
    """Run one cycle, or repeat forever when an interval is configured.

    In repeating mode a failed cycle is logged and the loop carries on.
    ``max_cycles`` caps the repeating loop.
    """
    if once or config.fetch_interval_minutes == 0:
        report = run_cycle(config, client, logger, run_id=generate_run_id(), csv_path=csv_path, sleep=sleep)
        return exit_code_for(report)

    cycles = 0
    last_code = EXIT_SUCCESS
    while max_cycles is None or cycles < max_cycles:
        run_id = generate_run_id()
        try:
            last_code = exit_code_for(
                run_cycle(config, client, logger, run_id=run_id, csv_path=csv_path, sleep=sleep)
            )
        except WatchError as exc:
            last_code = EXIT_HARD_FAIL
            log_event(
                logger,
                f"cycle failed: {exc}",
                level=logging.ERROR,
                run_id=run_id,
                event="CYCLE_FAIL",
                status="error",
                error_code=exc.error_code,
            )
        except Exception as exc:
            last_code = EXIT_HARD_FAIL
            log_event(
                logger,
                f"unexpected cycle failure: {exc!r}",
                level=logging.ERROR,
                run_id=run_id,
                event="CYCLE_FAIL",
                status="error",
                error_code="UNEXPECTED_ERROR",
            )
        cycles += 1
        if max_cycles is not None and cycles >= max_cycles:
            break
        log_event(logger, f"sleeping {config.fetch_interval_minutes} minutes", run_id=run_id, event="CYCLE_SLEEP")
        sleep(config.fetch_interval_minutes * 60)
    return last_code


def run_command(args: argparse.Namespace) -> int:
    logger = build_logger(
        "watch",
        level=args.log_level,
        log_dir=Path(args.log_dir) if args.log_dir else None,
    )
    overlay_path = Path(args.overlay_config) if args.overlay_config else None
    try:
        config = load_config(
            Path(args.config),
            overlay_path=overlay_path,
            allow_unknown=args.allow_unknown_config,
        )
    except WatchError as exc:
        log_event(logger, f"invalid config: {exc}", level=logging.ERROR, event="CONFIG_FAIL", error_code=exc.error_code)
        return EXIT_HARD_FAIL
    log_event(logger, f"loaded config: {config!r}", event="CONFIG_OK", status="ok")

    with HttpClient() as client:
        try:
            return run_watch(config, client, logger, csv_path=Path(args.csv_path), once=args.once)
        except WatchError as exc:
            log_event(logger, f"run failed: {exc}", level=logging.ERROR, event="RUN_FAIL", error_code=exc.error_code)
            return EXIT_HARD_FAIL


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except WatchError:
        return EXIT_HARD_FAIL
    except Exception:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
