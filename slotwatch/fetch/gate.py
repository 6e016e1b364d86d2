"""Bounded concurrent execution of per-date fetch tasks."""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from datetime import date
from types import TracebackType
from typing import Callable, Iterable, Iterator

from slotwatch.common.errors import ConfigError, FetchError
from slotwatch.common.models import FetchedLocation, FetchOutcome

DateTask = Callable[[date], list[FetchedLocation]]


class _Permit:
    """One slot of the gate, held from spawn until the worker exits."""

    def __init__(self, semaphore: threading.BoundedSemaphore) -> None:
        self._semaphore = semaphore
        self._semaphore.acquire()

    def release(self) -> None:
        self._semaphore.release()

    def __enter__(self) -> "_Permit":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()


def _run_task(permit: _Permit, task: DateTask, day: date) -> FetchOutcome:
    with permit:
        try:
            return FetchOutcome.success(day, task(day))
        except FetchError as exc:
            return FetchOutcome.failure(day, exc)
        except Exception as exc:
            return FetchOutcome.fault(day, exc)


class ConcurrencyGate:
    def __init__(self, max_concurrent: int) -> None:
        if max_concurrent < 1:
            raise ConfigError("max_concurrent_fetches must be >= 1")
        self.max_concurrent = max_concurrent

    def run(self, dates: Iterable[date], task: DateTask) -> Iterator[FetchOutcome]:
        """Run ``task`` once per date and yield outcomes as they complete.

        Spawning blocks while every permit is held, so at most
        ``max_concurrent`` tasks are in flight at any moment. Exactly one
        outcome is yielded per date.
        """
        semaphore = threading.BoundedSemaphore(self.max_concurrent)
        futures: list[Future[FetchOutcome]] = []
        with ThreadPoolExecutor(max_workers=self.max_concurrent, thread_name_prefix="slotwatch-fetch") as executor:
            for day in dates:
                permit = _Permit(semaphore)
                try:
                    futures.append(executor.submit(_run_task, permit, task, day))
                except BaseException:
                    permit.release()
                    raise
            for future in as_completed(futures):
                yield future.result()
