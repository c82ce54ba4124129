from __future__ import annotations

import logging
import threading
from typing import Callable, Protocol
from uuid import uuid4

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)

TICK_SECONDS = 1


class CountdownHandle(Protocol):
    def cancel(self) -> None: ...


class Ticker(Protocol):
    def start(self, callback: Callable[[], None]) -> CountdownHandle: ...


class _JobHandle:
    def __init__(self, scheduler: BackgroundScheduler, job_id: str) -> None:
        self._scheduler = scheduler
        self.job_id = job_id
        self.cancelled = False

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        try:
            self._scheduler.remove_job(self.job_id)
        except JobLookupError:
            logger.debug("Countdown job %s already gone", self.job_id)


class SchedulerTicker:
    """Repeating one-second ticks backed by an APScheduler background job."""

    def __init__(self, scheduler: BackgroundScheduler | None = None) -> None:
        self.scheduler = scheduler or BackgroundScheduler()
        self._start_lock = threading.Lock()

    def start(self, callback: Callable[[], None]) -> _JobHandle:
        with self._start_lock:
            if not self.scheduler.running:
                self.scheduler.start()
        job_id = f"countdown-{uuid4().hex}"
        self.scheduler.add_job(
            callback,
            "interval",
            seconds=TICK_SECONDS,
            id=job_id,
            max_instances=1,
            coalesce=True,
        )
        return _JobHandle(self.scheduler, job_id)

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)


class _ManualHandle:
    def __init__(self, ticker: "ManualTicker", callback: Callable[[], None]) -> None:
        self._ticker = ticker
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True
        self._ticker.discard(self)


class ManualTicker:
    """Ticker driven by explicit ``tick()`` calls instead of wall time."""

    def __init__(self) -> None:
        self.handles: list[_ManualHandle] = []

    def start(self, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle(self, callback)
        self.handles.append(handle)
        return handle

    def discard(self, handle: _ManualHandle) -> None:
        if handle in self.handles:
            self.handles.remove(handle)

    def tick(self, times: int = 1) -> None:
        for _ in range(times):
            for handle in list(self.handles):
                handle.callback()

    @property
    def active(self) -> int:
        return len(self.handles)
