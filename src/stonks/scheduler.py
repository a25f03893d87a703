"""Fixed-interval driver for scrape cycles."""

from __future__ import annotations

import threading
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

import schedule

from stonks.adapters.network import has_network_connection
from stonks.config.scheduler import SchedulerConfig
from stonks.domain.model import LogLevel

if TYPE_CHECKING:
    from stonks.domain.diagnostics import DiagnosticLog

log = getLogger(__name__)

JOB_TAG = "earnings-cycle"

ConnectivityProbe = Callable[[str], bool]


class CycleScheduler:
    """Runs one cycle per interval, never two at once.

    A tick that finds the previous cycle still in flight is skipped, as is a tick
    without network connectivity. A cycle that crashes is logged and the loop
    keeps going.
    """

    def __init__(
        self,
        *,
        run_cycle: Callable[[], object],
        diagnostics: DiagnosticLog,
        config: SchedulerConfig | None = None,
        connectivity_probe: ConnectivityProbe = has_network_connection,
        scheduler: schedule.Scheduler | None = None,
    ) -> None:
        self.config = config or SchedulerConfig()
        self._run_cycle = run_cycle
        self._diagnostics = diagnostics
        self._probe = connectivity_probe
        self._scheduler = scheduler or schedule.Scheduler()
        self._lock = threading.Lock()
        self._stop = threading.Event()

    def tick(self) -> bool:
        """Run a single cycle if possible; return whether one ran."""

        if not self._lock.acquire(blocking=False):
            log.warning("Previous cycle still running, skipping this tick")
            return False
        try:
            if not self._probe(self.config.connectivity_host):
                self._diagnostics.record_local(LogLevel.FATAL, "No network connection detected")
                return False
            try:
                self._run_cycle()
            except Exception:
                log.exception("Earnings cycle crashed")
            return True
        finally:
            self._lock.release()

    def install(self) -> schedule.Job:
        self._scheduler.clear(JOB_TAG)
        job = self._scheduler.every(self.config.interval_seconds).seconds.do(self.tick)
        return job.tag(JOB_TAG)

    def run_forever(self) -> None:
        self._stop.clear()
        self.install()
        log.info("Scheduling earnings cycles every %ss", self.config.interval_seconds)
        self.tick()
        while not self._stop.is_set():
            self._scheduler.run_pending()
            self._stop.wait(self.config.poll_seconds)
        self._scheduler.clear(JOB_TAG)

    def stop(self) -> None:
        self._stop.set()
