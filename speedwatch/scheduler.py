"""Fixed-cadence probe scheduling."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .errors import FatalCycleError

LOGGER = logging.getLogger(__name__)

JOB_ID = "speedtest-cycle"


class SchedulerService:
    """Runs ``cycle`` immediately and then once per interval, never overlapping."""

    def __init__(
        self,
        interval_seconds: float,
        cycle: Callable[[], None],
        scheduler: Optional[BaseScheduler] = None,
    ) -> None:
        self.interval_seconds = interval_seconds
        self.cycle = cycle
        self.scheduler = scheduler or BlockingScheduler(timezone="UTC")
        self.started = False
        self.failure: Optional[FatalCycleError] = None

    def _run_cycle(self) -> None:
        if self.failure is not None:
            return
        try:
            self.cycle()
        except FatalCycleError as exc:
            LOGGER.debug("Cycle failed fatally, stopping scheduler")
            self.failure = exc
            self.stop()

    def run_forever(self) -> None:
        """Block running cycles until a fatal cycle error stops the scheduler."""

        if self.started:
            LOGGER.warning("Scheduler already started, ignoring duplicate start request")
            return

        self.scheduler.add_job(
            self._run_cycle,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
            misfire_grace_time=None,
        )
        self.started = True
        LOGGER.info("Scheduler started with interval %s seconds", self.interval_seconds)
        self.scheduler.start()

        if self.failure is not None:
            raise self.failure

    def stop(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False
