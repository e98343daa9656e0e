"""APScheduler-backed one-shot timers."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from attendance_ledger.services.expiry import TimerFactory, TimerHandle

logger = logging.getLogger(__name__)


@dataclass
class SchedulerTimer(TimerHandle):
    """Handle for one scheduled job."""

    job: Job

    def cancel(self) -> None:
        """Remove the job unless it already ran."""
        try:
            self.job.remove()
        except JobLookupError:
            pass


@dataclass
class BackgroundSchedulerTimerFactory(TimerFactory):
    """Runs callbacks as ``date`` jobs on a lazily started BackgroundScheduler."""

    scheduler: BackgroundScheduler = field(
        default_factory=lambda: BackgroundScheduler(timezone=UTC)
    )
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def start(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        """Schedule ``callback`` to run once after ``delay_seconds``."""
        with self._lock:
            if not self.scheduler.running:
                self.scheduler.start()
                logger.info("Expiry scheduler started")
        run_at = datetime.now(tz=UTC) + timedelta(seconds=delay_seconds)
        job = self.scheduler.add_job(
            callback,
            trigger="date",
            run_date=run_at,
            misfire_grace_time=None,
        )
        return SchedulerTimer(job)

    def shutdown(self) -> None:
        """Stop the scheduler without waiting for running jobs."""
        with self._lock:
            if self.scheduler.running:
                self.scheduler.shutdown(wait=False)
