"""Tests for the APScheduler-backed timer factory."""

import threading
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from attendance_ledger.adapters.apscheduler_timers import (
    BackgroundSchedulerTimerFactory,
)
from attendance_ledger.services.expiry import ExpiryScheduler


def test_scheduled_callback_runs() -> None:
    factory = BackgroundSchedulerTimerFactory()
    fired = threading.Event()

    factory.start(0.05, fired.set)

    assert fired.wait(timeout=5)
    factory.shutdown()
    assert not factory.scheduler.running


def test_cancelled_callback_does_not_run() -> None:
    factory = BackgroundSchedulerTimerFactory()
    fired = threading.Event()

    handle = factory.start(0.2, fired.set)
    handle.cancel()
    handle.cancel()

    assert not fired.wait(timeout=0.5)
    factory.shutdown()


def test_expiry_scheduler_on_background_scheduler() -> None:
    scheduler = ExpiryScheduler(timer_factory=BackgroundSchedulerTimerFactory())
    expired: list = []
    done = threading.Event()
    session_id = uuid4()

    def on_expire(expired_id) -> None:
        expired.append(expired_id)
        done.set()

    fire_at = datetime.now(tz=UTC) + timedelta(milliseconds=50)
    scheduler.arm(session_id, fire_at, on_expire)

    assert done.wait(timeout=5)
    assert expired == [session_id]
    scheduler.shutdown()


def test_shutdown_before_start_is_noop() -> None:
    factory = BackgroundSchedulerTimerFactory()

    factory.shutdown()

    assert not factory.scheduler.running
