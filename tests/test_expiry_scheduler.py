"""Tests for the expiry scheduler."""

import logging
from datetime import timedelta
from uuid import uuid4

from attendance_ledger.domain.errors import SessionNotFound
from attendance_ledger.services.expiry import ExpiryScheduler
from tests.conftest import FakeClock, ManualTimerFactory


def test_arm_schedules_remaining_delay() -> None:
    clock = FakeClock()
    timers = ManualTimerFactory()
    scheduler = ExpiryScheduler(timer_factory=timers, clock=clock)

    scheduler.arm(uuid4(), clock.now() + timedelta(minutes=10), lambda _id: None)
    scheduler.arm(uuid4(), clock.now() - timedelta(minutes=1), lambda _id: None)

    assert [timer.delay_seconds for timer in timers.timers] == [600, 0]
    assert scheduler.pending_count == 2


def test_fired_timer_invokes_callback_once() -> None:
    clock = FakeClock()
    timers = ManualTimerFactory()
    scheduler = ExpiryScheduler(timer_factory=timers, clock=clock)
    session_id = uuid4()
    expired: list = []

    scheduler.arm(session_id, clock.now(), expired.append)
    timers.fire_all()
    timers.fire_all()

    assert expired == [session_id]
    assert scheduler.pending_count == 0


def test_rearming_replaces_previous_timer() -> None:
    clock = FakeClock()
    timers = ManualTimerFactory()
    scheduler = ExpiryScheduler(timer_factory=timers, clock=clock)
    session_id = uuid4()

    scheduler.arm(session_id, clock.now(), lambda _id: None)
    scheduler.arm(session_id, clock.now(), lambda _id: None)

    assert timers.timers[0].cancelled
    assert scheduler.pending_count == 1


def test_callback_failures_are_logged(caplog, monkeypatch) -> None:
    monkeypatch.setattr(logging.getLogger("attendance_ledger"), "propagate", True)
    clock = FakeClock()
    timers = ManualTimerFactory()
    scheduler = ExpiryScheduler(timer_factory=timers, clock=clock)

    def boom(_session_id) -> None:
        raise RuntimeError("store down")

    def deleted(_session_id) -> None:
        raise SessionNotFound()

    scheduler.arm(uuid4(), clock.now(), boom)
    scheduler.arm(uuid4(), clock.now(), deleted)
    with caplog.at_level(logging.DEBUG, logger="attendance_ledger.services.expiry"):
        timers.fire_all()

    assert "Failed to expire session" in caplog.text
    assert "deleted before it expired" in caplog.text


def test_shutdown_cancels_pending_timers() -> None:
    clock = FakeClock()
    timers = ManualTimerFactory()
    scheduler = ExpiryScheduler(timer_factory=timers, clock=clock)
    scheduler.arm(uuid4(), clock.now() + timedelta(minutes=5), lambda _id: None)

    scheduler.shutdown()

    assert timers.timers[0].cancelled
    assert timers.closed
    assert scheduler.pending_count == 0

def test_stale_timer_keeps_newer_handle_pending() -> None:
    clock = FakeClock()
    timers = ManualTimerFactory()
    scheduler = ExpiryScheduler(timer_factory=timers, clock=clock)
    session_id = uuid4()
    scheduler.arm(session_id, clock.now(), lambda _id: None)
    scheduler.arm(session_id, clock.now() + timedelta(minutes=1), lambda _id: None)

    timers.timers[0].callback()

    assert scheduler.pending_count == 1
