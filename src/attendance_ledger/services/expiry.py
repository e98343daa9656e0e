"""One-shot expiry timers for active sessions."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol
from uuid import UUID

from attendance_ledger.domain.errors import SessionNotFound
from attendance_ledger.services.clock import Clock, SystemClock

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    """Handle for a started timer."""

    def cancel(self) -> None:
        """Prevent the timer from firing if it has not fired yet."""


class TimerFactory(Protocol):
    """Timer facility used to defer expiry callbacks."""

    def start(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay_seconds``."""

    def shutdown(self) -> None:
        """Release the timer facility; pending timers are dropped."""


@dataclass
class ExpiryScheduler:
    """Arms a single deferred expiry per active session.

    Timers are never cancelled when a session is stopped by hand: the fired
    callback goes through the same terminal claim as a manual stop and turns
    into a no-op when it loses.
    """

    timer_factory: TimerFactory
    clock: Clock = field(default_factory=SystemClock)
    _pending: dict[UUID, TimerHandle] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def arm(
        self,
        session_id: UUID,
        fire_at: datetime,
        on_expire: Callable[[UUID], object],
    ) -> None:
        """Schedule ``on_expire(session_id)`` at ``fire_at``."""
        delay = max(0.0, (fire_at - self.clock.now()).total_seconds())
        handle: TimerHandle | None = None

        def fire() -> None:
            with self._lock:
                if self._pending.get(session_id) is handle:
                    del self._pending[session_id]
            try:
                on_expire(session_id)
            except SessionNotFound:
                logger.debug("Session %s was deleted before it expired", session_id)
            except Exception:
                logger.exception("Failed to expire session %s", session_id)

        with self._lock:
            previous = self._pending.pop(session_id, None)
            if previous is not None:
                previous.cancel()
            handle = self.timer_factory.start(delay, fire)
            self._pending[session_id] = handle
        logger.debug("Armed expiry for session %s in %.1fs", session_id, delay)

    def shutdown(self) -> None:
        """Cancel every timer that has not fired yet."""
        with self._lock:
            handles = list(self._pending.values())
            self._pending.clear()
        for handle in handles:
            handle.cancel()
        self.timer_factory.shutdown()

    @property
    def pending_count(self) -> int:
        """Number of timers armed and not yet fired."""
        with self._lock:
            return len(self._pending)
