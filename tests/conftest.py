"""Shared test fixtures."""

import threading
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest

from attendance_ledger.config import Settings
from attendance_ledger.containers import AppContainer, assemble_container
from attendance_ledger.domain.devices import DeviceBinding
from attendance_ledger.domain.errors import StoreConflict, StoreUnavailable
from attendance_ledger.domain.sessions import Session, SessionState
from attendance_ledger.domain.submissions import SubmissionRecord
from attendance_ledger.services.clock import Clock
from attendance_ledger.services.devices import DeviceBindingRepository
from attendance_ledger.services.expiry import TimerFactory, TimerHandle
from attendance_ledger.services.identifiers import IdentifierRepository
from attendance_ledger.services.ledger import SubmissionRepository
from attendance_ledger.services.sessions import SessionRepository

START = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


@dataclass
class FakeClock(Clock):
    """Clock that only moves when told to."""

    current: datetime = START

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


@dataclass
class ManualTimer(TimerHandle):
    delay_seconds: float
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.cancelled or self.fired:
            return
        self.fired = True
        self.callback()


@dataclass
class ManualTimerFactory(TimerFactory):
    """Timer factory whose timers fire only when a test fires them."""

    timers: list[ManualTimer] = field(default_factory=list)
    closed: bool = False

    def start(self, delay_seconds: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(delay_seconds=delay_seconds, callback=callback)
        self.timers.append(timer)
        return timer

    def fire_all(self) -> None:
        for timer in list(self.timers):
            timer.fire()

    def shutdown(self) -> None:
        self.closed = True


@dataclass
class InMemorySessionRepository(SessionRepository):
    """In-memory session repository for tests."""

    sessions: dict[UUID, Session] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def create_session(self, session: Session) -> None:
        with self._lock:
            if any(item.code == session.code for item in self.sessions.values()):
                raise StoreConflict(session.code)
            self.sessions[session.id] = session

    def get_session(self, session_id: UUID) -> Session | None:
        return self.sessions.get(session_id)

    def get_by_code(self, code: str) -> Session | None:
        for session in list(self.sessions.values()):
            if session.code == code:
                return session
        return None

    def list_by_owner(self, owner_id: str, created_after: datetime) -> list[Session]:
        return [
            session
            for session in list(self.sessions.values())
            if session.owner_id == owner_id and session.created_at >= created_after
        ]

    def list_active(self) -> list[Session]:
        return [session for session in list(self.sessions.values()) if session.active]

    def list_created_before(self, cutoff: datetime) -> list[UUID]:
        return [
            session.id
            for session in list(self.sessions.values())
            if session.created_at < cutoff
        ]

    def claim_terminal(
        self, session_id: UUID, state: SessionState, stopped_at: datetime
    ) -> Session | None:
        with self._lock:
            session = self.sessions.get(session_id)
            if session is None or not session.active:
                return None
            updated = replace(session, state=state, stopped_at=stopped_at)
            self.sessions[session_id] = updated
            return updated

    def delete_sessions(self, session_ids: list[UUID]) -> None:
        with self._lock:
            for session_id in session_ids:
                self.sessions.pop(session_id, None)

    def delete_all(self) -> None:
        with self._lock:
            self.sessions.clear()


@dataclass
class InMemorySubmissionRepository(SubmissionRepository):
    """In-memory submission repository for tests."""

    records: list[SubmissionRecord] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def get_submission(
        self, session_id: UUID, identity: str
    ) -> SubmissionRecord | None:
        for record in list(self.records):
            if record.session_id == session_id and record.identity == identity:
                return record
        return None

    def create_submission(self, record: SubmissionRecord) -> None:
        with self._lock:
            for existing in self.records:
                if (existing.session_id, existing.identity) == (
                    record.session_id,
                    record.identity,
                ):
                    raise StoreConflict(record.identity)
            self.records.append(record)

    def list_by_session(self, session_id: UUID) -> list[SubmissionRecord]:
        return [
            record for record in list(self.records) if record.session_id == session_id
        ]

    def count_by_sessions(self, session_ids: list[UUID]) -> dict[UUID, int]:
        counts: dict[UUID, int] = {}
        for record in list(self.records):
            if record.session_id in session_ids:
                counts[record.session_id] = counts.get(record.session_id, 0) + 1
        return counts

    def delete_for_sessions(self, session_ids: list[UUID]) -> None:
        with self._lock:
            self.records = [
                record
                for record in self.records
                if record.session_id not in session_ids
            ]

    def delete_all(self) -> None:
        with self._lock:
            self.records = []


@dataclass
class InMemoryDeviceBindingRepository(DeviceBindingRepository):
    """In-memory device binding repository for tests."""

    bindings: dict[str, DeviceBinding] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def get_binding(self, identity: str) -> DeviceBinding | None:
        return self.bindings.get(identity)

    def create_binding(self, binding: DeviceBinding) -> None:
        with self._lock:
            if binding.identity in self.bindings:
                raise StoreConflict(binding.identity)
            self.bindings[binding.identity] = binding


@dataclass
class InMemoryIdentifierRepository(IdentifierRepository):
    """Roll map held in a dict keyed by e-mail as entered."""

    rows: dict[str, str] = field(default_factory=dict)
    lookups: list[str] = field(default_factory=list)
    unavailable: bool = False

    def lookup(self, identity: str) -> str | None:
        self.lookups.append(identity)
        if self.unavailable:
            raise StoreUnavailable()
        for email, roll_number in self.rows.items():
            if email.lower() == identity:
                return roll_number
        return None


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        admin_token="admin-token",
        public_base_url="https://attendance.example.edu",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers() -> ManualTimerFactory:
    return ManualTimerFactory()


@pytest.fixture
def roll_map() -> InMemoryIdentifierRepository:
    return InMemoryIdentifierRepository(
        rows={"A@x": "21ME001", "student2@college.edu": "21ME002"}
    )


@pytest.fixture
def container(
    settings: Settings,
    clock: FakeClock,
    timers: ManualTimerFactory,
    roll_map: InMemoryIdentifierRepository,
) -> AppContainer:
    return assemble_container(
        settings,
        session_repository=InMemorySessionRepository(),
        submission_repository=InMemorySubmissionRepository(),
        device_repository=InMemoryDeviceBindingRepository(),
        identifier_repository=roll_map,
        timer_factory=timers,
        clock=clock,
    )
