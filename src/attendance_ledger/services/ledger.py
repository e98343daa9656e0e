"""Append-only submission ledger."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol
from uuid import UUID, uuid4

from attendance_ledger.domain.errors import DuplicateSubmission, StoreConflict
from attendance_ledger.domain.sessions import Session
from attendance_ledger.domain.submissions import SubmissionRecord
from attendance_ledger.services.clock import Clock, SystemClock
from attendance_ledger.services.devices import (
    DeviceBindingRegistry,
    normalize_fingerprint,
    normalize_identity,
)
from attendance_ledger.services.identifiers import IdentifierResolver
from attendance_ledger.services.locks import KeyedLocks
from attendance_ledger.services.sessions import SessionManager, SubmissionCascade

logger = logging.getLogger(__name__)


class SubmissionRepository(SubmissionCascade, Protocol):
    """Persistence interface for submissions."""

    def get_submission(
        self, session_id: UUID, identity: str
    ) -> SubmissionRecord | None:
        """Return the submission for a (session, identity) pair, if present."""

    def create_submission(self, record: SubmissionRecord) -> None:
        """Insert a submission; raise StoreConflict if the pair exists."""

    def list_by_session(self, session_id: UUID) -> list[SubmissionRecord]:
        """Return a session's submissions in insertion order."""

    def count_by_sessions(self, session_ids: list[UUID]) -> dict[UUID, int]:
        """Return submission counts keyed by session id."""


@dataclass
class SubmissionLedger:
    """Records at most one submission per identity per session."""

    repository: SubmissionRepository
    sessions: SessionManager
    devices: DeviceBindingRegistry
    resolver: IdentifierResolver
    clock: Clock = field(default_factory=SystemClock)
    locks: KeyedLocks = field(default_factory=KeyedLocks)

    def submit(
        self,
        session_id: UUID,
        identity: str,
        device_fingerprint: str,
        now: datetime | None = None,
    ) -> SubmissionRecord:
        """Record a submission for a session by id."""
        identity = normalize_identity(identity)
        device_fingerprint = normalize_fingerprint(device_fingerprint)
        session = self.sessions.get(session_id)
        return self._append(session, identity, device_fingerprint, now)

    def submit_by_code(
        self,
        code: str,
        identity: str,
        device_fingerprint: str,
        now: datetime | None = None,
    ) -> SubmissionRecord:
        """Record a submission for the session holding an access code."""
        identity = normalize_identity(identity)
        device_fingerprint = normalize_fingerprint(device_fingerprint)
        session = self.sessions.get_by_code(code)
        return self._append(session, identity, device_fingerprint, now)

    def list_by_session(self, session_id: UUID) -> list[SubmissionRecord]:
        """Return a session's submissions in insertion order."""
        return self.repository.list_by_session(session_id)

    def count_by_sessions(self, session_ids: list[UUID]) -> dict[UUID, int]:
        """Return submission counts for the given sessions."""
        if not session_ids:
            return {}
        return self.repository.count_by_sessions(session_ids)

    def _append(
        self,
        session: Session,
        identity: str,
        device_fingerprint: str,
        now: datetime | None,
    ) -> SubmissionRecord:
        submitted_at = now or self.clock.now()
        self.sessions.ensure_open(session, submitted_at)
        self.devices.require(identity, device_fingerprint)

        with self.locks.hold((session.id, identity)):
            if self.repository.get_submission(session.id, identity) is not None:
                raise DuplicateSubmission()
            record = SubmissionRecord(
                id=uuid4(),
                session_id=session.id,
                identity=identity,
                secondary_id=self.resolver.resolve_or_placeholder(identity),
                device_fingerprint=device_fingerprint,
                submitted_at=submitted_at,
            )
            try:
                self.repository.create_submission(record)
            except StoreConflict:
                raise DuplicateSubmission() from None

        logger.info("Recorded %s for session %s", identity, session.id)
        return record
