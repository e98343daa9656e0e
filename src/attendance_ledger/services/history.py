"""Retention-windowed history of sessions and submissions."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from attendance_ledger.domain.sessions import Session, SessionSummary
from attendance_ledger.domain.submissions import SubmissionRecord
from attendance_ledger.services.clock import Clock, SystemClock
from attendance_ledger.services.ledger import SubmissionLedger
from attendance_ledger.services.sessions import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class HistoryStore:
    """Query and purge surface bounded by the retention window."""

    sessions: SessionManager
    ledger: SubmissionLedger
    clock: Clock = field(default_factory=SystemClock)

    def cutoff(self, now: datetime | None = None) -> datetime:
        """Return the oldest creation time still retained."""
        return self.sessions.retention_cutoff(now or self.clock.now())

    def is_retained(self, session: Session, now: datetime | None = None) -> bool:
        """Return True if the session is inside the retention window."""
        return session.created_at >= self.cutoff(now)

    def list_sessions(self, owner_id: str) -> list[SessionSummary]:
        """Return an owner's retained sessions with submission counts."""
        sessions = self.sessions.list_by_owner(owner_id)
        counts = self.ledger.count_by_sessions([session.id for session in sessions])
        return [
            SessionSummary(session=session, submission_count=counts.get(session.id, 0))
            for session in sessions
        ]

    def get_submissions(self, session_id: UUID) -> list[SubmissionRecord]:
        """Return a retained session's submissions in insertion order."""
        session = self.sessions.get(session_id)
        return self.ledger.list_by_session(session.id)

    def sweep(self, now: datetime | None = None) -> int:
        """Delete every session older than the window, whatever its state."""
        expired_ids = self.sessions.list_created_before(self.cutoff(now))
        if not expired_ids:
            return 0
        self.sessions.delete_many(expired_ids)
        logger.info("Retention sweep purged %d sessions", len(expired_ids))
        return len(expired_ids)
