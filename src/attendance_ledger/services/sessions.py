"""Session lifecycle: creation, terminal transitions and deletion."""

import logging
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol
from uuid import UUID, uuid4

from attendance_ledger.domain.errors import (
    InvalidInput,
    SessionExpired,
    SessionNotFound,
    StoreConflict,
    StoreUnavailable,
)
from attendance_ledger.domain.sessions import Session, SessionState
from attendance_ledger.services.clock import Clock, SystemClock
from attendance_ledger.services.expiry import ExpiryScheduler

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 120
_CODE_ALPHABET = string.ascii_letters + string.digits
_MAX_CODE_ATTEMPTS = 10


class SessionRepository(Protocol):
    """Persistence interface for sessions."""

    def create_session(self, session: Session) -> None:
        """Insert a session; raise StoreConflict if its code is taken."""

    def get_session(self, session_id: UUID) -> Session | None:
        """Return a session by id, if present."""

    def get_by_code(self, code: str) -> Session | None:
        """Return a session by access code, if present."""

    def list_by_owner(self, owner_id: str, created_after: datetime) -> list[Session]:
        """Return an owner's sessions created after a cutoff, newest first."""

    def list_active(self) -> list[Session]:
        """Return every session still in the active state."""

    def list_created_before(self, cutoff: datetime) -> list[UUID]:
        """Return ids of sessions created before a cutoff."""

    def claim_terminal(
        self, session_id: UUID, state: SessionState, stopped_at: datetime
    ) -> Session | None:
        """Move an active session to a terminal state.

        Returns the updated session, or None when the session is missing or
        already terminal. Must be a single compare-and-swap on the state.
        """

    def delete_sessions(self, session_ids: list[UUID]) -> None:
        """Delete sessions by id, ignoring missing ones."""

    def delete_all(self) -> None:
        """Delete every session."""


class SubmissionCascade(Protocol):
    """Submission storage that must follow session deletions."""

    def delete_for_sessions(self, session_ids: list[UUID]) -> None:
        """Delete submissions belonging to the given sessions."""

    def delete_all(self) -> None:
        """Delete every submission."""


def generate_code(length: int) -> str:
    """Return a random alphanumeric access code."""
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


@dataclass
class SessionManager:
    """Owns session state and the single terminal-transition claim."""

    repository: SessionRepository
    submissions: SubmissionCascade
    scheduler: ExpiryScheduler
    duration: timedelta
    retention: timedelta
    code_length: int = 8
    clock: Clock = field(default_factory=SystemClock)

    def create(self, name: str, owner_id: str) -> Session:
        """Create an active session and arm its expiry timer."""
        cleaned = name.strip() if isinstance(name, str) else ""
        if not cleaned:
            raise InvalidInput("Session name is required.")
        if len(cleaned) > MAX_NAME_LENGTH:
            raise InvalidInput(
                f"Session name must be at most {MAX_NAME_LENGTH} characters."
            )
        if not owner_id or not owner_id.strip():
            raise InvalidInput("Owner id is required.")

        for _ in range(_MAX_CODE_ATTEMPTS):
            code = generate_code(self.code_length)
            if self.repository.get_by_code(code) is not None:
                continue
            session = Session(
                id=uuid4(),
                name=cleaned,
                code=code,
                owner_id=owner_id.strip(),
                created_at=self.clock.now(),
                stopped_at=None,
                state=SessionState.ACTIVE,
            )
            try:
                self.repository.create_session(session)
            except StoreConflict:
                continue
            logger.info("Created session %s (%s) for %s", session.id, code, owner_id)
            self.scheduler.arm(
                session.id, session.expires_at(self.duration), self.expire
            )
            return session
        raise StoreUnavailable("Could not allocate a unique session code.")

    def get(self, session_id: UUID) -> Session:
        """Return a visible session or raise SessionNotFound.

        An active session past its duration is expired before it is returned.
        """
        return self._settle(self._load(session_id), self.clock.now())

    def get_by_code(self, code: str) -> Session:
        """Return a visible session by access code or raise SessionNotFound."""
        cleaned = code.strip() if isinstance(code, str) else ""
        if not cleaned:
            raise InvalidInput("Session code is required.")
        session = self._visible(self.repository.get_by_code(cleaned))
        return self._settle(session, self.clock.now())

    def stop(self, session_id: UUID) -> Session:
        """Stop a session by hand; idempotent once terminal."""
        session = self.get(session_id)
        if session.state.terminal:
            return session
        return self.claim_terminal(session_id, SessionState.STOPPED, self.clock.now())

    def expire(self, session_id: UUID) -> Session:
        """Expire a session whose duration elapsed; idempotent once terminal."""
        session = self._load(session_id)
        if session.state.terminal:
            return session
        at = min(self.clock.now(), session.expires_at(self.duration))
        return self.claim_terminal(session_id, SessionState.EXPIRED, at)

    def claim_terminal(
        self, session_id: UUID, state: SessionState, at: datetime
    ) -> Session:
        """Claim the one ACTIVE -> terminal transition for a session.

        The first caller records its state and timestamp. Later callers get
        the session as the winner left it.
        """
        if not state.terminal:
            raise ValueError("Terminal claim requires a terminal state")
        claimed = self.repository.claim_terminal(session_id, state, at)
        if claimed is not None:
            logger.info("Session %s is now %s", session_id, state.value)
            return claimed
        current = self.repository.get_session(session_id)
        if current is None:
            raise SessionNotFound()
        return current

    def ensure_open(self, session: Session, now: datetime | None = None) -> None:
        """Raise SessionExpired unless the session still accepts submissions.

        A session past its duration is expired on the spot, so the check does
        not depend on its timer having fired.
        """
        if session.state.terminal:
            raise SessionExpired()
        if (now or self.clock.now()) >= session.expires_at(self.duration):
            self.expire(session.id)
            raise SessionExpired()

    def list_by_owner(self, owner_id: str) -> list[Session]:
        """Return an owner's sessions inside the retention window, newest first."""
        now = self.clock.now()
        sessions = [
            self._settle(session, now)
            for session in self.repository.list_by_owner(
                owner_id, self.retention_cutoff(now)
            )
        ]
        return sorted(sessions, key=lambda item: item.created_at, reverse=True)

    def list_created_before(self, cutoff: datetime) -> list[UUID]:
        """Return ids of sessions created before a cutoff."""
        return self.repository.list_created_before(cutoff)

    def resume(self) -> int:
        """Re-arm expiry timers for sessions left active by a previous run."""
        sessions = self.repository.list_active()
        for session in sessions:
            self.scheduler.arm(
                session.id, session.expires_at(self.duration), self.expire
            )
        if sessions:
            logger.info("Re-armed expiry for %d active sessions", len(sessions))
        return len(sessions)

    def delete_many(self, session_ids: list[UUID]) -> None:
        """Delete sessions and their submissions; missing ids are ignored."""
        ids = list(dict.fromkeys(session_ids))
        if not ids:
            return
        self.submissions.delete_for_sessions(ids)
        self.repository.delete_sessions(ids)
        logger.info("Deleted %d sessions", len(ids))

    def clear_all(self) -> None:
        """Delete every session and submission."""
        self.submissions.delete_all()
        self.repository.delete_all()
        logger.info("Cleared all sessions")

    def retention_cutoff(self, now: datetime | None = None) -> datetime:
        """Return the oldest creation time still inside the retention window."""
        return (now or self.clock.now()) - self.retention

    def _settle(self, session: Session, now: datetime) -> Session:
        if session.active and now >= session.expires_at(self.duration):
            return self.expire(session.id)
        return session

    def _load(self, session_id: UUID) -> Session:
        return self._visible(self.repository.get_session(session_id))

    def _visible(self, session: Session | None) -> Session:
        if session is None or session.created_at < self.retention_cutoff():
            raise SessionNotFound()
        return session
