"""Request surface consumed by the HTTP layer."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from attendance_ledger.domain.devices import DeviceAuthorization
from attendance_ledger.domain.errors import DeviceMismatch, SessionNotFound
from attendance_ledger.domain.sessions import Session, SessionSummary
from attendance_ledger.domain.submissions import NOT_FOUND, SubmissionRecord
from attendance_ledger.services.devices import (
    DeviceBindingRegistry,
    normalize_identity,
)
from attendance_ledger.services.history import HistoryStore
from attendance_ledger.services.ledger import SubmissionLedger
from attendance_ledger.services.sessions import SessionManager


@dataclass
class AttendanceService:
    """Owner and submitter operations returning plain payloads."""

    sessions: SessionManager
    ledger: SubmissionLedger
    devices: DeviceBindingRegistry
    history: HistoryStore
    public_base_url: str

    def create_session(self, name: str, owner_id: str) -> dict[str, object]:
        """Start a session and return its id, code and scan URL."""
        session = self.sessions.create(name, owner_id)
        return {
            "id": str(session.id),
            "name": session.name,
            "code": session.code,
            "url": self.session_url(session.code),
            "created_at": session.created_at.isoformat(),
            "expires_at": session.expires_at(self.sessions.duration).isoformat(),
        }

    def stop_session(self, session_id: UUID, owner_id: str) -> dict[str, object]:
        """Stop an owner's session and return its terminal state."""
        self._owned(session_id, owner_id)
        session = self.sessions.stop(session_id)
        return {
            "id": str(session.id),
            "state": session.state.value,
            "stopped_at": _isoformat(session.stopped_at),
        }

    def submit(
        self, code: str, identity: str, device_fingerprint: str
    ) -> dict[str, object]:
        """Record a submission for the session behind an access code."""
        record = self.ledger.submit_by_code(code, identity, device_fingerprint)
        return {
            "accepted": True,
            "secondary_id": record.secondary_id,
            "resolved": record.secondary_id != NOT_FOUND,
            "submitted_at": record.submitted_at.isoformat(),
        }

    def register_device(
        self, identity: str, device_fingerprint: str
    ) -> dict[str, object]:
        """Bind a device ahead of any session, as the submitter app does on login."""
        result = self.devices.authorize(identity, device_fingerprint)
        if result is DeviceAuthorization.MISMATCH:
            raise DeviceMismatch()
        return {"identity": normalize_identity(identity), "status": result.value}

    def list_sessions(self, owner_id: str) -> list[dict[str, object]]:
        """Return an owner's retained sessions, newest first."""
        summaries = self.history.list_sessions(owner_id)
        return [_serialize_summary(summary) for summary in summaries]

    def get_submissions(
        self, session_id: UUID, owner_id: str
    ) -> list[dict[str, object]]:
        """Return an owner's session submissions in insertion order."""
        self._owned(session_id, owner_id)
        return [
            _serialize_submission(record)
            for record in self.history.get_submissions(session_id)
        ]

    def session_status(self, code: str) -> dict[str, object]:
        """Return advisory status for a session code.

        Clients may count down from ``remaining_seconds``; the server-side
        state stays authoritative.
        """
        session = self.sessions.get_by_code(code)
        expires_at = session.expires_at(self.sessions.duration)
        now = self.sessions.clock.now()
        remaining = (
            max(0, int((expires_at - now).total_seconds())) if session.active else 0
        )
        return {
            "name": session.name,
            "active": session.active and remaining > 0,
            "state": session.state.value,
            "expires_at": expires_at.isoformat(),
            "remaining_seconds": remaining,
        }

    def delete_sessions(self, session_ids: list[UUID], owner_id: str) -> int:
        """Delete an owner's sessions; ids of other owners are skipped."""
        owned = {session.id for session in self.sessions.list_by_owner(owner_id)}
        targets = [session_id for session_id in session_ids if session_id in owned]
        self.sessions.delete_many(targets)
        return len(targets)

    def clear_owner(self, owner_id: str) -> int:
        """Delete every retained session of an owner."""
        ids = [session.id for session in self.sessions.list_by_owner(owner_id)]
        self.sessions.delete_many(ids)
        return len(ids)

    def clear_all(self) -> None:
        """Delete every session and submission of every owner."""
        self.sessions.clear_all()

    def session_url(self, code: str) -> str:
        """Return the URL a scannable code should carry."""
        return f"{self.public_base_url.rstrip('/')}/s/{code}"

    def _owned(self, session_id: UUID, owner_id: str) -> Session:
        session = self.sessions.get(session_id)
        if session.owner_id != owner_id:
            raise SessionNotFound()
        return session


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _serialize_summary(summary: SessionSummary) -> dict[str, object]:
    session = summary.session
    return {
        "id": str(session.id),
        "name": session.name,
        "code": session.code,
        "created_at": session.created_at.isoformat(),
        "stopped_at": _isoformat(session.stopped_at),
        "active": session.active,
        "state": session.state.value,
        "submission_count": summary.submission_count,
    }


def _serialize_submission(record: SubmissionRecord) -> dict[str, object]:
    return {
        "identity": record.identity,
        "secondary_id": record.secondary_id,
        "submitted_at": record.submitted_at.isoformat(),
    }
