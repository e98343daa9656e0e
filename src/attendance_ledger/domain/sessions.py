"""Domain models for attendance sessions."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID


class SessionState(str, Enum):
    """Lifecycle state of a session."""

    ACTIVE = "active"
    STOPPED = "stopped"
    EXPIRED = "expired"

    @property
    def terminal(self) -> bool:
        return self is not SessionState.ACTIVE


@dataclass(frozen=True)
class Session:
    """Represents a persisted attendance session."""

    id: UUID
    name: str
    code: str
    owner_id: str
    created_at: datetime
    stopped_at: datetime | None
    state: SessionState

    @property
    def active(self) -> bool:
        """Return True while the session accepts submissions."""
        return self.state is SessionState.ACTIVE

    def expires_at(self, duration: timedelta) -> datetime:
        """Return the instant the session's fixed duration elapses."""
        return self.created_at + duration


@dataclass(frozen=True)
class SessionSummary:
    """Session row as shown in an owner's history."""

    session: Session
    submission_count: int
