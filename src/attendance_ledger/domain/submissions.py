"""Domain models for attendance submissions."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

NOT_FOUND = "Not Found"


@dataclass(frozen=True)
class SubmissionRecord:
    """Represents one accepted attendance submission."""

    id: UUID
    session_id: UUID
    identity: str
    secondary_id: str
    device_fingerprint: str
    submitted_at: datetime
