"""Supabase-backed submission repository."""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from attendance_ledger.adapters.supabase_errors import store_errors
from attendance_ledger.domain.errors import StoreUnavailable
from attendance_ledger.domain.submissions import SubmissionRecord
from attendance_ledger.services.ledger import SubmissionRepository

_TABLE = "attendance_submissions"
_COLUMNS = "id, session_id, identity, secondary_id, device_fingerprint, submitted_at"
_NIL_ID = "00000000-0000-0000-0000-000000000000"


@dataclass
class SupabaseSubmissionRepository(SubmissionRepository):
    """Supabase implementation for attendance submissions.

    The table carries a unique index on ``(session_id, identity)`` and a
    ``seq`` identity column that preserves insertion order.
    """

    client: Client

    def get_submission(
        self, session_id: UUID, identity: str
    ) -> SubmissionRecord | None:
        """Return the submission for a (session, identity) pair, if present."""
        with store_errors("get_submission"):
            response = (
                self.client.table(_TABLE)
                .select(_COLUMNS)
                .eq("session_id", str(session_id))
                .eq("identity", identity)
                .limit(1)
                .execute()
            )
        return _to_record(response.data[0]) if response.data else None

    def create_submission(self, record: SubmissionRecord) -> None:
        """Insert a submission row."""
        with store_errors("create_submission"):
            response = (
                self.client.table(_TABLE)
                .insert(
                    {
                        "id": str(record.id),
                        "session_id": str(record.session_id),
                        "identity": record.identity,
                        "secondary_id": record.secondary_id,
                        "device_fingerprint": record.device_fingerprint,
                        "submitted_at": record.submitted_at.isoformat(),
                    }
                )
                .execute()
            )
        if not response.data:
            raise StoreUnavailable("Failed to record submission")

    def list_by_session(self, session_id: UUID) -> list[SubmissionRecord]:
        """Return a session's submissions in insertion order."""
        with store_errors("list_by_session"):
            response = (
                self.client.table(_TABLE)
                .select(_COLUMNS)
                .eq("session_id", str(session_id))
                .order("seq")
                .execute()
            )
        return [_to_record(row) for row in response.data or []]

    def count_by_sessions(self, session_ids: list[UUID]) -> dict[UUID, int]:
        """Return submission counts keyed by session id."""
        with store_errors("count_by_sessions"):
            response = (
                self.client.table(_TABLE)
                .select("session_id")
                .in_("session_id", [str(session_id) for session_id in session_ids])
                .execute()
            )
        counts = Counter(UUID(str(row["session_id"])) for row in response.data or [])
        return dict(counts)

    def delete_for_sessions(self, session_ids: list[UUID]) -> None:
        """Delete submissions belonging to the given sessions."""
        with store_errors("delete_for_sessions"):
            self.client.table(_TABLE).delete().in_(
                "session_id", [str(session_id) for session_id in session_ids]
            ).execute()

    def delete_all(self) -> None:
        """Delete every submission row."""
        with store_errors("delete_all_submissions"):
            self.client.table(_TABLE).delete().neq("id", _NIL_ID).execute()


def _to_record(row: dict[str, object]) -> SubmissionRecord:
    return SubmissionRecord(
        id=UUID(str(row["id"])),
        session_id=UUID(str(row["session_id"])),
        identity=str(row["identity"]),
        secondary_id=str(row["secondary_id"]),
        device_fingerprint=str(row["device_fingerprint"]),
        submitted_at=datetime.fromisoformat(str(row["submitted_at"])),
    )
