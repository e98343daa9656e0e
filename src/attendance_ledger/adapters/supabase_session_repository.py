"""Supabase-backed session repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from attendance_ledger.adapters.supabase_errors import store_errors
from attendance_ledger.domain.errors import StoreUnavailable
from attendance_ledger.domain.sessions import Session, SessionState
from attendance_ledger.services.sessions import SessionRepository

_TABLE = "attendance_sessions"
_COLUMNS = "id, name, code, owner_id, created_at, stopped_at, state"
_NIL_ID = "00000000-0000-0000-0000-000000000000"


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for attendance sessions."""

    client: Client

    def create_session(self, session: Session) -> None:
        """Insert a session row."""
        with store_errors("create_session"):
            response = (
                self.client.table(_TABLE)
                .insert(
                    {
                        "id": str(session.id),
                        "name": session.name,
                        "code": session.code,
                        "owner_id": session.owner_id,
                        "created_at": session.created_at.isoformat(),
                        "stopped_at": None,
                        "state": session.state.value,
                    }
                )
                .execute()
            )
        if not response.data:
            raise StoreUnavailable("Failed to create session")

    def get_session(self, session_id: UUID) -> Session | None:
        """Return a session by id, if present."""
        with store_errors("get_session"):
            response = (
                self.client.table(_TABLE)
                .select(_COLUMNS)
                .eq("id", str(session_id))
                .limit(1)
                .execute()
            )
        return _to_session(response.data[0]) if response.data else None

    def get_by_code(self, code: str) -> Session | None:
        """Return a session by access code, if present."""
        with store_errors("get_by_code"):
            response = (
                self.client.table(_TABLE)
                .select(_COLUMNS)
                .eq("code", code)
                .limit(1)
                .execute()
            )
        return _to_session(response.data[0]) if response.data else None

    def list_by_owner(self, owner_id: str, created_after: datetime) -> list[Session]:
        """Return an owner's sessions created after a cutoff, newest first."""
        with store_errors("list_by_owner"):
            response = (
                self.client.table(_TABLE)
                .select(_COLUMNS)
                .eq("owner_id", owner_id)
                .gte("created_at", created_after.isoformat())
                .order("created_at", desc=True)
                .execute()
            )
        return [_to_session(row) for row in response.data or []]

    def list_active(self) -> list[Session]:
        """Return every active session."""
        with store_errors("list_active"):
            response = (
                self.client.table(_TABLE)
                .select(_COLUMNS)
                .eq("state", SessionState.ACTIVE.value)
                .execute()
            )
        return [_to_session(row) for row in response.data or []]

    def list_created_before(self, cutoff: datetime) -> list[UUID]:
        """Return ids of sessions created before a cutoff."""
        with store_errors("list_created_before"):
            response = (
                self.client.table(_TABLE)
                .select("id")
                .lt("created_at", cutoff.isoformat())
                .execute()
            )
        return [UUID(row["id"]) for row in response.data or []]

    def claim_terminal(
        self, session_id: UUID, state: SessionState, stopped_at: datetime
    ) -> Session | None:
        """Conditionally move an active session to a terminal state."""
        with store_errors("claim_terminal"):
            response = (
                self.client.table(_TABLE)
                .update({"state": state.value, "stopped_at": stopped_at.isoformat()})
                .eq("id", str(session_id))
                .eq("state", SessionState.ACTIVE.value)
                .execute()
            )
        return _to_session(response.data[0]) if response.data else None

    def delete_sessions(self, session_ids: list[UUID]) -> None:
        """Delete sessions by id."""
        with store_errors("delete_sessions"):
            self.client.table(_TABLE).delete().in_(
                "id", [str(session_id) for session_id in session_ids]
            ).execute()

    def delete_all(self) -> None:
        """Delete every session row."""
        with store_errors("delete_all_sessions"):
            self.client.table(_TABLE).delete().neq("id", _NIL_ID).execute()


def _to_session(row: dict[str, object]) -> Session:
    stopped_at = row.get("stopped_at")
    return Session(
        id=UUID(str(row["id"])),
        name=str(row["name"]),
        code=str(row["code"]),
        owner_id=str(row["owner_id"]),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        stopped_at=(
            datetime.fromisoformat(stopped_at)
            if isinstance(stopped_at, str) and stopped_at
            else None
        ),
        state=SessionState(row["state"]),
    )
