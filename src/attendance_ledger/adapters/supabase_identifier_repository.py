"""Supabase-backed roll number lookup."""

from dataclasses import dataclass

from supabase import Client

from attendance_ledger.adapters.supabase_errors import store_errors
from attendance_ledger.services.identifiers import IdentifierRepository


@dataclass
class SupabaseIdentifierRepository(IdentifierRepository):
    """Reads the ``roll_map`` reference table (email -> roll number)."""

    client: Client

    def lookup(self, identity: str) -> str | None:
        """Return the roll number for an email, ignoring case.

        ``ilike`` narrows the rows server-side; PostgREST still reads ``*`` as a
        wildcard, so only rows whose email equals the identity are accepted.
        """
        with store_errors("lookup_identifier"):
            response = (
                self.client.table("roll_map")
                .select("email, roll_number")
                .ilike("email", _escape_like(identity))
                .execute()
            )
        for row in response.data or []:
            email = row.get("email")
            if not isinstance(email, str) or email.strip().lower() != identity:
                continue
            value = row.get("roll_number")
            if value is None:
                return None
            return str(value).strip() or None
        return None


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
