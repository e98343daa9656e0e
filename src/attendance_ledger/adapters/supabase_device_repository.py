"""Supabase-backed device binding repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from attendance_ledger.adapters.supabase_errors import store_errors
from attendance_ledger.domain.devices import DeviceBinding
from attendance_ledger.domain.errors import StoreUnavailable
from attendance_ledger.services.devices import DeviceBindingRepository


@dataclass
class SupabaseDeviceBindingRepository(DeviceBindingRepository):
    """Supabase implementation for device bindings (unique on identity)."""

    client: Client

    def get_binding(self, identity: str) -> DeviceBinding | None:
        """Return the binding for an identity, if present."""
        with store_errors("get_binding"):
            response = (
                self.client.table("device_bindings")
                .select("identity, device_fingerprint, bound_at")
                .eq("identity", identity)
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        row = response.data[0]
        return DeviceBinding(
            identity=row["identity"],
            device_fingerprint=row["device_fingerprint"],
            bound_at=datetime.fromisoformat(row["bound_at"]),
        )

    def create_binding(self, binding: DeviceBinding) -> None:
        """Insert a binding row."""
        with store_errors("create_binding"):
            response = (
                self.client.table("device_bindings")
                .insert(
                    {
                        "identity": binding.identity,
                        "device_fingerprint": binding.device_fingerprint,
                        "bound_at": binding.bound_at.isoformat(),
                    }
                )
                .execute()
            )
        if not response.data:
            raise StoreUnavailable("Failed to bind device")
