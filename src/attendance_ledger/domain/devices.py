"""Domain models for device bindings."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class DeviceAuthorization(str, Enum):
    """Outcome of checking a device against an identity's binding."""

    BOUND_NOW = "bound_now"
    ALREADY_AUTHORIZED = "already_authorized"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class DeviceBinding:
    """Permanent mapping from an identity to its device fingerprint."""

    identity: str
    device_fingerprint: str
    bound_at: datetime
