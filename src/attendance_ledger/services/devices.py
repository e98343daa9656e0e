"""Permanent identity-to-device bindings."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from attendance_ledger.domain.devices import DeviceAuthorization, DeviceBinding
from attendance_ledger.domain.errors import (
    DeviceMismatch,
    InvalidInput,
    StoreConflict,
    StoreUnavailable,
)
from attendance_ledger.services.clock import Clock, SystemClock
from attendance_ledger.services.locks import KeyedLocks

logger = logging.getLogger(__name__)


class DeviceBindingRepository(Protocol):
    """Persistence interface for device bindings."""

    def get_binding(self, identity: str) -> DeviceBinding | None:
        """Return the binding for an identity, if present."""

    def create_binding(self, binding: DeviceBinding) -> None:
        """Insert a binding; raise StoreConflict if the identity is bound."""


def normalize_identity(identity: str) -> str:
    """Return the canonical form of a submitter identity."""
    cleaned = identity.strip().lower() if isinstance(identity, str) else ""
    if not cleaned:
        raise InvalidInput("Identity is required.")
    return cleaned


def normalize_fingerprint(fingerprint: str) -> str:
    """Return a device fingerprint with surrounding whitespace removed."""
    cleaned = fingerprint.strip() if isinstance(fingerprint, str) else ""
    if not cleaned:
        raise InvalidInput("Device fingerprint is required.")
    return cleaned


@dataclass
class DeviceBindingRegistry:
    """Binds each identity to the first device it is seen with."""

    repository: DeviceBindingRepository
    clock: Clock = field(default_factory=SystemClock)
    locks: KeyedLocks = field(default_factory=KeyedLocks)

    def authorize(self, identity: str, fingerprint: str) -> DeviceAuthorization:
        """Check a device against the identity's binding, binding on first use."""
        identity = normalize_identity(identity)
        fingerprint = normalize_fingerprint(fingerprint)
        with self.locks.hold(identity):
            existing = self.repository.get_binding(identity)
            if existing is not None:
                return _compare(existing, fingerprint)
            binding = DeviceBinding(
                identity=identity,
                device_fingerprint=fingerprint,
                bound_at=self.clock.now(),
            )
            try:
                self.repository.create_binding(binding)
            except StoreConflict:
                # Another process bound the identity between our read and write.
                existing = self.repository.get_binding(identity)
                if existing is None:
                    raise StoreUnavailable() from None
                return _compare(existing, fingerprint)
        logger.info("Bound %s to a device", identity)
        return DeviceAuthorization.BOUND_NOW

    def require(self, identity: str, fingerprint: str) -> DeviceAuthorization:
        """Authorize a device or raise DeviceMismatch."""
        result = self.authorize(identity, fingerprint)
        if result is DeviceAuthorization.MISMATCH:
            raise DeviceMismatch()
        return result

    def get_binding(self, identity: str) -> DeviceBinding | None:
        """Return the binding for an identity, if any."""
        return self.repository.get_binding(normalize_identity(identity))


def _compare(binding: DeviceBinding, fingerprint: str) -> DeviceAuthorization:
    if binding.device_fingerprint == fingerprint:
        return DeviceAuthorization.ALREADY_AUTHORIZED
    return DeviceAuthorization.MISMATCH
