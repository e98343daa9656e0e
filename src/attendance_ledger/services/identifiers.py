"""Secondary identifier lookup against the reference table."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from attendance_ledger.domain.errors import IdentifierNotFound, StoreUnavailable
from attendance_ledger.domain.submissions import NOT_FOUND
from attendance_ledger.services.cache import Cache, InMemoryCache

logger = logging.getLogger(__name__)


class IdentifierRepository(Protocol):
    """Read-only reference table mapping identities to secondary ids."""

    def lookup(self, identity: str) -> str | None:
        """Return the secondary id for a lower-cased identity, if present."""


@dataclass
class IdentifierResolver:
    """Resolve identities to secondary identifiers, case-insensitively."""

    repository: IdentifierRepository
    cache: Cache = field(default_factory=InMemoryCache)
    cache_ttl_seconds: int = 300

    def resolve(self, identity: str) -> str:
        """Return the secondary id for an identity.

        Raises IdentifierNotFound when the reference table has no row for it.
        """
        key = identity.strip().lower()
        if not key:
            raise IdentifierNotFound()
        cached = self.cache.get(key)
        if isinstance(cached, str):
            return cached
        secondary_id = self.repository.lookup(key)
        if not secondary_id:
            raise IdentifierNotFound()
        self.cache.set(key, secondary_id, self.cache_ttl_seconds)
        return secondary_id

    def resolve_or_placeholder(self, identity: str) -> str:
        """Return the secondary id, or the NOT_FOUND placeholder.

        Never raises for a missing row or an unreachable reference table.
        """
        try:
            return self.resolve(identity)
        except IdentifierNotFound:
            return NOT_FOUND
        except StoreUnavailable:
            logger.warning("Identifier lookup unavailable for %s", identity)
            return NOT_FOUND
