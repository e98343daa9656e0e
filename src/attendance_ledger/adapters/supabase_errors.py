"""Translation of Supabase client failures into store errors."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import httpx
from postgrest.exceptions import APIError

from attendance_ledger.domain.errors import StoreConflict, StoreUnavailable

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Map PostgREST and transport errors raised inside the block."""
    try:
        yield
    except APIError as exc:
        if exc.code == UNIQUE_VIOLATION:
            raise StoreConflict(exc.message or operation) from exc
        logger.warning("Store rejected %s: %s", operation, exc.message)
        raise StoreUnavailable() from exc
    except httpx.HTTPError as exc:
        logger.warning("Store unreachable during %s: %s", operation, exc)
        raise StoreUnavailable() from exc
