"""Tests for secondary identifier resolution."""

import pytest

from attendance_ledger.domain.errors import IdentifierNotFound, StoreUnavailable
from attendance_ledger.domain.submissions import NOT_FOUND
from attendance_ledger.services.cache import InMemoryCache
from attendance_ledger.services.identifiers import IdentifierResolver
from tests.conftest import InMemoryIdentifierRepository


@pytest.fixture
def resolver(roll_map, clock) -> IdentifierResolver:
    return IdentifierResolver(
        repository=roll_map, cache=InMemoryCache(clock=clock), cache_ttl_seconds=60
    )


def test_lookup_ignores_case(resolver) -> None:
    assert resolver.resolve("a@x") == "21ME001"
    assert resolver.resolve(" Student2@College.edu ") == "21ME002"


def test_hits_are_cached_until_ttl(resolver, roll_map, clock) -> None:
    resolver.resolve("a@x")
    resolver.resolve("A@X")
    assert roll_map.lookups == ["a@x"]

    clock.advance(seconds=61)
    resolver.resolve("a@x")
    assert roll_map.lookups == ["a@x", "a@x"]


def test_misses_are_not_cached(resolver, roll_map) -> None:
    with pytest.raises(IdentifierNotFound):
        resolver.resolve("late@x")
    roll_map.rows["late@x"] = "21ME099"

    assert resolver.resolve("late@x") == "21ME099"


def test_blank_identity_skips_lookup(resolver, roll_map) -> None:
    with pytest.raises(IdentifierNotFound):
        resolver.resolve("   ")
    assert roll_map.lookups == []


def test_resolve_propagates_unavailable_store(resolver, roll_map) -> None:
    roll_map.unavailable = True

    with pytest.raises(StoreUnavailable):
        resolver.resolve("a@x")


def test_placeholder_for_unknown_and_unavailable(resolver, roll_map) -> None:
    assert resolver.resolve_or_placeholder("nobody@x") == NOT_FOUND

    roll_map.unavailable = True
    assert resolver.resolve_or_placeholder("a@x") == NOT_FOUND


def test_placeholder_uses_cached_hit_when_store_is_down(resolver, roll_map) -> None:
    resolver.resolve("a@x")
    roll_map.unavailable = True

    assert resolver.resolve_or_placeholder("a@x") == "21ME001"


def test_blank_roll_number_is_not_a_hit() -> None:
    repository = InMemoryIdentifierRepository(rows={"a@x": ""})
    resolver = IdentifierResolver(repository=repository)

    assert resolver.resolve_or_placeholder("a@x") == NOT_FOUND
