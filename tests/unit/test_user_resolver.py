"""Tests for display-name user resolution with surrogate fallback."""

import pytest

from itsm_migration.utils.user_resolver import UserResolver

pytestmark = pytest.mark.unit


def test_exact_match(fake_client) -> None:
    resolver = UserResolver(fake_client, "Migration Surrogate", "AffectedUser")

    resolution = resolver.resolve("Jane Doe", "IR1")

    assert resolution.source == "match"
    assert resolution.ref == "user-jane"
    assert resolver.warnings == []


def test_unknown_user_falls_back_to_surrogate(fake_client) -> None:
    resolver = UserResolver(fake_client, "Migration Surrogate", "AffectedUser")

    resolution = resolver.resolve("Smith, John", "IR1")

    assert resolution.source == "surrogate"
    assert resolution.ref == "user-surrogate"
    assert resolver.warnings == []


def test_empty_name_uses_surrogate(fake_client) -> None:
    resolver = UserResolver(fake_client, "Migration Surrogate", "AssignedTo")

    assert resolver.resolve("", "IR1").ref == "user-surrogate"


def test_lookup_error_uses_surrogate(fake_client) -> None:
    fake_client.failing_user_lookups.add("Jane Doe")
    resolver = UserResolver(fake_client, "Migration Surrogate", "AssignedTo")

    assert resolver.resolve("Jane Doe", "IR1").source == "surrogate"


def test_ambiguous_name_sets_nobody_and_warns(fake_client) -> None:
    fake_client.users["Smith, John"] = [
        {"id": "user-1", "displayName": "Smith, John"},
        {"id": "user-2", "displayName": "Smith, John"},
    ]
    resolver = UserResolver(fake_client, "Migration Surrogate", "AffectedUser")

    resolution = resolver.resolve("Smith, John", "IR7")

    assert resolution.source == "ambiguous"
    assert resolution.ref is None
    assert len(resolver.warnings) == 1
    assert "IR7" in resolver.warnings[0]


def test_unresolvable_surrogate_sets_nobody(fake_client) -> None:
    resolver = UserResolver(fake_client, "Nobody Known", "AssignedTo")

    resolution = resolver.resolve("Smith, John", "IR3")

    assert resolution.source == "unresolved"
    assert resolution.ref is None
    assert len(resolver.warnings) == 1


def test_results_are_cached_per_name(fake_client) -> None:
    resolver = UserResolver(fake_client, "Migration Surrogate")

    resolver.resolve("Smith, John", "IR1")
    resolver.resolve("Smith, John", "IR2")
    resolver.resolve("Jane Doe", "IR3")

    assert fake_client.user_lookups == ["Smith, John", "Migration Surrogate", "Jane Doe"]


def test_surrogate_is_never_reassigned(fake_client) -> None:
    resolver = UserResolver(fake_client, "Migration Surrogate")

    resolver.resolve("Jane Doe", "IR1")
    resolver.resolve("Smith, John", "IR2")

    assert resolver.surrogate_name == "Migration Surrogate"
    assert resolver.resolve("Someone Else", "IR3").ref == "user-surrogate"


def test_surrogate_name_is_required(fake_client) -> None:
    with pytest.raises(ValueError, match="AssignedTo"):
        UserResolver(fake_client, "  ", "AssignedTo")


def test_failed_lookup_is_retried_for_later_entities(fake_client) -> None:
    fake_client.failing_user_lookups.add("Jane Doe")
    resolver = UserResolver(fake_client, "Migration Surrogate", "AffectedUser")

    assert resolver.resolve("Jane Doe", "IR1").ref == "user-surrogate"

    fake_client.failing_user_lookups.clear()
    resolution = resolver.resolve("Jane Doe", "IR2")

    assert resolution.source == "match"
    assert resolution.ref == "user-jane"


def test_failed_surrogate_lookup_is_retried(fake_client) -> None:
    fake_client.failing_user_lookups.add("Migration Surrogate")
    resolver = UserResolver(fake_client, "Migration Surrogate", "AssignedTo")

    assert resolver.resolve("Smith, John", "IR1").source == "unresolved"

    fake_client.failing_user_lookups.clear()

    assert resolver.resolve("Someone Else", "IR2").ref == "user-surrogate"
    assert resolver.resolve("Smith, John", "IR3").ref == "user-surrogate"
