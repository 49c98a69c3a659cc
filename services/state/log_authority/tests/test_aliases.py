"""Unit tests for canonical operation resolution and artifact policy."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from services.state.log_authority.aliases import (
    CANONICAL_OPERATIONS,
    OPERATION_ALIASES,
    all_aliases,
    all_canonical,
    artifact_key,
    artifact_policy,
    is_canonical,
    resolve_operation,
)
from services.state.log_authority.domain import ArtifactPolicy


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("retrieve_recent_session_logs", "retrieveLogsOrDataEntries"),
        ("search_logs", "getPersonalInsights"),
        ("rag_search", "getPersonalInsights"),
        ("writeLog", "logDataOrEvent"),
        ("healthCheck", "systemHealthCheck"),
        ("trust_check_in", "trustCheckIn"),
        ("somatic_healing_session", "somaticHealingSession"),
        ("transformation_contract", "manageCommitment"),
    ],
)
def test_aliases_resolve_to_canonical_names(name: str, expected: str) -> None:
    """Legacy and snake_case spellings should map to one canonical name."""
    assert resolve_operation(name) == expected


def test_canonical_names_resolve_to_themselves() -> None:
    """Every canonical name should be a fixed point of resolution."""
    for name in CANONICAL_OPERATIONS:
        assert resolve_operation(name) == name
        assert is_canonical(name) is True


def test_unknown_operation_passes_through_unchanged() -> None:
    """Unknown names should be stored as given rather than rejected."""
    assert resolve_operation("brandNewThing") == "brandNewThing"
    assert is_canonical("brandNewThing") is False


def test_resolution_is_idempotent_for_every_alias() -> None:
    """Resolving an already-resolved alias should not move it again."""
    for alias in OPERATION_ALIASES:
        once = resolve_operation(alias)
        assert resolve_operation(once) == once
        assert once in CANONICAL_OPERATIONS


def test_listings_are_sorted_and_disjoint() -> None:
    """Canonical and alias listings should be sorted with no overlap."""
    canonical = all_canonical()
    aliases = all_aliases()

    assert canonical == sorted(canonical)
    assert aliases == sorted(aliases)
    assert set(canonical).isdisjoint(aliases)
    assert "logDataOrEvent" in canonical


def test_artifact_policy_follows_canonical_operation() -> None:
    """Aliases should inherit the artifact policy of their canonical name."""
    assert artifact_policy("somaticHealingSession") is ArtifactPolicy.REQUIRED
    assert artifact_policy("personalDevelopmentSession") is ArtifactPolicy.REQUIRED
    assert artifact_policy("pattern_recognition") is ArtifactPolicy.OPTIONAL
    assert artifact_policy("logDataOrEvent") is ArtifactPolicy.NOT_APPLICABLE
    assert artifact_policy("unknownOperation") is ArtifactPolicy.NOT_APPLICABLE


def test_legacy_name_policy_wins_over_canonical_policy() -> None:
    """A legacy name with its own policy should keep it after aliasing."""
    assert artifact_policy("manageCommitment") is ArtifactPolicy.NOT_APPLICABLE
    assert artifact_policy("transformation_contract") is ArtifactPolicy.REQUIRED
    assert ArtifactPolicy.OPTIONAL.wants_artifact is True
    assert ArtifactPolicy.NOT_APPLICABLE.wants_artifact is False


def test_artifact_key_groups_by_operation_and_day() -> None:
    """Artifact keys should be namespaced by operation then UTC date."""
    key = artifact_key(
        canonical_operation="interpretDream",
        timestamp=datetime(2026, 3, 4, 23, 59, tzinfo=UTC),
        log_id="01JGZ7J0000000000000000000",
    )

    assert key == "logs/interpretDream/2026-03-04/01JGZ7J0000000000000000000.json"
