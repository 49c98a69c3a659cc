"""Unit tests for payload secret redaction."""

from __future__ import annotations

import pytest

import services.state.log_authority.redaction as redaction_module
from packages.ark_shared.errors import codes
from services.state.log_authority.redaction import (
    MAX_DEPTH,
    REDACTED,
    REDACTED_BOOLEAN,
    REDACTED_NUMBER,
    contains_potential_secrets,
    is_secret_key,
    redact,
    redact_payload,
)


@pytest.mark.parametrize(
    "key",
    ["authorization", "Authorization", "api_key", "API-KEY", "x-api-key", "password",
     "db_password", "refresh_token", "client_secret", "oauth_state", "cookie"],
)
def test_secret_keys_are_detected(key: str) -> None:
    """Well-known and substring-matched secret field names should be flagged."""
    assert is_secret_key(key) is True


@pytest.mark.parametrize("key", ["message", "content", "user", "count", "tags"])
def test_ordinary_keys_are_not_flagged(key: str) -> None:
    """Plain payload field names should pass through untouched."""
    assert is_secret_key(key) is False


def test_redact_masks_nested_secrets_preserving_type_hints() -> None:
    """Strings, numbers and booleans should each get their own placeholder."""
    payload = {
        "message": "hello",
        "password": "hunter2",
        "auth": {"pin": 1234},
        "nested": {"items": [{"token": "abc"}, {"api_key": 42, "ok": True}]},
        "secret_flag": False,
    }

    redacted = redact(payload)

    assert redacted["message"] == "hello"
    assert redacted["password"] == REDACTED
    assert redacted["auth"] == REDACTED
    assert redacted["nested"]["items"][0]["token"] == REDACTED
    assert redacted["nested"]["items"][1]["api_key"] == REDACTED_NUMBER
    assert redacted["nested"]["items"][1]["ok"] is True
    assert redacted["secret_flag"] == REDACTED_BOOLEAN
    assert payload["password"] == "hunter2"


def test_redact_is_idempotent() -> None:
    """Redacting an already-redacted payload should change nothing."""
    payload = {"password": "x", "count": 3, "token": 7, "inner": {"secret": True}}

    once = redact(payload)

    assert redact(once) == once


def test_redact_keeps_empty_secret_strings() -> None:
    """Empty secret values carry nothing to hide and stay empty."""
    assert redact({"password": ""}) == {"password": ""}


def test_redact_stops_descending_past_max_depth() -> None:
    """Structures nested past the depth cap should be returned as-is."""
    deep: dict[str, object] = {"password": "leaf"}
    for _ in range(MAX_DEPTH + 2):
        deep = {"child": deep}

    redacted = redact(deep)

    node = redacted
    while "child" in node:
        node = node["child"]
    assert node == {"password": "leaf"}


def test_redact_payload_fails_open_with_diagnostic(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A redaction crash should keep the original payload and report why."""

    def _boom(value: object, *, depth: int = 0) -> object:
        del value, depth
        raise RuntimeError("redactor exploded")

    monkeypatch.setattr(redaction_module, "redact", _boom)
    payload = {"password": "hunter2"}

    result = redact_payload(payload)

    assert result.value is payload
    assert result.ok is False
    assert result.diagnostics[0].code == codes.REDACTION_FAILED


def test_redact_payload_success_has_no_diagnostics() -> None:
    """Normal redaction should report a clean step."""
    result = redact_payload({"token": "t", "note": "n"})

    assert result.ok is True
    assert result.value == {"token": REDACTED, "note": "n"}


def test_contains_potential_secrets_scans_keys_and_values() -> None:
    """Secret-looking keywords anywhere in a payload should be detected."""
    assert contains_potential_secrets({"note": "my password is x"}) is True
    assert contains_potential_secrets([{"Bearer": "x"}]) is True
    assert contains_potential_secrets({"note": "nothing here"}) is False
    assert contains_potential_secrets({}) is False
    assert contains_potential_secrets("password") is False
