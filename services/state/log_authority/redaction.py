"""Secret redaction for event payloads before they reach any store."""

from __future__ import annotations

import json
import re
from typing import Any

from packages.ark_shared.errors import codes
from packages.ark_shared.logging import get_logger
from packages.ark_shared.steps import StepResult, best_effort

_LOGGER = get_logger(__name__)

MAX_DEPTH = 10
REDACTED = "[REDACTED]"
REDACTED_NUMBER = "[REDACTED_NUMBER]"
REDACTED_BOOLEAN = "[REDACTED_BOOLEAN]"
_PLACEHOLDERS = frozenset({REDACTED, REDACTED_NUMBER, REDACTED_BOOLEAN})

_SECRET_KEY_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"^authorization$",
        r"^api[-_]?key$",
        r"^cookie$",
        r"^set[-_]?cookie$",
        r"^password$",
        r"^token$",
        r"^secret$",
        r"^bearer$",
        r"^x[-_]?api[-_]?key$",
        r"password",
        r"secret",
        r"token",
        r"auth",
    )
)
_SECRET_KEYWORDS = ("password", "token", "secret", "api_key", "authorization", "bearer")


def is_secret_key(key: str) -> bool:
    """Return whether one mapping key names a secret-bearing field."""
    return any(pattern.search(key) for pattern in _SECRET_KEY_PATTERNS)


def redact(value: Any, *, depth: int = 0) -> Any:
    """Return a copy of ``value`` with secret-keyed fields replaced.

    Type hints survive redaction (numbers and booleans get their own
    placeholder) and placeholders are left as they are, so redacting twice
    is the same as redacting once. Structures nested deeper than
    ``MAX_DEPTH`` are returned untouched.
    """
    if depth > MAX_DEPTH:
        return value
    if isinstance(value, list):
        return [redact(item, depth=depth + 1) for item in value]
    if not isinstance(value, dict):
        return value

    redacted: dict[str, Any] = {}
    for key, item in value.items():
        if is_secret_key(str(key)):
            redacted[key] = _mask(item)
        else:
            redacted[key] = redact(item, depth=depth + 1)
    return redacted


def _mask(value: Any) -> Any:
    if isinstance(value, str):
        if value == "" or value in _PLACEHOLDERS:
            return value
        return REDACTED
    # bool first: bool is an int subclass
    if isinstance(value, bool):
        return REDACTED_BOOLEAN
    if isinstance(value, (int, float)):
        return REDACTED_NUMBER
    return REDACTED


def redact_payload(payload: dict[str, Any]) -> StepResult[dict[str, Any]]:
    """Redact ``payload``, failing open to the original on any error."""
    return best_effort(
        step="redaction",
        func=lambda: redact(payload),
        fallback=payload,
        logger=_LOGGER,
        code=codes.REDACTION_FAILED,
    )


def contains_potential_secrets(payload: Any) -> bool:
    """Return whether a payload mentions secret-looking keywords anywhere."""
    if not isinstance(payload, (dict, list)) or not payload:
        return False
    try:
        text = json.dumps(payload, default=str).lower()
    except (TypeError, ValueError):
        return False
    return any(keyword in text for keyword in _SECRET_KEYWORDS)
