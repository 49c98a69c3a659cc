"""ULID generation and validation helpers.

Log entry ids are canonical 26 character Crockford Base32 ULIDs. The high 48
bits carry the creation time in milliseconds, so ids sort by creation time in
every store that orders keys lexicographically.
"""

from __future__ import annotations

import secrets
import time

_ULID_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_DECODE_TABLE = {char: index for index, char in enumerate(_ULID_ALPHABET)}
_MAX_ULID_INT = (1 << 128) - 1


def generate_ulid_str(*, timestamp_ms: int | None = None) -> str:
    """Generate a new ULID in canonical 26-char string format."""
    ts_ms = int(time.time() * 1000) if timestamp_ms is None else int(timestamp_ms)
    if ts_ms < 0 or ts_ms >= (1 << 48):
        raise ValueError("timestamp_ms out of ULID 48-bit range")

    entropy = int.from_bytes(secrets.token_bytes(10), byteorder="big", signed=False)
    number = (ts_ms << 80) | entropy
    chars: list[str] = []
    for _ in range(26):
        number, remainder = divmod(number, 32)
        chars.append(_ULID_ALPHABET[remainder])
    return "".join(reversed(chars))


def ulid_timestamp_ms(value: str) -> int:
    """Return the millisecond timestamp encoded in one ULID string."""
    return _decode(value) >> 80


def require_ulid_str(value: object, *, field_name: str = "id") -> str:
    """Validate and normalize a value as canonical ULID text."""
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a ULID string")
    _decode(value, field_name=field_name)
    return value.strip().upper()


def _decode(value: str, *, field_name: str = "id") -> int:
    """Decode canonical ULID text into its 128-bit integer value."""
    candidate = value.strip().upper()
    if len(candidate) != 26:
        raise ValueError(f"{field_name} must be exactly 26 characters")

    number = 0
    for char in candidate:
        if char not in _DECODE_TABLE:
            raise ValueError(f"{field_name} has invalid ULID character: {char!r}")
        number = (number << 5) | _DECODE_TABLE[char]

    # 26 base32 chars encode 130 bits; canonical ULID uses only lower 128 bits.
    if number > _MAX_ULID_INT:
        raise ValueError(f"{field_name} exceeds 128-bit ULID range")
    return number
