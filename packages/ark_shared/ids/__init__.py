"""Shared ULID primitives for log entry identity."""

from packages.ark_shared.ids.ulid import (
    generate_ulid_str,
    require_ulid_str,
    ulid_timestamp_ms,
)

__all__ = [
    "generate_ulid_str",
    "require_ulid_str",
    "ulid_timestamp_ms",
]
