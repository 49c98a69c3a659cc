"""Transport-agnostic substrate contract for Redis-backed operations."""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict


class RedisHealthStatus(BaseModel):
    """Redis substrate readiness payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    detail: str


class RedisSubstrate(Protocol):
    """Protocol for direct Redis key-value operations."""

    def set_value(self, *, key: str, value: str, ttl_seconds: int | None) -> None:
        """Set one serialized value with optional TTL in seconds."""

    def get_value(self, *, key: str) -> str | None:
        """Get one serialized value by key or ``None`` when missing."""

    def key_exists(self, *, key: str) -> bool:
        """Return whether a key currently holds a value."""

    def delete_value(self, *, key: str) -> bool:
        """Delete one key and return whether a value was removed."""

    def health(self) -> RedisHealthStatus:
        """Probe Redis substrate readiness and detail."""
