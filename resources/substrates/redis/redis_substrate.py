"""Redis client-backed substrate implementation."""

from __future__ import annotations

from resources.substrates.redis.client import create_redis_client
from resources.substrates.redis.config import RedisSettings
from resources.substrates.redis.substrate import RedisHealthStatus, RedisSubstrate


class RedisClientSubstrate(RedisSubstrate):
    """Concrete Redis substrate using redis-py client operations."""

    def __init__(self, *, settings: RedisSettings) -> None:
        self._client = create_redis_client(settings)
        self._health_client = create_redis_client(
            settings, timeout_seconds=settings.health_timeout_seconds
        )

    def set_value(self, *, key: str, value: str, ttl_seconds: int | None) -> None:
        """Set one value; ``None`` or zero TTL stores without expiry."""
        if not ttl_seconds:
            self._client.set(name=key, value=value)
            return
        self._client.set(name=key, value=value, ex=ttl_seconds)

    def get_value(self, *, key: str) -> str | None:
        """Read one value by key."""
        value = self._client.get(name=key)
        if value is None:
            return None
        return str(value)

    def key_exists(self, *, key: str) -> bool:
        """Return whether Redis ``EXISTS`` reports the key."""
        return int(self._client.exists(key)) > 0

    def delete_value(self, *, key: str) -> bool:
        """Delete one key and return whether a value existed."""
        return bool(self._client.delete(key))

    def health(self) -> RedisHealthStatus:
        """Return Redis substrate readiness and concise detail."""
        try:
            ready = bool(self._health_client.ping())
        except Exception as exc:  # noqa: BLE001
            return RedisHealthStatus(
                ready=False,
                detail=f"redis ping failed: {type(exc).__name__}",
            )
        return RedisHealthStatus(
            ready=ready,
            detail="ok" if ready else "redis ping returned false",
        )
