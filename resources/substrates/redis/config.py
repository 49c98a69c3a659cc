"""Pydantic settings for the Redis substrate component."""

from __future__ import annotations

import os
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, Field, model_validator

from packages.ark_shared.config import ArkSettings, resolve_component_settings
from resources.substrates.redis.component import RESOURCE_COMPONENT_ID


class RedisSettings(BaseModel):
    """Redis connectivity settings for the key-value log store."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str | None = "redis://redis:6379/0"
    host: str = "redis"
    port: int = Field(default=6379, gt=0)
    db: int = Field(default=0, ge=0)
    password_env: str = ""
    ssl: bool = False
    connect_timeout_seconds: float = Field(default=5.0, gt=0)
    socket_timeout_seconds: float = Field(default=5.0, gt=0)
    health_timeout_seconds: float = Field(default=1.0, gt=0)
    max_connections: int = Field(default=20, gt=0)

    @model_validator(mode="after")
    def _resolve_url(self) -> "RedisSettings":
        """Build the URL from split fields when no explicit URL is set."""
        if self.url is not None and self.url.strip() != "":
            object.__setattr__(self, "url", self.url.strip())
            return self

        host = self.host.strip()
        if host == "":
            raise ValueError("substrate.redis.host is required when url is unset")
        auth = ""
        password = _password_from_env(self.password_env)
        if password != "":
            auth = f":{quote_plus(password)}@"
        scheme = "rediss" if self.ssl else "redis"
        object.__setattr__(self, "url", f"{scheme}://{auth}{host}:{self.port}/{self.db}")
        return self


def _password_from_env(env_name: str) -> str:
    """Resolve the Redis password from a referenced environment variable."""
    name = env_name.strip()
    if name == "":
        return ""
    resolved = os.environ.get(name, "").strip()
    if resolved == "":
        raise ValueError(f"substrate.redis.password_env references missing env var '{name}'")
    return resolved


def resolve_redis_settings(settings: ArkSettings) -> RedisSettings:
    """Resolve Redis substrate settings from ``components.substrate.redis``."""
    return resolve_component_settings(
        settings=settings,
        component_id=RESOURCE_COMPONENT_ID,
        model=RedisSettings,
    )
