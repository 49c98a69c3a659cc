"""Configuration model for shared Postgres substrate access."""

from __future__ import annotations

from typing import Literal
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, Field, model_validator

from packages.ark_shared.config import ArkSettings, resolve_component_settings
from resources.substrates.postgres.component import RESOURCE_COMPONENT_ID


class PostgresSettings(BaseModel):
    """Runtime settings for constructing Postgres engines and pools.

    ``url`` wins when set; otherwise a psycopg URL is assembled from the split
    ``host``/``port``/``database``/``user``/``password`` fields.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = ""
    host: str = "postgres"
    port: int = Field(default=5432, gt=0)
    database: str = "ark"
    user: str = "ark"
    password: str = "ark"
    pool_size: int = Field(default=5, gt=0)
    max_overflow: int = Field(default=10, ge=0)
    pool_timeout_seconds: float = Field(default=30.0, gt=0)
    pool_pre_ping: bool = True
    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    health_timeout_seconds: float = Field(default=1.0, gt=0)
    sslmode: Literal[
        "disable", "allow", "prefer", "require", "verify-ca", "verify-full"
    ] = "prefer"

    @model_validator(mode="after")
    def _resolve_url(self) -> "PostgresSettings":
        """Build the connection URL from split fields when none is given."""
        if self.url.strip():
            object.__setattr__(self, "url", self.url.strip())
            return self
        for field_name in ("host", "database", "user"):
            if not getattr(self, field_name).strip():
                raise ValueError(
                    f"postgres.{field_name} is required when postgres.url is unset"
                )
        object.__setattr__(
            self,
            "url",
            "postgresql+psycopg://"
            f"{quote_plus(self.user)}:{quote_plus(self.password)}"
            f"@{self.host}:{self.port}/{quote_plus(self.database)}",
        )
        return self


def resolve_postgres_settings(settings: ArkSettings) -> PostgresSettings:
    """Resolve Postgres settings from ``components.substrate.postgres``."""
    return resolve_component_settings(
        settings=settings,
        component_id=RESOURCE_COMPONENT_ID,
        model=PostgresSettings,
    )
