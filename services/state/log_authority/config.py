"""Pydantic settings for Log Authority Service behavior."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.ark_shared.config import ArkSettings, resolve_component_settings
from services.state.log_authority.component import SERVICE_COMPONENT_ID


class BreakerSettings(BaseModel):
    """Per-store circuit breaker thresholds shared by writer and reconciler."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    threshold: int = Field(default=5, gt=0)
    window_seconds: float = Field(default=60.0, gt=0)
    cooldown_seconds: float = Field(default=300.0, gt=0)


class LogAuthoritySettings(BaseModel):
    """Log Authority Service runtime behavior settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    environment: str = "production"
    source: str = "ark"
    kv_key_prefix: str = "log_"
    kv_ttl_seconds: int = Field(default=0, ge=0)
    vector_key_prefix: str = "logvec_"
    max_payload_bytes: int = Field(default=16384, gt=0)
    overflow_preview_chars: int = Field(default=200, ge=0)
    overflow_cache_control: str = "max-age=86400"
    store_timeout_seconds: float = Field(default=5.0, gt=0)
    max_workers: int = Field(default=4, gt=0)  # per store lane
    embedding_provider: str = "ollama"
    embedding_model: str = "nomic-embed-text"
    recall_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    recall_limit: int = Field(default=10, gt=0)
    breaker: BreakerSettings = Field(default_factory=BreakerSettings)

    @field_validator(
        "environment",
        "source",
        "kv_key_prefix",
        "vector_key_prefix",
        "embedding_provider",
        "embedding_model",
        mode="before",
    )
    @classmethod
    def _require_text(cls, value: object) -> object:
        """Reject blank identifiers used in keys and provider lookups."""
        if isinstance(value, str):
            normalized = value.strip()
            if normalized == "":
                raise ValueError("value must be non-empty")
            return normalized
        return value


def resolve_log_authority_settings(settings: ArkSettings) -> LogAuthoritySettings:
    """Resolve Log Authority settings from ``components.service.log_authority``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=LogAuthoritySettings,
    )
