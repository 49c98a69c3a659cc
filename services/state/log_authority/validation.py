"""Pydantic request-validation models for Log Authority Service API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, JsonValue, field_validator

from services.state.log_authority.domain import StoreId


class LogWriteRequest(BaseModel):
    """Validated shape of one event submitted to the fan-out writer.

    ``stores`` narrows the fan-out to a subset of backing stores; ``None``
    means every store.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    operation: str
    payload: dict[str, JsonValue] = Field(default_factory=dict)
    kind: str = "event"
    level: str = "info"
    session_id: str | None = None
    who: str | None = None
    tags: tuple[str, ...] = ()
    error_message: str | None = None
    error_code: str | None = None
    stores: tuple[StoreId, ...] | None = None

    @field_validator("operation", "kind", "level")
    @classmethod
    def _require_text(cls, value: str) -> str:
        """Require non-blank classification text."""
        normalized = value.strip()
        if normalized == "":
            raise ValueError("value is required")
        return normalized

    @field_validator("level")
    @classmethod
    def _lowercase_level(cls, value: str) -> str:
        """Store levels lowercased for stable filtering."""
        return value.lower()

    @field_validator("session_id", "who", "error_message", "error_code")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        """Normalize blank optional text to ``None``."""
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """Strip tags and drop blanks and duplicates, keeping first-seen order."""
        return tuple(dict.fromkeys(tag.strip() for tag in value if tag.strip()))

    @field_validator("stores")
    @classmethod
    def _normalize_stores(
        cls, value: tuple[StoreId, ...] | None
    ) -> tuple[StoreId, ...] | None:
        """Reject empty targeting and collapse duplicate store ids."""
        if value is None:
            return None
        if len(value) == 0:
            raise ValueError("stores must name at least one store when provided")
        return tuple(dict.fromkeys(value))
