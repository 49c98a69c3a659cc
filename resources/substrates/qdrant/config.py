"""Configuration model for the Qdrant substrate."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.ark_shared.config import ArkSettings, resolve_component_settings
from packages.ark_shared.embeddings import (
    SUPPORTED_DISTANCE_METRICS,
    SUPPORTED_DISTANCE_METRICS_TEXT,
)
from resources.substrates.qdrant.component import RESOURCE_COMPONENT_ID


class QdrantSettings(BaseModel):
    """Qdrant connection and collection settings for the vector log index."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = "http://qdrant:6333"
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    collection_name: str = "ark_logs"
    distance_metric: str = "cosine"

    @field_validator("url", "collection_name")
    @classmethod
    def _require_text(cls, value: str) -> str:
        """Require non-empty connection and collection identifiers."""
        normalized = value.strip()
        if normalized == "":
            raise ValueError("value is required")
        return normalized

    @field_validator("distance_metric")
    @classmethod
    def _validate_distance_metric(cls, value: str) -> str:
        """Validate supported distance metric names."""
        if value not in SUPPORTED_DISTANCE_METRICS:
            raise ValueError(
                f"substrate.qdrant.distance_metric must be one of: "
                f"{SUPPORTED_DISTANCE_METRICS_TEXT}"
            )
        return value


def resolve_qdrant_settings(settings: ArkSettings) -> QdrantSettings:
    """Resolve Qdrant substrate settings from ``components.substrate.qdrant``."""
    return resolve_component_settings(
        settings=settings,
        component_id=RESOURCE_COMPONENT_ID,
        model=QdrantSettings,
    )
