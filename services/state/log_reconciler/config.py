"""Pydantic settings for Log Reconciler Service behavior."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.ark_shared.config import ArkSettings, resolve_component_settings
from services.state.log_reconciler.component import SERVICE_COMPONENT_ID


class LogReconcilerSettings(BaseModel):
    """Defaults applied when a reconciliation run does not override them."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    window_hours: int = Field(default=24, gt=0)
    environment: str = "production"

    @field_validator("environment", mode="before")
    @classmethod
    def _require_environment(cls, value: object) -> object:
        """Reject a blank environment filter."""
        if isinstance(value, str):
            normalized = value.strip()
            if normalized == "":
                raise ValueError("environment must be non-empty")
            return normalized
        return value


def resolve_log_reconciler_settings(settings: ArkSettings) -> LogReconcilerSettings:
    """Resolve reconciler settings from ``components.service.log_reconciler``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=LogReconcilerSettings,
    )
