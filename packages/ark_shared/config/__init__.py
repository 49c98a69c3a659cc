"""Public API for shared Ark configuration utilities."""

from .loader import load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    ArkSettings,
    ComponentsSettings,
    LoggingSettings,
    ObservabilitySettings,
    resolve_component_settings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ArkSettings",
    "ComponentsSettings",
    "LoggingSettings",
    "ObservabilitySettings",
    "resolve_component_settings",
    "load_settings",
]
