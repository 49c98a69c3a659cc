"""Typed configuration models for Ark runtime settings."""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "ark" / "ark.yaml"
_COMPONENT_KINDS = ("actor", "service", "adapter", "substrate")


class LoggingSettings(BaseModel):
    """Structured logging configuration shared by Ark components."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "ark"
    environment: str = "production"


class ObservabilitySettings(BaseModel):
    """OpenTelemetry naming for Ark meters."""

    meter_name: str = "ark.logs"


class ComponentNamespaceSettings(BaseModel):
    """Namespace map for grouped component settings under ``components.<kind>``."""

    model_config = ConfigDict(extra="allow")


class ComponentsSettings(BaseModel):
    """Typed ``components`` subtree grouped by component kind."""

    model_config = ConfigDict(extra="forbid")

    actor: ComponentNamespaceSettings = Field(default_factory=ComponentNamespaceSettings)
    service: ComponentNamespaceSettings = Field(
        default_factory=ComponentNamespaceSettings
    )
    adapter: ComponentNamespaceSettings = Field(
        default_factory=ComponentNamespaceSettings
    )
    substrate: ComponentNamespaceSettings = Field(
        default_factory=ComponentNamespaceSettings
    )

    @model_validator(mode="before")
    @classmethod
    def _reject_flat_component_keys(cls, value: object) -> object:
        """Reject flat ``<kind>_<name>`` keys in favor of grouped namespaces."""
        if not isinstance(value, dict):
            return value
        for key in value:
            if not isinstance(key, str) or key in _COMPONENT_KINDS:
                continue
            kind, _, name = key.partition("_")
            if kind in _COMPONENT_KINDS:
                raise ValueError(
                    f"components.{key} is invalid; use components.{kind}.{name} instead"
                )
        return value


class ArkSettings(BaseSettings):
    """Root runtime settings resolved from init/env/yaml/defaults sources."""

    model_config = SettingsConfigDict(
        env_prefix="ARK_",
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    components: ComponentsSettings = Field(default_factory=ComponentsSettings)

    _config_path: ClassVar[Path] = DEFAULT_CONFIG_PATH

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Apply Ark precedence: init > env > yaml > model defaults."""
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(
                settings_cls,
                yaml_file=cls._config_path,
                yaml_file_encoding="utf-8",
            ),
        )


TComponentSettings = TypeVar("TComponentSettings", bound=BaseModel)


def resolve_component_settings(
    *,
    settings: ArkSettings,
    component_id: str,
    model: type[TComponentSettings],
) -> TComponentSettings:
    """Resolve one component settings object from grouped ``components`` keys."""
    kind, separator, name = component_id.partition("_")
    if not separator or kind not in _COMPONENT_KINDS:
        raise ValueError(f"component id must be <kind>_<name>: {component_id}")

    raw_components = settings.components.model_dump(mode="python")
    namespace = raw_components.get(kind, {})
    if not isinstance(namespace, dict):
        raise TypeError(f"components.{kind} must resolve to an object mapping")
    resolved = namespace.get(name, {})
    if resolved is None:
        resolved = {}
    if not isinstance(resolved, dict):
        raise TypeError(f"components.{kind}.{name} must resolve to an object mapping")
    return model.model_validate(resolved)
