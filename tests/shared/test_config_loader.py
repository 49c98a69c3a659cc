"""Tests for pydantic-settings-backed shared configuration loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError

from packages.ark_shared.config import ArkSettings, load_settings, resolve_component_settings
from resources.substrates.postgres.config import PostgresSettings
from services.state.log_reconciler.config import resolve_log_reconciler_settings


def test_load_settings_uses_ark_precedence_cascade(
    tmp_path: Path, monkeypatch: Any
) -> None:
    """Init params should override env, env should override YAML, then defaults."""
    config_file = tmp_path / "ark.yaml"
    config_file.write_text(
        "\n".join(
            [
                "logging:",
                "  level: WARNING",
                "components:",
                "  substrate:",
                "    postgres:",
                "      pool_size: 7",
                "  service:",
                "    log_reconciler:",
                "      window_hours: 12",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("ARK_LOGGING__LEVEL", "ERROR")
    monkeypatch.setenv("ARK_COMPONENTS__SUBSTRATE__POSTGRES__POOL_SIZE", "9")

    settings = load_settings(
        cli_params={"logging": {"level": "DEBUG"}},
        config_path=config_file,
    )

    postgres = resolve_component_settings(
        settings=settings,
        component_id="substrate_postgres",
        model=PostgresSettings,
    )
    reconciler = resolve_log_reconciler_settings(settings)

    assert settings.logging.level == "DEBUG"
    assert postgres.pool_size == 9
    assert reconciler.window_hours == 12
    assert reconciler.environment == "production"


def test_load_settings_uses_model_defaults_when_sources_missing(tmp_path: Path) -> None:
    """Settings should fall back to model defaults when env and YAML are absent."""
    settings = load_settings(config_path=tmp_path / "ark.yaml")
    postgres = resolve_component_settings(
        settings=settings,
        component_id="substrate_postgres",
        model=PostgresSettings,
    )

    assert settings.logging.service == "ark"
    assert settings.logging.level == "INFO"
    assert settings.observability.meter_name == "ark.logs"
    assert postgres.pool_size == 5


def test_flat_component_keys_are_rejected() -> None:
    """Components must be grouped by kind, never keyed as ``<kind>_<name>``."""
    with pytest.raises(ValidationError):
        ArkSettings(components={"service_log_authority": {"environment": "dev"}})


def test_unknown_component_kind_is_rejected() -> None:
    """Only the known component kinds may appear under ``components``."""
    with pytest.raises(ValidationError):
        ArkSettings(components={"widget": {}})
