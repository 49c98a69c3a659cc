"""Unit tests for Redis substrate settings resolution and validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from packages.ark_shared.config import load_settings
from resources.substrates.redis.config import RedisSettings, resolve_redis_settings


def test_redis_settings_builds_url_from_split_fields() -> None:
    """Settings should build URL when explicit URL is not provided."""
    settings = RedisSettings(url="", host="localhost", port=6380, db=4)

    assert settings.url == "redis://localhost:6380/4"


def test_redis_settings_resolves_password_from_env(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Password referenced by env var should be quoted into the URL."""
    monkeypatch.setenv("ARK_TEST_REDIS_PASSWORD", "p@ss")

    settings = RedisSettings(url=None, password_env="ARK_TEST_REDIS_PASSWORD")

    assert settings.url == "redis://:p%40ss@redis:6379/0"


def test_redis_settings_rejects_missing_password_env_when_url_unset(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Split-field mode should fail when the referenced env var is unset."""
    monkeypatch.delenv("ARK_TEST_REDIS_PASSWORD", raising=False)

    with pytest.raises(ValidationError, match="missing env var"):
        RedisSettings(url=None, password_env="ARK_TEST_REDIS_PASSWORD")


def test_redis_settings_use_ssl_scheme_when_enabled() -> None:
    """TLS should switch the generated URL scheme to rediss."""
    settings = RedisSettings(url=None, host="cache", ssl=True)

    assert settings.url == "rediss://cache:6379/0"


def test_resolve_redis_settings_reads_substrate_namespace(tmp_path) -> None:
    """Component settings should come from ``components.substrate.redis``."""
    settings = load_settings(
        cli_params={"components": {"substrate": {"redis": {"url": "redis://kv:6379/2"}}}},
        config_path=tmp_path / "missing.yaml",
    )

    assert resolve_redis_settings(settings).url == "redis://kv:6379/2"
