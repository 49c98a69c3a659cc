"""In-process LiteLLM embedding adapter implementation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import litellm

from packages.ark_shared.logging import get_logger, public_api_instrumented
from resources.adapters.litellm.adapter import (
    AdapterDependencyError,
    AdapterEmbeddingResult,
    AdapterHealthResult,
    AdapterInternalError,
    EmbeddingAdapter,
)
from resources.adapters.litellm.component import RESOURCE_COMPONENT_ID
from resources.adapters.litellm.config import (
    LiteLlmAdapterSettings,
    LiteLlmProviderSettings,
)

_LOGGER = get_logger(__name__)
_DEPENDENCY_TOKENS = (
    "timeout",
    "connection",
    "network",
    "rate limit",
    "unavailable",
    "429",
    "502",
    "503",
    "504",
)


@dataclass(frozen=True)
class _ResolvedProvider:
    """Per-provider call settings merged over adapter defaults."""

    api_base: str
    api_key: str
    timeout_seconds: float
    max_retries: int
    options: dict[str, Any]


class LiteLlmEmbeddingAdapter(EmbeddingAdapter):
    """Embedding adapter backed by ``litellm.embedding``."""

    def __init__(self, *, settings: LiteLlmAdapterSettings) -> None:
        self._settings = settings

    def embed(
        self,
        *,
        provider: str,
        model: str,
        text: str,
    ) -> AdapterEmbeddingResult:
        """Generate one embedding vector for ``text``."""
        results = self.embed_batch(provider=provider, model=model, texts=[text])
        if len(results) == 0:
            raise AdapterInternalError("embedding response payload is empty")
        return results[0]

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=RESOURCE_COMPONENT_ID,
    )
    def embed_batch(
        self,
        *,
        provider: str,
        model: str,
        texts: Sequence[str],
    ) -> list[AdapterEmbeddingResult]:
        """Generate embedding vectors from one batch request, in input order."""
        resolved = self._resolve_provider(provider=provider)
        kwargs: dict[str, Any] = {
            "model": f"{provider}/{model}",
            "input": list(texts),
            "timeout": resolved.timeout_seconds,
            "num_retries": resolved.max_retries,
        }
        if resolved.api_base != "":
            kwargs["api_base"] = resolved.api_base
        if resolved.api_key != "":
            kwargs["api_key"] = resolved.api_key
        kwargs.update(resolved.options)

        module = _load_litellm_module()
        try:
            response = module.embedding(**kwargs)
        except Exception as exc:  # noqa: BLE001
            if _is_dependency_exception(exc):
                raise AdapterDependencyError(
                    str(exc) or "litellm dependency failure"
                ) from exc
            raise AdapterInternalError(
                str(exc) or "litellm adapter internal failure"
            ) from exc

        return [
            AdapterEmbeddingResult(values=values, provider=provider, model=model)
            for values in _extract_vectors(response)
        ]

    def health(self) -> AdapterHealthResult:
        """Report whether every configured provider resolves cleanly."""
        try:
            for provider_name in self._settings.providers:
                self._resolve_provider(provider=provider_name)
        except AdapterInternalError as exc:
            return AdapterHealthResult(adapter_ready=False, detail=str(exc))
        return AdapterHealthResult(adapter_ready=True, detail="ok")

    def _resolve_provider(self, *, provider: str) -> _ResolvedProvider:
        """Resolve provider settings and its API key source."""
        config = self._settings.providers.get(provider)
        if config is None:
            raise AdapterInternalError(f"provider '{provider}' is not configured")
        return _ResolvedProvider(
            api_base=config.api_base.strip(),
            api_key=_resolve_api_key(provider=provider, config=config),
            timeout_seconds=(
                self._settings.timeout_seconds
                if config.timeout_seconds is None
                else config.timeout_seconds
            ),
            max_retries=(
                self._settings.max_retries
                if config.max_retries is None
                else config.max_retries
            ),
            options=dict(config.options),
        )


def _load_litellm_module() -> Any:
    """Return the imported ``litellm`` module."""
    return litellm


def _resolve_api_key(*, provider: str, config: LiteLlmProviderSettings) -> str:
    """Return the inline key, or the key read from ``api_key_env``."""
    if config.api_key.strip() != "":
        return config.api_key.strip()
    env_key = config.api_key_env.strip()
    if env_key == "":
        return ""
    value = os.environ.get(env_key, "").strip()
    if value == "":
        raise AdapterInternalError(
            f"provider '{provider}' requires environment variable '{env_key}'"
        )
    return value


def _extract_vectors(response: object) -> list[tuple[float, ...]]:
    """Extract embedding vectors from a LiteLLM embedding response."""
    rows = _field(response, "data")
    if not isinstance(rows, list):
        raise AdapterInternalError("embedding response missing data")
    vectors: list[tuple[float, ...]] = []
    for row in rows:
        embedding = _field(row, "embedding")
        if not isinstance(embedding, list):
            raise AdapterInternalError("embedding values are missing")
        try:
            vectors.append(tuple(float(item) for item in embedding))
        except (TypeError, ValueError):
            raise AdapterInternalError("embedding values are invalid") from None
    return vectors


def _field(response: object, name: str) -> object:
    """Read one field from a response mapping or attribute object."""
    if isinstance(response, Mapping):
        value = response.get(name)
    else:
        value = getattr(response, name, None)
    if value is None:
        raise AdapterInternalError(f"response missing {name}")
    return value


def _is_dependency_exception(exc: Exception) -> bool:
    """Classify provider failures that are worth retrying later."""
    if isinstance(exc, (TimeoutError, ConnectionError)):
        return True
    name = type(exc).__name__.lower()
    if any(token in name for token in ("timeout", "connection", "ratelimit")):
        return True
    text = str(exc).lower()
    return any(token in text for token in _DEPENDENCY_TOKENS)
