"""LiteLLM embedding adapter resource exports."""

from resources.adapters.litellm.adapter import (
    AdapterDependencyError,
    AdapterEmbeddingResult,
    AdapterError,
    AdapterHealthResult,
    AdapterInternalError,
    EmbeddingAdapter,
)
from resources.adapters.litellm.component import RESOURCE_COMPONENT_ID
from resources.adapters.litellm.config import (
    LiteLlmAdapterSettings,
    LiteLlmProviderSettings,
    resolve_litellm_adapter_settings,
)
from resources.adapters.litellm.litellm_adapter import LiteLlmEmbeddingAdapter

__all__ = [
    "AdapterDependencyError",
    "AdapterEmbeddingResult",
    "AdapterError",
    "AdapterHealthResult",
    "AdapterInternalError",
    "EmbeddingAdapter",
    "LiteLlmAdapterSettings",
    "LiteLlmEmbeddingAdapter",
    "LiteLlmProviderSettings",
    "RESOURCE_COMPONENT_ID",
    "resolve_litellm_adapter_settings",
]
