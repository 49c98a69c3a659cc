"""Component identity for the LiteLLM embedding adapter resource."""

from __future__ import annotations

RESOURCE_COMPONENT_ID = "adapter_litellm"
