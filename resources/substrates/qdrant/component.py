"""Component identity for the Qdrant substrate resource."""

from __future__ import annotations

RESOURCE_COMPONENT_ID = "substrate_qdrant"
