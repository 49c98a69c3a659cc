"""Qdrant substrate backing the vector log index."""

from resources.substrates.qdrant.component import RESOURCE_COMPONENT_ID
from resources.substrates.qdrant.config import QdrantSettings, resolve_qdrant_settings
from resources.substrates.qdrant.qdrant_substrate import QdrantClientSubstrate
from resources.substrates.qdrant.substrate import (
    QdrantHealthStatus,
    QdrantSubstrate,
    SearchPoint,
)

__all__ = [
    "RESOURCE_COMPONENT_ID",
    "QdrantClientSubstrate",
    "QdrantHealthStatus",
    "QdrantSettings",
    "QdrantSubstrate",
    "SearchPoint",
    "resolve_qdrant_settings",
]
