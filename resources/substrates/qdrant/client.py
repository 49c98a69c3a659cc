"""Qdrant client construction helpers."""

from __future__ import annotations

from qdrant_client import QdrantClient

from resources.substrates.qdrant.config import QdrantSettings


def create_qdrant_client(settings: QdrantSettings) -> QdrantClient:
    """Construct a configured Qdrant client instance."""
    return QdrantClient(url=settings.url, timeout=int(settings.request_timeout_seconds))
