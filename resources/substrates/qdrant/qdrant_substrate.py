"""Concrete Qdrant substrate implementation using qdrant-client."""

from __future__ import annotations

from threading import Lock
from typing import Mapping, Sequence

from qdrant_client.http import models

from packages.ark_shared.embeddings import (
    DISTANCE_METRIC_COSINE,
    DISTANCE_METRIC_DOT,
    DISTANCE_METRIC_EUCLID,
)
from packages.ark_shared.logging import public_api_instrumented
from resources.substrates.qdrant.client import create_qdrant_client
from resources.substrates.qdrant.component import RESOURCE_COMPONENT_ID
from resources.substrates.qdrant.config import QdrantSettings
from resources.substrates.qdrant.substrate import (
    QdrantHealthStatus,
    QdrantSubstrate,
    SearchPoint,
)

_DISTANCE_MAPPING = {
    DISTANCE_METRIC_COSINE: models.Distance.COSINE,
    DISTANCE_METRIC_DOT: models.Distance.DOT,
    DISTANCE_METRIC_EUCLID: models.Distance.EUCLID,
}


class QdrantClientSubstrate(QdrantSubstrate):
    """Direct Qdrant substrate implementation for one configured collection."""

    def __init__(self, settings: QdrantSettings) -> None:
        self._settings = settings
        self._client = create_qdrant_client(settings)
        self._collection = settings.collection_name
        self._lock = Lock()
        self._collection_ready = False

    def health(self) -> QdrantHealthStatus:
        """Return substrate readiness based on collection existence probe."""
        try:
            self._client.collection_exists(self._collection)
        except Exception as exc:  # noqa: BLE001
            return QdrantHealthStatus(
                ready=False,
                detail=f"qdrant probe failed: {type(exc).__name__}",
            )
        return QdrantHealthStatus(ready=True, detail="ok")

    @public_api_instrumented(
        component_id=RESOURCE_COMPONENT_ID,
        id_fields=("point_id",),
    )
    def upsert_point(
        self,
        *,
        point_id: str,
        vector: Sequence[float],
        payload: Mapping[str, object],
    ) -> None:
        """Insert or replace a point in the configured collection."""
        self._ensure_collection(len(vector))
        self._client.upsert(
            collection_name=self._collection,
            points=[
                models.PointStruct(
                    id=point_id,
                    vector=list(vector),
                    payload=dict(payload),
                )
            ],
            wait=True,
        )

    @public_api_instrumented(
        component_id=RESOURCE_COMPONENT_ID,
        id_fields=("point_id",),
    )
    def point_exists(self, *, point_id: str) -> bool:
        """Return whether one point id is present in the collection."""
        if not self._collection_exists():
            return False
        points = self._client.retrieve(
            collection_name=self._collection,
            ids=[point_id],
            with_payload=False,
            with_vectors=False,
        )
        return len(points) > 0

    @public_api_instrumented(component_id=RESOURCE_COMPONENT_ID)
    def search_points(
        self,
        *,
        filters: Mapping[str, str],
        query_vector: Sequence[float],
        limit: int,
    ) -> list[SearchPoint]:
        """Search points in the configured collection using exact-match filters."""
        if not self._collection_exists():
            return []

        must_conditions = [
            models.FieldCondition(key=key, match=models.MatchValue(value=value))
            for key, value in filters.items()
            if value
        ]
        response = self._client.query_points(
            collection_name=self._collection,
            query=list(query_vector),
            query_filter=models.Filter(must=must_conditions) if must_conditions else None,
            limit=limit,
            with_payload=True,
            with_vectors=False,
        )

        return [
            SearchPoint(
                point_id=str(point.id),
                score=float(point.score),
                payload=dict(point.payload) if isinstance(point.payload, dict) else {},
            )
            for point in response.points
        ]

    def _collection_exists(self) -> bool:
        """Return True if the configured collection exists."""
        if self._collection_ready:
            return True
        return bool(self._client.collection_exists(self._collection))

    def _ensure_collection(self, vector_size: int) -> None:
        """Create collection if absent using configured distance metric."""
        if self._collection_ready:
            return

        with self._lock:
            if not self._client.collection_exists(self._collection):
                self._client.create_collection(
                    collection_name=self._collection,
                    vectors_config=models.VectorParams(
                        size=vector_size,
                        distance=_DISTANCE_MAPPING[self._settings.distance_metric],
                    ),
                )
            self._collection_ready = True
