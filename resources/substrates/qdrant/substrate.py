"""Transport-agnostic substrate contract for Qdrant operations."""

from __future__ import annotations

from typing import Mapping, Protocol, Sequence

from pydantic import BaseModel, ConfigDict


class SearchPoint(BaseModel):
    """Qdrant search result with score and payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    point_id: str
    score: float
    payload: Mapping[str, object]


class QdrantHealthStatus(BaseModel):
    """Qdrant substrate readiness payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    detail: str


class QdrantSubstrate(Protocol):
    """Protocol for direct Qdrant substrate operations."""

    def health(self) -> QdrantHealthStatus:
        """Probe Qdrant substrate readiness."""

    def upsert_point(
        self,
        *,
        point_id: str,
        vector: Sequence[float],
        payload: Mapping[str, object],
    ) -> None:
        """Insert or replace a point in the configured collection."""

    def point_exists(self, *, point_id: str) -> bool:
        """Return whether one point id is present in the collection."""

    def search_points(
        self,
        *,
        filters: Mapping[str, str],
        query_vector: Sequence[float],
        limit: int,
    ) -> list[SearchPoint]:
        """Search points in the configured collection using exact-match filters."""
