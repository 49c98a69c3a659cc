"""Unit tests for direct Qdrant substrate semantics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

import resources.substrates.qdrant.qdrant_substrate as substrate_module
from resources.substrates.qdrant.config import QdrantSettings
from resources.substrates.qdrant.qdrant_substrate import QdrantClientSubstrate


@dataclass
class _ScoredPoint:
    id: str
    score: float
    payload: dict[str, Any] | None


@dataclass
class _QueryResponse:
    points: list[_ScoredPoint]


@dataclass
class _FakeQdrantClient:
    """Minimal qdrant-client fake recording collection and point calls."""

    exists: bool = False
    points: dict[str, dict[str, Any]] = field(default_factory=dict)
    created: list[dict[str, Any]] = field(default_factory=list)
    queries: list[dict[str, Any]] = field(default_factory=list)

    def collection_exists(self, _: str) -> bool:
        return self.exists

    def create_collection(self, **kwargs: Any) -> None:
        self.created.append(kwargs)
        self.exists = True

    def upsert(self, **kwargs: Any) -> None:
        for point in kwargs["points"]:
            self.points[str(point.id)] = dict(point.payload)

    def retrieve(self, **kwargs: Any) -> list[object]:
        return [object() for point_id in kwargs["ids"] if point_id in self.points]

    def query_points(self, **kwargs: Any) -> _QueryResponse:
        self.queries.append(kwargs)
        return _QueryResponse(
            points=[
                _ScoredPoint(id=point_id, score=0.9, payload=payload)
                for point_id, payload in self.points.items()
            ]
        )


def _substrate(
    monkeypatch: pytest.MonkeyPatch, fake_client: _FakeQdrantClient
) -> QdrantClientSubstrate:
    """Build substrate wired to one in-memory fake client."""
    monkeypatch.setattr(substrate_module, "create_qdrant_client", lambda _: fake_client)
    return QdrantClientSubstrate(QdrantSettings(collection_name="logs_test"))


_POINT_ID = "6f0b7a4e-7d0c-5d3e-9a43-2c1a7c0c4d11"


def test_upsert_creates_collection_once_with_vector_size(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """First upsert should create the collection sized to the vector."""
    fake_client = _FakeQdrantClient()
    substrate = _substrate(monkeypatch, fake_client)

    substrate.upsert_point(point_id=_POINT_ID, vector=[0.1, 0.2, 0.3], payload={"k": "v"})
    substrate.upsert_point(point_id=_POINT_ID, vector=[0.1, 0.2, 0.3], payload={"k": "v"})

    assert len(fake_client.created) == 1
    assert fake_client.created[0]["vectors_config"].size == 3
    assert substrate.point_exists(point_id=_POINT_ID) is True


def test_point_exists_is_false_when_collection_missing(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Existence probes should not fail before the collection is created."""
    substrate = _substrate(monkeypatch, _FakeQdrantClient())

    assert substrate.point_exists(point_id=_POINT_ID) is False
    assert substrate.search_points(filters={}, query_vector=[0.1], limit=3) == []


def test_search_points_maps_scored_points(monkeypatch: pytest.MonkeyPatch) -> None:
    """Search should map id, score and payload and omit empty filters."""
    fake_client = _FakeQdrantClient(exists=True, points={_POINT_ID: {"key": "logvec_1"}})
    substrate = _substrate(monkeypatch, fake_client)

    results = substrate.search_points(filters={}, query_vector=[0.1, 0.2], limit=5)

    assert len(results) == 1
    assert results[0].point_id == _POINT_ID
    assert results[0].score == pytest.approx(0.9)
    assert results[0].payload == {"key": "logvec_1"}
    assert fake_client.queries[0]["query_filter"] is None
    assert fake_client.queries[0]["limit"] == 5
