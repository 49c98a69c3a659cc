"""Shared in-memory substrate fakes for log authority and reconciler tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Mapping, Sequence

import pytest

from resources.adapters.litellm import AdapterEmbeddingResult, AdapterHealthResult
from resources.substrates.filesystem import BlobMetadata, FilesystemHealthStatus
from resources.substrates.qdrant import QdrantHealthStatus, SearchPoint
from resources.substrates.redis import RedisHealthStatus
from services.state.log_authority.config import LogAuthoritySettings
from services.state.log_authority.domain import LogEntry, StoreId
from services.state.log_authority.implementation import DefaultLogAuthorityService
from services.state.log_authority.metrics import LogMetrics


class FakeRepository:
    """In-memory primary store with switchable failures."""

    def __init__(self) -> None:
        self.entries: dict[str, LogEntry] = {}
        self.legacy: dict[str, LogEntry] = {}
        self.status_updates: list[tuple[str, tuple[StoreId, ...], tuple[StoreId, ...]]] = []
        self.raise_on_insert: Exception | None = None
        self.raise_on_legacy: Exception | None = None
        self.raise_on_update: Exception | None = None
        self.raise_on_list: Exception | None = None

    def insert_entry(self, entry: LogEntry) -> None:
        if self.raise_on_insert is not None:
            raise self.raise_on_insert
        self.entries.setdefault(entry.id, entry)

    def insert_legacy_event(self, entry: LogEntry) -> None:
        if self.raise_on_legacy is not None:
            raise self.raise_on_legacy
        self.legacy.setdefault(entry.id, entry)

    def update_store_status(
        self,
        *,
        log_id: str,
        stores_written: tuple[StoreId, ...],
        stores_missing: tuple[StoreId, ...],
    ) -> None:
        if self.raise_on_update is not None:
            raise self.raise_on_update
        self.status_updates.append((log_id, stores_written, stores_missing))

    def get_entry(self, log_id: str) -> LogEntry | None:
        return self.entries.get(log_id) or self.legacy.get(log_id)

    def entry_exists(self, log_id: str) -> bool:
        return log_id in self.entries or log_id in self.legacy

    def list_entries(
        self,
        *,
        start: datetime,
        end: datetime,
        environment: str | None = None,
    ) -> list[LogEntry]:
        if self.raise_on_list is not None:
            raise self.raise_on_list
        merged = {**self.legacy, **self.entries}
        return sorted(
            (
                entry
                for entry in merged.values()
                if start <= entry.timestamp <= end
                and (environment is None or entry.environment == environment)
            ),
            key=lambda item: (item.timestamp, item.id),
        )


class FakeRedis:
    """In-memory KV substrate."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.raise_on_set: Exception | None = None
        self.raise_on_get: Exception | None = None
        self.raise_on_exists: Exception | None = None
        self.ready = True

    def set_value(self, *, key: str, value: str, ttl_seconds: int | None) -> None:
        if self.raise_on_set is not None:
            raise self.raise_on_set
        self.values[key] = value
        self.ttls[key] = ttl_seconds

    def get_value(self, *, key: str) -> str | None:
        if self.raise_on_get is not None:
            raise self.raise_on_get
        return self.values.get(key)

    def key_exists(self, *, key: str) -> bool:
        if self.raise_on_exists is not None:
            raise self.raise_on_exists
        return key in self.values

    def delete_value(self, *, key: str) -> bool:
        return self.values.pop(key, None) is not None

    def health(self) -> RedisHealthStatus:
        return RedisHealthStatus(ready=self.ready, detail="ok" if self.ready else "down")


@dataclass
class StoredBlob:
    content: bytes
    content_type: str
    cache_control: str


class FakeBlob:
    """In-memory key-addressed blob substrate."""

    def __init__(self) -> None:
        self.objects: dict[str, StoredBlob] = {}
        self.raise_on_put: Exception | None = None
        self.put_calls = 0

    def health(self) -> FilesystemHealthStatus:
        return FilesystemHealthStatus(ready=True, detail="ok")

    def put_object(
        self,
        *,
        key: str,
        content: bytes,
        content_type: str,
        cache_control: str = "",
    ) -> None:
        self.put_calls += 1
        if self.raise_on_put is not None:
            raise self.raise_on_put
        self.objects[key] = StoredBlob(content, content_type, cache_control)

    def get_object(self, *, key: str) -> bytes | None:
        stored = self.objects.get(key)
        return None if stored is None else stored.content

    def get_metadata(self, *, key: str) -> BlobMetadata | None:
        stored = self.objects.get(key)
        if stored is None:
            return None
        return BlobMetadata(
            content_type=stored.content_type,
            cache_control=stored.cache_control,
            size_bytes=len(stored.content),
        )

    def object_exists(self, *, key: str) -> bool:
        return key in self.objects

    def delete_object(self, *, key: str) -> bool:
        return self.objects.pop(key, None) is not None


class FakeVector:
    """In-memory vector substrate returning canned search results."""

    def __init__(self) -> None:
        self.points: dict[str, tuple[tuple[float, ...], dict[str, object]]] = {}
        self.search_results: list[SearchPoint] = []
        self.search_calls: list[dict[str, Any]] = []
        self.raise_on_upsert: Exception | None = None
        self.raise_on_search: Exception | None = None
        self.on_upsert: Callable[[], None] | None = None

    def health(self) -> QdrantHealthStatus:
        return QdrantHealthStatus(ready=True, detail="ok")

    def upsert_point(
        self,
        *,
        point_id: str,
        vector: Sequence[float],
        payload: Mapping[str, object],
    ) -> None:
        if self.on_upsert is not None:
            self.on_upsert()
        if self.raise_on_upsert is not None:
            raise self.raise_on_upsert
        self.points[point_id] = (tuple(vector), dict(payload))

    def point_exists(self, *, point_id: str) -> bool:
        return point_id in self.points

    def search_points(
        self,
        *,
        filters: Mapping[str, str],
        query_vector: Sequence[float],
        limit: int,
    ) -> list[SearchPoint]:
        self.search_calls.append(
            {"filters": dict(filters), "query_vector": tuple(query_vector), "limit": limit}
        )
        if self.raise_on_search is not None:
            raise self.raise_on_search
        return self.search_results[:limit]


class FakeEmbedder:
    """Embedding adapter returning one fixed vector."""

    def __init__(self) -> None:
        self.texts: list[str] = []
        self.raise_on_embed: Exception | None = None

    def embed(self, *, provider: str, model: str, text: str) -> AdapterEmbeddingResult:
        self.texts.append(text)
        if self.raise_on_embed is not None:
            raise self.raise_on_embed
        return AdapterEmbeddingResult(values=(0.1, 0.2, 0.3), provider=provider, model=model)

    def embed_batch(
        self, *, provider: str, model: str, texts: Sequence[str]
    ) -> list[AdapterEmbeddingResult]:
        return [self.embed(provider=provider, model=model, text=text) for text in texts]

    def health(self) -> AdapterHealthResult:
        return AdapterHealthResult(adapter_ready=True, detail="ok")


class FakeCounter:
    def __init__(self) -> None:
        self.calls: list[tuple[int | float, dict[str, str]]] = []

    def add(self, amount: int | float, attributes: Mapping[str, str]) -> None:
        self.calls.append((amount, dict(attributes)))

    def total(self, **attributes: str) -> int | float:
        """Sum increments whose attributes include ``attributes``."""
        return sum(
            amount
            for amount, attrs in self.calls
            if all(attrs.get(key) == value for key, value in attributes.items())
        )


class FakeMeter:
    def __init__(self) -> None:
        self.counters: dict[str, FakeCounter] = {}

    def create_counter(self, *, name: str, description: str, unit: str) -> FakeCounter:
        del description, unit
        return self.counters.setdefault(name, FakeCounter())


@dataclass
class FakeStack:
    """Every fake substrate needed to build a log authority service."""

    repository: FakeRepository = field(default_factory=FakeRepository)
    kv: FakeRedis = field(default_factory=FakeRedis)
    blob: FakeBlob = field(default_factory=FakeBlob)
    vector: FakeVector = field(default_factory=FakeVector)
    embedder: FakeEmbedder = field(default_factory=FakeEmbedder)
    meter: FakeMeter = field(default_factory=FakeMeter)

    def metrics(self) -> LogMetrics:
        return LogMetrics(meter=self.meter)

    def counter(self, name: str) -> FakeCounter:
        return self.meter.counters[name]

    def service(self, **overrides: Any) -> DefaultLogAuthorityService:
        """Build a service over these fakes with settings overrides."""
        return DefaultLogAuthorityService(
            settings=LogAuthoritySettings(**overrides),
            repository=self.repository,
            kv=self.kv,
            blob=self.blob,
            vector=self.vector,
            embedder=self.embedder,
            metrics=self.metrics(),
        )


@pytest.fixture
def fakes() -> FakeStack:
    """Return a fresh set of in-memory substrate fakes."""
    return FakeStack()
