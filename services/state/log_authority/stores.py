"""Store variants behind one ``LogStore`` protocol, plus the dispatch table.

The writer and the reconciler both go through these variants, so a
backfilled copy is shaped exactly like a first write. Every ``write`` is an
upsert by key, which keeps reconciliation reruns idempotent.
"""

from __future__ import annotations

import uuid
from typing import Protocol

from packages.ark_shared.errors import ErrorDetail
from packages.ark_shared.logging import get_logger
from resources.adapters.litellm import EmbeddingAdapter
from resources.substrates.filesystem import BlobSubstrate
from resources.substrates.postgres import normalize_postgres_error
from resources.substrates.qdrant import QdrantSubstrate
from resources.substrates.redis import RedisSubstrate
from services.state.log_authority.aliases import artifact_key, artifact_policy
from services.state.log_authority.config import LogAuthoritySettings
from services.state.log_authority.domain import LogEntry, StoreId, WriteStatus
from services.state.log_authority.interfaces import LogRepository
from services.state.log_authority.overflow import JSON_CONTENT_TYPE, serialize_payload

_LOGGER = get_logger(__name__)
_EMBED_PAYLOAD_CHARS = 2000


class StoreWriteError(Exception):
    """Raised when a store variant could not persist an entry."""

    def __init__(self, message: str, *, error: ErrorDetail | None = None) -> None:
        super().__init__(message)
        self.error = error


class LogStore(Protocol):
    """One backing store the fan-out writer targets."""

    store_id: StoreId

    def applies_to(self, entry: LogEntry) -> bool:
        """Return whether this store is expected to hold ``entry``."""

    def write(self, entry: LogEntry) -> WriteStatus:
        """Persist ``entry``; raise on failure."""

    def exists(self, entry: LogEntry) -> bool:
        """Return whether the store already holds ``entry``."""


class PrimaryLogStore:
    """Relational source of truth: ``log_entries`` with ``event_log`` fallback."""

    store_id = StoreId.PRIMARY

    def __init__(self, *, repository: LogRepository) -> None:
        self._repository = repository

    def applies_to(self, entry: LogEntry) -> bool:
        del entry
        return True

    def write(self, entry: LogEntry) -> WriteStatus:
        """Insert into the preferred table, falling back to the legacy one."""
        try:
            self._repository.insert_entry(entry)
            return WriteStatus.OK
        except Exception as primary_exc:  # noqa: BLE001
            _LOGGER.warning(
                "Primary table insert failed, trying fallback: log_id=%s "
                "exception_type=%s error_code=%s",
                entry.id,
                type(primary_exc).__name__,
                normalize_postgres_error(primary_exc).code,
                exc_info=primary_exc,
            )
            try:
                self._repository.insert_legacy_event(entry)
            except Exception as fallback_exc:  # noqa: BLE001
                raise StoreWriteError(
                    f"primary_error: {primary_exc}, fallback_error: {fallback_exc}",
                    error=normalize_postgres_error(fallback_exc),
                ) from fallback_exc
            return WriteStatus.OK_FALLBACK

    def exists(self, entry: LogEntry) -> bool:
        return self._repository.entry_exists(entry.id)


class KeyValueLogStore:
    """Fast point lookups: the serialised entry under ``<prefix><id>``."""

    store_id = StoreId.KV

    def __init__(
        self,
        *,
        backend: RedisSubstrate,
        key_prefix: str = "log_",
        ttl_seconds: int = 0,
    ) -> None:
        self._backend = backend
        self._key_prefix = key_prefix
        self._ttl_seconds = ttl_seconds

    def key_for(self, log_id: str) -> str:
        return f"{self._key_prefix}{log_id}"

    def applies_to(self, entry: LogEntry) -> bool:
        del entry
        return True

    def write(self, entry: LogEntry) -> WriteStatus:
        self._backend.set_value(
            key=self.key_for(entry.id),
            value=entry.model_dump_json(),
            ttl_seconds=self._ttl_seconds or None,
        )
        return WriteStatus.OK

    def exists(self, entry: LogEntry) -> bool:
        return self._backend.key_exists(key=self.key_for(entry.id))

    def read(self, log_id: str) -> LogEntry | None:
        """Return the entry stored for ``log_id``, if any."""
        raw = self._backend.get_value(key=self.key_for(log_id))
        if raw is None:
            return None
        return LogEntry.model_validate_json(raw)


class BlobLogStore:
    """Archive copy for operations whose artifact policy asks for one."""

    store_id = StoreId.BLOB

    def __init__(
        self,
        *,
        backend: BlobSubstrate,
        cache_control: str = "max-age=86400",
    ) -> None:
        self._backend = backend
        self._cache_control = cache_control

    def applies_to(self, entry: LogEntry) -> bool:
        operation = entry.original_operation or entry.canonical_operation
        return artifact_policy(operation).wants_artifact

    def key_for(self, entry: LogEntry) -> str:
        return artifact_key(
            canonical_operation=entry.canonical_operation,
            timestamp=entry.timestamp,
            log_id=entry.id,
        )

    def write(self, entry: LogEntry) -> WriteStatus:
        self._backend.put_object(
            key=self.key_for(entry),
            content=entry.model_dump_json().encode("utf-8"),
            content_type=JSON_CONTENT_TYPE,
            cache_control=self._cache_control,
        )
        return WriteStatus.OK

    def exists(self, entry: LogEntry) -> bool:
        return self._backend.object_exists(key=self.key_for(entry))


class VectorLogStore:
    """Semantic index: one embedded point per entry keyed ``<prefix><id>``."""

    store_id = StoreId.VECTOR

    def __init__(
        self,
        *,
        backend: QdrantSubstrate,
        embedder: EmbeddingAdapter,
        provider: str,
        model: str,
        key_prefix: str = "logvec_",
    ) -> None:
        self._backend = backend
        self._embedder = embedder
        self._provider = provider
        self._model = model
        self._key_prefix = key_prefix

    def key_for(self, log_id: str) -> str:
        return f"{self._key_prefix}{log_id}"

    def applies_to(self, entry: LogEntry) -> bool:
        del entry
        return True

    def write(self, entry: LogEntry) -> WriteStatus:
        """Embed the entry text, then upsert the point with its metadata."""
        embedding = self._embedder.embed(
            provider=self._provider,
            model=self._model,
            text=embedding_text(entry),
        )
        key = self.key_for(entry.id)
        self._backend.upsert_point(
            point_id=vector_point_id(key),
            vector=embedding.values,
            payload={
                "key": key,
                "log_id": entry.id,
                "type": entry.kind,
                "session_id": entry.session_id,
                "who": entry.who,
                "level": entry.level,
                "tags": list(entry.tags),
                "timestamp": entry.timestamp.isoformat(),
                "canonical_operation": entry.canonical_operation,
                "environment": entry.environment,
            },
        )
        return WriteStatus.OK

    def exists(self, entry: LogEntry) -> bool:
        return self._backend.point_exists(point_id=vector_point_id(self.key_for(entry.id)))


def vector_point_id(key: str) -> str:
    """Return the deterministic Qdrant point id for one vector key."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, key))


def embedding_text(entry: LogEntry) -> str:
    """Return the text embedded for one entry."""
    parts = [entry.canonical_operation, entry.kind]
    if entry.tags:
        parts.append(" ".join(entry.tags))
    parts.append(serialize_payload(entry.payload)[:_EMBED_PAYLOAD_CHARS])
    return "\n".join(parts)


def build_store_table(
    *,
    settings: LogAuthoritySettings,
    repository: LogRepository,
    kv: RedisSubstrate,
    blob: BlobSubstrate,
    vector: QdrantSubstrate,
    embedder: EmbeddingAdapter,
) -> dict[StoreId, LogStore]:
    """Build the store dispatch table used by the writer and reconciler."""
    return {
        StoreId.PRIMARY: PrimaryLogStore(repository=repository),
        StoreId.KV: KeyValueLogStore(
            backend=kv,
            key_prefix=settings.kv_key_prefix,
            ttl_seconds=settings.kv_ttl_seconds,
        ),
        StoreId.BLOB: BlobLogStore(
            backend=blob,
            cache_control=settings.overflow_cache_control,
        ),
        StoreId.VECTOR: VectorLogStore(
            backend=vector,
            embedder=embedder,
            provider=settings.embedding_provider,
            model=settings.embedding_model,
            key_prefix=settings.vector_key_prefix,
        ),
    }
