"""Semantic recall over the vector store, hydrated from the KV store."""

from __future__ import annotations

from typing import Mapping

from packages.ark_shared.errors import ErrorDetail, codes, dependency_error
from packages.ark_shared.logging import get_logger
from resources.adapters.litellm import EmbeddingAdapter
from resources.substrates.qdrant import QdrantSubstrate
from services.state.log_authority.domain import RecallMatch, RecallResult
from services.state.log_authority.stores import KeyValueLogStore

_LOGGER = get_logger(__name__)


class SemanticRecall:
    """Embed a query, search vectors, keep close matches, hydrate entries."""

    def __init__(
        self,
        *,
        vector: QdrantSubstrate,
        embedder: EmbeddingAdapter,
        kv: KeyValueLogStore,
        provider: str,
        model: str,
        vector_key_prefix: str = "logvec_",
        threshold: float = 0.7,
        limit: int = 10,
    ) -> None:
        self._vector = vector
        self._embedder = embedder
        self._kv = kv
        self._provider = provider
        self._model = model
        self._vector_key_prefix = vector_key_prefix
        self._threshold = threshold
        self._limit = limit

    def recall(
        self,
        query: str,
        *,
        limit: int | None = None,
        threshold: float | None = None,
        filters: Mapping[str, str] | None = None,
    ) -> RecallResult:
        """Return matches scoring at least ``threshold`` for ``query``."""
        min_score = self._threshold if threshold is None else threshold
        try:
            embedding = self._embedder.embed(
                provider=self._provider, model=self._model, text=query
            )
            points = self._vector.search_points(
                filters=dict(filters or {}),
                query_vector=embedding.values,
                limit=self._limit if limit is None else limit,
            )
        except Exception as exc:  # noqa: BLE001
            return RecallResult(errors=[self._dependency_failure("search", exc)])

        matches: list[RecallMatch] = []
        errors: list[ErrorDetail] = []
        for point in points:
            if point.score < min_score:
                continue
            metadata = {k: v for k, v in point.payload.items() if k != "key"}
            log_id = self._log_id(point.payload, fallback=point.point_id)
            try:
                entry = self._kv.read(log_id)
            except Exception as exc:  # noqa: BLE001
                errors.append(self._dependency_failure("hydrate", exc))
                entry = None
            matches.append(
                RecallMatch(
                    log_id=log_id,
                    score=point.score,
                    metadata=metadata,
                    entry=entry,
                )
            )
        return RecallResult(matches=matches, errors=errors)

    def _log_id(self, payload: Mapping[str, object], *, fallback: str) -> str:
        """Recover the log id by stripping the vector key prefix."""
        key = payload.get("key")
        if isinstance(key, str) and key.startswith(self._vector_key_prefix):
            return key[len(self._vector_key_prefix) :]
        log_id = payload.get("log_id")
        return str(log_id) if log_id else fallback

    def _dependency_failure(self, operation: str, exc: Exception) -> ErrorDetail:
        _LOGGER.warning(
            "Recall %s failed: exception_type=%s",
            operation,
            type(exc).__name__,
            exc_info=exc,
        )
        return dependency_error(
            f"recall {operation} failed",
            code=codes.DEPENDENCY_FAILURE,
            metadata={"exception_type": type(exc).__name__},
        )
