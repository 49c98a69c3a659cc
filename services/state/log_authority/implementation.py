"""Concrete Log Authority Service implementation."""

from __future__ import annotations

from typing import Callable, Mapping

from packages.ark_shared.config import ArkSettings
from packages.ark_shared.ids import require_ulid_str
from packages.ark_shared.logging import get_logger, public_api_instrumented
from resources.adapters.litellm import (
    EmbeddingAdapter,
    LiteLlmEmbeddingAdapter,
    resolve_litellm_adapter_settings,
)
from resources.substrates.filesystem import (
    BlobSubstrate,
    LocalFilesystemBlobSubstrate,
    resolve_filesystem_substrate_settings,
)
from resources.substrates.qdrant import (
    QdrantClientSubstrate,
    QdrantSubstrate,
    resolve_qdrant_settings,
)
from resources.substrates.redis import (
    RedisClientSubstrate,
    RedisSubstrate,
    resolve_redis_settings,
)
from services.state.log_authority.breaker import CircuitBreakerRegistry
from services.state.log_authority.component import SERVICE_COMPONENT_ID
from services.state.log_authority.config import (
    LogAuthoritySettings,
    resolve_log_authority_settings,
)
from services.state.log_authority.data import LogPostgresRuntime, PostgresLogRepository
from services.state.log_authority.domain import (
    CircuitBreakerSnapshot,
    HealthStatus,
    LogEntry,
    RecallResult,
    StoreId,
    WriteResult,
)
from services.state.log_authority.interfaces import LogRepository
from services.state.log_authority.lanes import StoreLanes
from services.state.log_authority.metrics import LogMetrics
from services.state.log_authority.overflow import OverflowHandler
from services.state.log_authority.recall import SemanticRecall
from services.state.log_authority.service import LogAuthorityService
from services.state.log_authority.stores import (
    KeyValueLogStore,
    LogStore,
    build_store_table,
)
from services.state.log_authority.validation import LogWriteRequest
from services.state.log_authority.writer import FanOutWriter

_LOGGER = get_logger(__name__)


class DefaultLogAuthorityService(LogAuthorityService):
    """Default service composing resolver, redactor, overflow, breakers and stores."""

    def __init__(
        self,
        *,
        settings: LogAuthoritySettings,
        repository: LogRepository,
        kv: RedisSubstrate,
        blob: BlobSubstrate,
        vector: QdrantSubstrate,
        embedder: EmbeddingAdapter,
        metrics: LogMetrics | None = None,
        primary_probe: Callable[[], bool] | None = None,
        breakers: CircuitBreakerRegistry | None = None,
    ) -> None:
        self._settings = settings
        self._repository = repository
        self._kv = kv
        self._blob = blob
        self._vector = vector
        self._embedder = embedder
        self._primary_probe = primary_probe
        self._metrics = LogMetrics() if metrics is None else metrics
        self._breakers = (
            CircuitBreakerRegistry.from_settings(settings.breaker, metrics=self._metrics)
            if breakers is None
            else breakers
        )
        self._stores = build_store_table(
            settings=settings,
            repository=repository,
            kv=kv,
            blob=blob,
            vector=vector,
            embedder=embedder,
        )
        lanes = StoreLanes(workers_per_store=settings.max_workers)
        self._writer = FanOutWriter(
            stores=self._stores,
            breakers=self._breakers,
            overflow=OverflowHandler(
                blob=blob,
                breakers=self._breakers,
                metrics=self._metrics,
                max_bytes=settings.max_payload_bytes,
                preview_chars=settings.overflow_preview_chars,
                cache_control=settings.overflow_cache_control,
                lanes=lanes,
                timeout_seconds=settings.store_timeout_seconds,
            ),
            metrics=self._metrics,
            repository=repository,
            environment=settings.environment,
            source=settings.source,
            max_payload_bytes=settings.max_payload_bytes,
            store_timeout_seconds=settings.store_timeout_seconds,
            lanes=lanes,
        )
        kv_store = self._stores[StoreId.KV]
        assert isinstance(kv_store, KeyValueLogStore)
        self._kv_store = kv_store
        self._recall = SemanticRecall(
            vector=vector,
            embedder=embedder,
            kv=kv_store,
            provider=settings.embedding_provider,
            model=settings.embedding_model,
            vector_key_prefix=settings.vector_key_prefix,
            threshold=settings.recall_threshold,
            limit=settings.recall_limit,
        )

    @classmethod
    def from_settings(cls, settings: ArkSettings) -> "DefaultLogAuthorityService":
        """Build the service and its owned substrates from typed root settings."""
        runtime = LogPostgresRuntime.from_settings(settings)
        return cls(
            settings=resolve_log_authority_settings(settings),
            repository=PostgresLogRepository(runtime.session_factory),
            kv=RedisClientSubstrate(settings=resolve_redis_settings(settings)),
            blob=LocalFilesystemBlobSubstrate(
                settings=resolve_filesystem_substrate_settings(settings)
            ),
            vector=QdrantClientSubstrate(resolve_qdrant_settings(settings)),
            embedder=LiteLlmEmbeddingAdapter(
                settings=resolve_litellm_adapter_settings(settings)
            ),
            metrics=LogMetrics.named(settings.observability.meter_name),
            primary_probe=runtime.is_healthy,
        )

    @property
    def settings(self) -> LogAuthoritySettings:
        return self._settings

    @property
    def stores(self) -> Mapping[StoreId, LogStore]:
        """Store dispatch table shared with reconciliation."""
        return self._stores

    @property
    def breakers(self) -> CircuitBreakerRegistry:
        """Breaker registry shared with reconciliation."""
        return self._breakers

    @property
    def repository(self) -> LogRepository:
        return self._repository

    @property
    def metrics(self) -> LogMetrics:
        return self._metrics

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
    )
    def write_log(self, *, request: LogWriteRequest) -> WriteResult:
        """Fan one validated event out to its backing stores."""
        return self._writer.write(request)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("log_id",),
    )
    def get_log(self, *, log_id: str) -> LogEntry | None:
        """Read one entry from KV, falling back to the primary store."""
        log_id = require_ulid_str(log_id, field_name="log_id")
        try:
            entry = self._kv_store.read(log_id)
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning(
                "KV lookup failed, reading primary: store=%s exception_type=%s",
                StoreId.KV.value,
                type(exc).__name__,
                exc_info=exc,
            )
            entry = None
        if entry is not None:
            return entry
        return self._repository.get_entry(log_id)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
    )
    def recall(
        self,
        *,
        query: str,
        limit: int | None = None,
        threshold: float | None = None,
        filters: Mapping[str, str] | None = None,
    ) -> RecallResult:
        """Return entries semantically close to ``query``."""
        return self._recall.recall(
            query, limit=limit, threshold=threshold, filters=filters
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
    )
    def breaker_states(self) -> dict[StoreId, CircuitBreakerSnapshot]:
        """Return the current breaker state of every store."""
        return self._breakers.snapshots()

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
    )
    def health(self) -> HealthStatus:
        """Probe every backing store; one failing probe never masks the rest."""
        probes: dict[StoreId, Callable[[], bool]] = {
            StoreId.PRIMARY: self._primary_probe or (lambda: True),
            StoreId.KV: lambda: self._kv.health().ready,
            StoreId.BLOB: lambda: self._blob.health().ready,
            StoreId.VECTOR: lambda: self._vector.health().ready,
        }
        stores: dict[StoreId, bool] = {}
        for store_id, probe in probes.items():
            try:
                stores[store_id] = bool(probe())
            except Exception as exc:  # noqa: BLE001
                _LOGGER.warning(
                    "Health probe failed: store=%s exception_type=%s",
                    store_id.value,
                    type(exc).__name__,
                    exc_info=exc,
                )
                stores[store_id] = False
        down = [store_id.value for store_id, ready in stores.items() if not ready]
        return HealthStatus(
            service_ready=not down,
            stores=stores,
            detail="ok" if not down else f"unavailable: {', '.join(down)}",
        )

    def close(self) -> None:
        """Release writer worker threads."""
        self._writer.close()
