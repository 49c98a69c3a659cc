"""Multi-store fan-out writer.

One event becomes one ``LogEntry`` written independently into every
targeted store. Store failures never escape ``write``: they are reported per
store in the returned ``WriteResult`` and fed to the shared breakers.
"""

from __future__ import annotations

from concurrent.futures import Future, wait
from datetime import UTC, datetime
from typing import Callable, Mapping

from packages.ark_shared.errors import ErrorDetail, codes
from packages.ark_shared.ids import generate_ulid_str
from packages.ark_shared.logging import fields, get_logger, log_context
from packages.ark_shared.steps import best_effort
from services.state.log_authority.aliases import resolve_operation
from services.state.log_authority.breaker import CircuitBreakerRegistry
from services.state.log_authority.domain import (
    ALL_STORES,
    LogEntry,
    StoreId,
    StoreWriteResult,
    WriteResult,
    WriteStatus,
)
from services.state.log_authority.interfaces import LogRepository
from services.state.log_authority.lanes import StoreBusyError, StoreLanes
from services.state.log_authority.metrics import LogMetrics
from services.state.log_authority.overflow import OverflowHandler
from services.state.log_authority.redaction import redact_payload
from services.state.log_authority.stores import LogStore, StoreWriteError
from services.state.log_authority.validation import LogWriteRequest

_LOGGER = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


def audit_tags(
    tags: tuple[str, ...], *, canonical: str, original: str | None
) -> tuple[str, ...]:
    """Append ``action:`` and ``alias:`` tags, keeping order and uniqueness."""
    extra = [f"action:{canonical}"]
    if original is not None:
        extra.append(f"alias:{original}")
    return tuple(dict.fromkeys((*tags, *extra)))


class FanOutWriter:
    """Write one entry to every targeted store concurrently.

    Each store writes on its own lane, so a hung store only ever times out
    itself. Pass ``lanes`` to share them with the overflow handler.
    """

    def __init__(
        self,
        *,
        stores: Mapping[StoreId, LogStore],
        breakers: CircuitBreakerRegistry,
        overflow: OverflowHandler,
        metrics: LogMetrics | None = None,
        repository: LogRepository | None = None,
        environment: str = "production",
        source: str = "ark",
        max_payload_bytes: int = 16384,
        store_timeout_seconds: float = 5.0,
        max_workers: int = 4,
        lanes: StoreLanes | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        missing = [store.value for store in ALL_STORES if store not in stores]
        if missing:
            raise ValueError(f"store table is missing: {', '.join(missing)}")
        self._stores = dict(stores)
        self._breakers = breakers
        self._overflow = overflow
        self._metrics = metrics
        self._repository = repository
        self._environment = environment
        self._source = source
        self._max_payload_bytes = max_payload_bytes
        self._store_timeout_seconds = store_timeout_seconds
        self._clock = clock
        self._lanes = (
            StoreLanes(workers_per_store=max_workers) if lanes is None else lanes
        )

    def write(self, request: LogWriteRequest) -> WriteResult:
        """Build one entry from ``request`` and fan it out."""
        entry_id = generate_ulid_str()
        timestamp = self._clock()
        canonical = resolve_operation(request.operation)
        original = request.operation if request.operation != canonical else None

        bound = {fields.LOG_ID: entry_id, fields.CANONICAL_OPERATION: canonical}
        with log_context(bound):
            diagnostics: list[ErrorDetail] = []
            redacted = redact_payload(request.payload)
            diagnostics.extend(redacted.diagnostics)
            targets = request.stores or ALL_STORES
            overflow = self._overflow.handle(
                redacted.value,
                entry_id=entry_id,
                timestamp=timestamp,
                max_bytes=self._max_payload_bytes,
                allow_blob=StoreId.BLOB in targets,
            )
            diagnostics.extend(overflow.diagnostics)

            entry = LogEntry(
                id=entry_id,
                timestamp=timestamp,
                canonical_operation=canonical,
                original_operation=original,
                kind=request.kind,
                level=request.level,
                session_id=request.session_id,
                who=request.who,
                tags=audit_tags(request.tags, canonical=canonical, original=original),
                payload=overflow.payload,
                artifact_pointer=overflow.overflow_pointer,
                error_message=request.error_message,
                error_code=request.error_code,
                environment=self._environment,
                source=self._source,
            )

            results = self.fan_out(entry, targets)
            written = tuple(s for s in targets if results[s].status.succeeded)
            missing = tuple(
                s
                for s in targets
                if results[s].status
                in (WriteStatus.ERROR, WriteStatus.CIRCUIT_BREAKER_OPEN)
            )
            entry = entry.model_copy(
                update={"stores_written": written, "stores_missing": missing}
            )
            diagnostics.extend(self._record_bookkeeping(entry))

            _LOGGER.info(
                "Log written: written=%s missing=%s",
                ",".join(store.value for store in written) or "-",
                ",".join(store.value for store in missing) or "-",
            )
            return WriteResult(entry=entry, results=results, diagnostics=diagnostics)

    def fan_out(
        self, entry: LogEntry, targets: tuple[StoreId, ...]
    ) -> dict[StoreId, StoreWriteResult]:
        """Write ``entry`` to ``targets`` and return one result per store."""
        results: dict[StoreId, StoreWriteResult] = {}
        pending: dict[Future[WriteStatus], StoreId] = {}

        for store_id in targets:
            store = self._stores[store_id]
            if not store.applies_to(entry):
                results[store_id] = StoreWriteResult(
                    store=store_id, status=WriteStatus.NOT_APPLICABLE
                )
                continue
            if self._breakers.should_skip(store_id):
                results[store_id] = StoreWriteResult(
                    store=store_id,
                    status=WriteStatus.CIRCUIT_BREAKER_OPEN,
                    message="circuit breaker open",
                )
                self._count_missing(store_id)
                continue
            try:
                future = self._lanes.submit(store_id, store.write, entry)
            except StoreBusyError as exc:
                results[store_id] = self._failed(store_id, entry=entry, exc=exc)
                continue
            pending[future] = store_id

        done, not_done = wait(pending, timeout=self._store_timeout_seconds)
        for future in done:
            store_id = pending[future]
            try:
                status = future.result()
            except Exception as exc:  # noqa: BLE001
                results[store_id] = self._failed(store_id, entry=entry, exc=exc)
            else:
                self._breakers.record_success(store_id)
                if self._metrics is not None:
                    self._metrics.log_written(store_id)
                results[store_id] = StoreWriteResult(store=store_id, status=status)
        for future in not_done:
            future.cancel()
            results[pending[future]] = self._failed(
                pending[future],
                entry=entry,
                exc=TimeoutError(
                    f"store write timed out after {self._store_timeout_seconds}s"
                ),
            )

        return {store_id: results[store_id] for store_id in targets}

    def close(self) -> None:
        """Stop accepting store writes and release worker threads."""
        self._lanes.close()

    def _failed(
        self, store_id: StoreId, *, entry: LogEntry, exc: Exception
    ) -> StoreWriteResult:
        self._breakers.record_failure(store_id)
        self._count_missing(store_id)
        error = exc.error if isinstance(exc, StoreWriteError) else None
        _LOGGER.warning(
            "Store write failed: store=%s log_id=%s exception_type=%s error_code=%s",
            store_id.value,
            entry.id,
            type(exc).__name__,
            None if error is None else error.code,
            exc_info=exc,
        )
        return StoreWriteResult(
            store=store_id,
            status=WriteStatus.ERROR,
            message=str(exc) or type(exc).__name__,
        )

    def _count_missing(self, store_id: StoreId) -> None:
        if self._metrics is not None:
            self._metrics.store_write_missing(store_id)

    def _record_bookkeeping(self, entry: LogEntry) -> list[ErrorDetail]:
        """Store fan-out outcome on the primary row; failures are diagnostics."""
        if self._repository is None or StoreId.PRIMARY not in entry.stores_written:
            return []
        repository = self._repository
        step = best_effort(
            step="bookkeeping",
            func=lambda: repository.update_store_status(
                log_id=entry.id,
                stores_written=entry.stores_written,
                stores_missing=entry.stores_missing,
            ),
            fallback=None,
            logger=_LOGGER,
            code=codes.BOOKKEEPING_FAILED,
        )
        return step.diagnostics
