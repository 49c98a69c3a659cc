"""Out-of-band repair of entries missing from secondary stores.

The primary store is the source of truth. A run reads one time window from
it, asks each secondary store whether it holds every entry it should, and
rewrites the missing ones through the same store variants the writer uses.
Rewrites are upserts by key, so running twice over a window is safe and the
second run reports ``perfect``.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Callable, Mapping

from packages.ark_shared.config import ArkSettings
from packages.ark_shared.ids import generate_ulid_str
from packages.ark_shared.logging import (
    fields,
    get_logger,
    log_context,
    public_api_instrumented,
)
from services.state.log_authority.breaker import CircuitBreakerRegistry
from services.state.log_authority.domain import SECONDARY_STORES, LogEntry, StoreId
from services.state.log_authority.implementation import DefaultLogAuthorityService
from services.state.log_authority.interfaces import LogRepository
from services.state.log_authority.metrics import LogMetrics
from services.state.log_authority.stores import LogStore
from services.state.log_authority.writer import utc_now
from services.state.log_reconciler.component import SERVICE_COMPONENT_ID
from services.state.log_reconciler.domain import (
    ReconciliationReport,
    ReconciliationWindow,
    StoreReconciliation,
    decide_verdict,
)

_LOGGER = get_logger(__name__)


class ReconciliationEngine:
    """Scan a primary-store window and backfill secondary stores."""

    def __init__(
        self,
        *,
        repository: LogRepository,
        stores: Mapping[StoreId, LogStore],
        breakers: CircuitBreakerRegistry,
        metrics: LogMetrics | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        missing = [store.value for store in SECONDARY_STORES if store not in stores]
        if missing:
            raise ValueError(f"store table is missing: {', '.join(missing)}")
        self._repository = repository
        self._stores = dict(stores)
        self._breakers = breakers
        self._metrics = metrics
        self._clock = clock
        self._cancelled = threading.Event()

    @classmethod
    def from_settings(cls, settings: ArkSettings) -> "ReconciliationEngine":
        """Build an engine sharing stores and breakers with a Log Authority."""
        service = DefaultLogAuthorityService.from_settings(settings)
        return cls(
            repository=service.repository,
            stores=service.stores,
            breakers=service.breakers,
            metrics=service.metrics,
        )

    def cancel(self) -> None:
        """Abandon the remaining backfills of the run in progress."""
        self._cancelled.set()

    def resolve_window(
        self,
        *,
        window_hours: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> tuple[datetime, datetime]:
        """Return ``(start, end)`` from explicit bounds or a trailing window."""
        if start is not None and end is not None:
            resolved = (start, end)
        elif start is None and end is None:
            hours = 24 if window_hours is None else window_hours
            if hours <= 0:
                raise ValueError("window_hours must be > 0")
            now = self._clock()
            resolved = (now - timedelta(hours=hours), now)
        else:
            raise ValueError("start and end must be given together")
        if resolved[0] > resolved[1]:
            raise ValueError("window start must not be after window end")
        return resolved

    def scan(
        self,
        *,
        start: datetime,
        end: datetime,
        environment: str | None = None,
    ) -> ReconciliationWindow:
        """Read primary entries in the window and find what each store lacks."""
        entries = tuple(
            self._repository.list_entries(start=start, end=end, environment=environment)
        )
        missing: dict[StoreId, tuple[LogEntry, ...]] = {}
        for store_id in SECONDARY_STORES:
            store = self._stores[store_id]
            missing[store_id] = tuple(
                entry
                for entry in entries
                if store.applies_to(entry) and not self._exists(store, entry)
            )
        return ReconciliationWindow(
            start=start, end=end, entries=entries, missing=missing
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
    )
    def run(
        self,
        *,
        window_hours: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        dry_run: bool = False,
        environment: str | None = None,
    ) -> ReconciliationReport:
        """Reconcile one window and report what was missing and repaired.

        Individual backfill failures are counted, never raised. Reading the
        primary store is the only step whose failure aborts the run.
        """
        self._cancelled.clear()
        window_start, window_end = self.resolve_window(
            window_hours=window_hours, start=start, end=end
        )
        run_id = generate_ulid_str()
        bound = {
            fields.RECONCILE_RUN_ID: run_id,
            fields.WINDOW_START: window_start.isoformat(),
            fields.WINDOW_END: window_end.isoformat(),
            fields.DRY_RUN: dry_run,
            fields.ENVIRONMENT: environment,
        }
        with log_context(bound):
            window = self.scan(
                start=window_start, end=window_end, environment=environment
            )
            _LOGGER.info(
                "Reconcile window scanned: analyzed=%s missing_kv=%s "
                "missing_vector=%s missing_blob=%s",
                len(window.entries),
                len(window.missing[StoreId.KV]),
                len(window.missing[StoreId.VECTOR]),
                len(window.missing[StoreId.BLOB]),
            )

            cancelled = False
            results: dict[StoreId, StoreReconciliation] = {}
            for store_id in SECONDARY_STORES:
                backfilled = failed = 0
                if not dry_run and not cancelled:
                    backfilled, failed, cancelled = self._backfill(
                        store_id, window.missing[store_id]
                    )
                results[store_id] = StoreReconciliation(
                    store=store_id,
                    expected=sum(
                        1
                        for entry in window.entries
                        if self._stores[store_id].applies_to(entry)
                    ),
                    missing=window.missing_ids(store_id),
                    backfilled=backfilled,
                    failed=failed,
                )

            report = ReconciliationReport(
                run_id=run_id,
                window_start=window_start,
                window_end=window_end,
                environment=environment,
                dry_run=dry_run,
                analyzed=len(window.entries),
                stores=results,
                verdict=decide_verdict(results, cancelled=cancelled),
                cancelled=cancelled,
            )
            _LOGGER.info(
                "Reconcile completed: analyzed=%s missing=%s backfilled=%s "
                "failed=%s verdict=%s",
                report.analyzed,
                report.total_missing,
                report.total_backfilled,
                report.total_failed,
                report.verdict.value,
            )
            return report

    def _exists(self, store: LogStore, entry: LogEntry) -> bool:
        """Return store membership; a failed check counts as missing."""
        try:
            return store.exists(entry)
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning(
                "Existence check failed: store=%s log_id=%s exception_type=%s",
                store.store_id.value,
                entry.id,
                type(exc).__name__,
                exc_info=exc,
            )
            return False

    def _backfill(
        self, store_id: StoreId, entries: tuple[LogEntry, ...]
    ) -> tuple[int, int, bool]:
        """Rewrite ``entries`` into one store; return backfilled, failed, cancelled."""
        store = self._stores[store_id]
        backfilled = failed = 0
        for entry in entries:
            if self._cancelled.is_set():
                _LOGGER.warning(
                    "Reconcile cancelled: store=%s remaining=%s",
                    store_id.value,
                    len(entries) - backfilled - failed,
                )
                return backfilled, failed, True
            if self._breakers.should_skip(store_id):
                failed += 1
                continue
            copy = entry.model_copy(
                update={"backfilled": True, "backfilled_at": self._clock()}
            )
            try:
                store.write(copy)
            except Exception as exc:  # noqa: BLE001
                self._breakers.record_failure(store_id)
                failed += 1
                _LOGGER.warning(
                    "Backfill failed: store=%s log_id=%s exception_type=%s",
                    store_id.value,
                    entry.id,
                    type(exc).__name__,
                    exc_info=exc,
                )
                continue
            self._breakers.record_success(store_id)
            backfilled += 1
            if self._metrics is not None:
                self._metrics.backfilled(store_id)
            _LOGGER.debug("Backfilled: store=%s log_id=%s", store_id.value, entry.id)
        return backfilled, failed, False
