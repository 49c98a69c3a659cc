"""Domain contracts for reconciliation windows and reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict

from services.state.log_authority.domain import SECONDARY_STORES, LogEntry, StoreId


class ReconcileVerdict(str, Enum):
    """Overall consistency outcome of one reconciliation run."""

    PERFECT = "perfect"
    RESTORED = "restored"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class ReconciliationWindow:
    """Primary entries in ``[start, end]`` and the ids each store lacks."""

    start: datetime
    end: datetime
    entries: tuple[LogEntry, ...]
    missing: dict[StoreId, tuple[LogEntry, ...]] = field(default_factory=dict)

    def missing_ids(self, store: StoreId) -> tuple[str, ...]:
        return tuple(entry.id for entry in self.missing.get(store, ()))


class StoreReconciliation(BaseModel):
    """Per-store outcome inside one reconciliation report."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    store: StoreId
    expected: int
    missing: tuple[str, ...] = ()
    backfilled: int = 0
    failed: int = 0


class ReconciliationReport(BaseModel):
    """Summary of one reconciliation run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    run_id: str
    window_start: datetime
    window_end: datetime
    environment: str | None
    dry_run: bool
    analyzed: int
    stores: dict[StoreId, StoreReconciliation]
    verdict: ReconcileVerdict
    cancelled: bool = False

    @property
    def total_missing(self) -> int:
        return sum(len(item.missing) for item in self.stores.values())

    @property
    def total_backfilled(self) -> int:
        return sum(item.backfilled for item in self.stores.values())

    @property
    def total_failed(self) -> int:
        return sum(item.failed for item in self.stores.values())

    @property
    def ok(self) -> bool:
        """Return True unless the run left entries missing."""
        return self.verdict is not ReconcileVerdict.DEGRADED


def decide_verdict(
    stores: dict[StoreId, StoreReconciliation], *, cancelled: bool = False
) -> ReconcileVerdict:
    """Return ``perfect`` if nothing was missing, ``restored`` if all was repaired."""
    missing = sum(
        len(stores[store].missing) for store in SECONDARY_STORES if store in stores
    )
    if missing == 0:
        return ReconcileVerdict.PERFECT
    backfilled = sum(item.backfilled for item in stores.values())
    if not cancelled and backfilled == missing:
        return ReconcileVerdict.RESTORED
    return ReconcileVerdict.DEGRADED
