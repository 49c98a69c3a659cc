"""Transport-neutral protocol interfaces used by Log Authority Service."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from services.state.log_authority.domain import LogEntry, StoreId


class LogRepository(Protocol):
    """Protocol for primary (relational) log persistence."""

    def insert_entry(self, entry: LogEntry) -> None:
        """Insert into ``log_entries``; an existing id is left untouched."""

    def insert_legacy_event(self, entry: LogEntry) -> None:
        """Insert into the legacy-compatible ``event_log`` table."""

    def update_store_status(
        self,
        *,
        log_id: str,
        stores_written: tuple[StoreId, ...],
        stores_missing: tuple[StoreId, ...],
    ) -> None:
        """Record fan-out bookkeeping on an existing ``log_entries`` row."""

    def get_entry(self, log_id: str) -> LogEntry | None:
        """Read one entry from ``log_entries`` then ``event_log``."""

    def entry_exists(self, log_id: str) -> bool:
        """Return whether either primary table holds ``log_id``."""

    def list_entries(
        self,
        *,
        start: datetime,
        end: datetime,
        environment: str | None = None,
    ) -> list[LogEntry]:
        """Read entries with ``start <= timestamp <= end`` from both tables."""
