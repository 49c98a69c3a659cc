"""Authoritative in-process Python API for Log Authority Service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping

from services.state.log_authority.domain import (
    CircuitBreakerSnapshot,
    HealthStatus,
    LogEntry,
    RecallResult,
    StoreId,
    WriteResult,
)
from services.state.log_authority.validation import LogWriteRequest


class LogAuthorityService(ABC):
    """Public API for fan-out log writes, lookups and semantic recall."""

    @abstractmethod
    def write_log(self, *, request: LogWriteRequest) -> WriteResult:
        """Fan one event out to its backing stores."""

    @abstractmethod
    def get_log(self, *, log_id: str) -> LogEntry | None:
        """Read one entry by id from the fastest store holding it."""

    @abstractmethod
    def recall(
        self,
        *,
        query: str,
        limit: int | None = None,
        threshold: float | None = None,
        filters: Mapping[str, str] | None = None,
    ) -> RecallResult:
        """Return entries semantically close to ``query``."""

    @abstractmethod
    def breaker_states(self) -> dict[StoreId, CircuitBreakerSnapshot]:
        """Return the current breaker state of every store."""

    @abstractmethod
    def health(self) -> HealthStatus:
        """Return readiness across every backing store."""
