"""Domain contracts for Log Authority Service payloads."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, JsonValue

from packages.ark_shared.errors import ErrorDetail


class StoreId(str, Enum):
    """Backing stores a log entry fans out to."""

    PRIMARY = "primary"
    KV = "kv"
    BLOB = "blob"
    VECTOR = "vector"


ALL_STORES: tuple[StoreId, ...] = (
    StoreId.PRIMARY,
    StoreId.KV,
    StoreId.BLOB,
    StoreId.VECTOR,
)
SECONDARY_STORES: tuple[StoreId, ...] = (StoreId.KV, StoreId.VECTOR, StoreId.BLOB)


class ArtifactPolicy(str, Enum):
    """Whether an operation's entries are also archived to the blob store."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    NOT_APPLICABLE = "n/a"

    @property
    def wants_artifact(self) -> bool:
        """Return True when the blob store should hold a copy."""
        return self is not ArtifactPolicy.NOT_APPLICABLE


class WriteStatus(str, Enum):
    """Outcome of one per-store write attempt."""

    OK = "ok"
    OK_FALLBACK = "ok_fallback"
    CIRCUIT_BREAKER_OPEN = "circuit_breaker_open"
    ERROR = "error"
    NOT_APPLICABLE = "not_applicable"

    @property
    def succeeded(self) -> bool:
        """Return True for statuses that mean the store holds the entry."""
        return self in (WriteStatus.OK, WriteStatus.OK_FALLBACK)


class BreakerState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class LogEntry(BaseModel):
    """One logical log record, identical by ``id`` in every store."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    timestamp: datetime
    canonical_operation: str
    original_operation: str | None = None
    kind: str = "event"
    level: str = "info"
    session_id: str | None = None
    who: str | None = None
    tags: tuple[str, ...] = ()
    payload: dict[str, JsonValue] = Field(default_factory=dict)
    stores_written: tuple[StoreId, ...] = ()
    stores_missing: tuple[StoreId, ...] = ()
    artifact_pointer: str | None = None
    error_message: str | None = None
    error_code: str | None = None
    environment: str = "production"
    source: str = "ark"
    backfilled: bool = False
    backfilled_at: datetime | None = None


class StoreWriteResult(BaseModel):
    """Outcome of writing one entry into one store."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    store: StoreId
    status: WriteStatus
    message: str = ""


class WriteResult(BaseModel):
    """Aggregate result of one fan-out write."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    entry: LogEntry
    results: dict[StoreId, StoreWriteResult]
    diagnostics: list[ErrorDetail] = Field(default_factory=list)

    @property
    def stores_written(self) -> tuple[StoreId, ...]:
        """Return stores that accepted the entry."""
        return self.entry.stores_written

    @property
    def stores_missing(self) -> tuple[StoreId, ...]:
        """Return stores that did not accept the entry."""
        return self.entry.stores_missing


class CircuitBreakerSnapshot(BaseModel):
    """Point-in-time view of one store's breaker."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    store: StoreId
    state: BreakerState
    failure_count: int
    open_until: float | None
    threshold: int


class RecallMatch(BaseModel):
    """One semantic recall hit, hydrated from the KV store when available."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    log_id: str
    score: float
    metadata: dict[str, JsonValue] = Field(default_factory=dict)
    entry: LogEntry | None = None


class RecallResult(BaseModel):
    """Semantic recall hits plus any dependency errors encountered."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    matches: list[RecallMatch] = Field(default_factory=list)
    errors: list[ErrorDetail] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return True when recall completed without dependency errors."""
        return len(self.errors) == 0


class HealthStatus(BaseModel):
    """Log Authority readiness across every backing store."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    service_ready: bool
    stores: dict[StoreId, bool]
    detail: str
