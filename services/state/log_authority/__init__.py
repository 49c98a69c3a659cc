"""Log Authority Service: multi-store fan-out writes and recall for log entries."""

from services.state.log_authority.component import SERVICE_COMPONENT_ID
from services.state.log_authority.config import (
    BreakerSettings,
    LogAuthoritySettings,
    resolve_log_authority_settings,
)
from services.state.log_authority.domain import (
    ArtifactPolicy,
    BreakerState,
    CircuitBreakerSnapshot,
    HealthStatus,
    LogEntry,
    RecallMatch,
    RecallResult,
    StoreId,
    StoreWriteResult,
    WriteResult,
    WriteStatus,
)
from services.state.log_authority.service import LogAuthorityService
from services.state.log_authority.validation import LogWriteRequest

__all__ = [
    "ArtifactPolicy",
    "BreakerSettings",
    "BreakerState",
    "CircuitBreakerSnapshot",
    "HealthStatus",
    "LogAuthorityService",
    "LogAuthoritySettings",
    "LogEntry",
    "LogWriteRequest",
    "RecallMatch",
    "RecallResult",
    "SERVICE_COMPONENT_ID",
    "StoreId",
    "StoreWriteResult",
    "WriteResult",
    "WriteStatus",
    "resolve_log_authority_settings",
]
