"""Log Reconciler Service: batch repair of secondary log stores."""

from services.state.log_reconciler.component import SERVICE_COMPONENT_ID
from services.state.log_reconciler.config import (
    LogReconcilerSettings,
    resolve_log_reconciler_settings,
)
from services.state.log_reconciler.domain import (
    ReconcileVerdict,
    ReconciliationReport,
    ReconciliationWindow,
    StoreReconciliation,
)

__all__ = [
    "LogReconcilerSettings",
    "ReconcileVerdict",
    "ReconciliationReport",
    "ReconciliationWindow",
    "SERVICE_COMPONENT_ID",
    "StoreReconciliation",
    "resolve_log_reconciler_settings",
]
