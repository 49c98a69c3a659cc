"""Component identity for the Log Reconciler Service."""

from __future__ import annotations

SERVICE_COMPONENT_ID = "service_log_reconciler"
