"""Component identity for the Log Authority Service."""

from __future__ import annotations

SERVICE_COMPONENT_ID = "service_log_authority"
