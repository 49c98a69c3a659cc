"""Canonical logging field names for cross-component consistency."""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Public API invocation fields.
COMPONENT_ID = "component_id"
API_NAME = "api_name"
PUBLIC_API_INVOCATION_EVENT = "public_api_invocation"
PUBLIC_API_COMPLETION_EVENT = "public_api_completion"
PUBLIC_API_INSTRUMENTATION_FAILURE_EVENT = "public_api_instrumentation_failure"
SUCCESS = "success"
DURATION_MS = "duration_ms"
ERRORS = "errors"
OUTCOME = "outcome"
STAGE = "stage"
CONCERN = "concern"

# Log fan-out fields.
LOG_ID = "log_id"
STORE = "store"
OPERATION = "operation"
CANONICAL_OPERATION = "canonical_operation"
WRITE_STATUS = "write_status"

# Reconciliation fields.
RECONCILE_RUN_ID = "reconcile_run_id"
WINDOW_START = "window_start"
WINDOW_END = "window_end"
DRY_RUN = "dry_run"

# Common process-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
