"""Postgres persistence for the Log Authority primary store."""

from services.state.log_authority.data.repository import PostgresLogRepository
from services.state.log_authority.data.runtime import LogPostgresRuntime
from services.state.log_authority.data.schema import event_log, log_entries, metadata

__all__ = [
    "LogPostgresRuntime",
    "PostgresLogRepository",
    "event_log",
    "log_entries",
    "metadata",
]
