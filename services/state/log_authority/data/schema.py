"""SQLAlchemy table definitions owned by Log Authority Service."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Index, MetaData, String, Table, Text
from sqlalchemy.dialects.postgresql import JSONB

metadata = MetaData()

log_entries = Table(
    "log_entries",
    metadata,
    Column("id", String(26), primary_key=True),
    Column("timestamp", DateTime(timezone=True), nullable=False),
    Column("canonical_operation", String(128), nullable=False),
    Column("original_operation", String(128), nullable=True),
    Column("kind", String(64), nullable=False, server_default="event"),
    Column("level", String(16), nullable=False, server_default="info"),
    Column("session_id", String(128), nullable=True),
    Column("who", String(128), nullable=True),
    Column("tags", JSONB, nullable=False, server_default="[]"),
    Column("stores_written", JSONB, nullable=False, server_default="[]"),
    Column("stores_missing", JSONB, nullable=False, server_default="[]"),
    Column("artifact_pointer", String(512), nullable=True),
    Column("error_message", Text, nullable=True),
    Column("error_code", String(64), nullable=True),
    Column("payload", JSONB, nullable=False, server_default="{}"),
    Column("environment", String(64), nullable=False, server_default="production"),
    Column("source", String(64), nullable=False, server_default="ark"),
    Index("ix_log_entries_timestamp", "timestamp"),
    Index("ix_log_entries_operation_timestamp", "canonical_operation", "timestamp"),
    Index("ix_log_entries_session_timestamp", "session_id", "timestamp"),
)

# Legacy-compatible fallback shape; ``payload`` holds the serialised entry.
event_log = Table(
    "event_log",
    metadata,
    Column("id", String(26), primary_key=True),
    Column("ts", DateTime(timezone=True), nullable=False),
    Column("type", String(64), nullable=False),
    Column("who", String(128), nullable=False, server_default="system"),
    Column("level", String(16), nullable=False, server_default="info"),
    Column("session_id", String(128), nullable=True),
    Column("tags", Text, nullable=False, server_default="[]"),
    Column("payload", Text, nullable=False, server_default="{}"),
    Index("ix_event_log_ts", "ts"),
)
