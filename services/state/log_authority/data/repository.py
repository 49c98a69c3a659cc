"""Authoritative Postgres repository for log entries."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any, Mapping

from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session, sessionmaker

from packages.ark_shared.logging import get_logger
from resources.substrates.postgres import transactional_session
from services.state.log_authority.domain import LogEntry, StoreId
from services.state.log_authority.interfaces import LogRepository

from .schema import event_log, log_entries

_LOGGER = get_logger(__name__)
_ACTION_TAG_PREFIX = "action:"


class PostgresLogRepository(LogRepository):
    """SQL repository over ``log_entries`` with an ``event_log`` fallback."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def insert_entry(self, entry: LogEntry) -> None:
        """Insert one entry into ``log_entries``, ignoring an existing id."""
        with transactional_session(self._session_factory) as session:
            stmt = insert(log_entries).values(**entry_to_row(entry))
            session.execute(stmt.on_conflict_do_nothing(index_elements=["id"]))

    def insert_legacy_event(self, entry: LogEntry) -> None:
        """Insert one entry into ``event_log``, ignoring an existing id."""
        with transactional_session(self._session_factory) as session:
            stmt = insert(event_log).values(**entry_to_legacy_row(entry))
            session.execute(stmt.on_conflict_do_nothing(index_elements=["id"]))

    def update_store_status(
        self,
        *,
        log_id: str,
        stores_written: tuple[StoreId, ...],
        stores_missing: tuple[StoreId, ...],
    ) -> None:
        """Write fan-out bookkeeping onto one ``log_entries`` row."""
        with transactional_session(self._session_factory) as session:
            session.execute(
                update(log_entries)
                .where(log_entries.c.id == log_id)
                .values(
                    stores_written=[store.value for store in stores_written],
                    stores_missing=[store.value for store in stores_missing],
                )
            )

    def get_entry(self, log_id: str) -> LogEntry | None:
        """Read one entry by id, preferring ``log_entries``."""
        with transactional_session(self._session_factory, read_only=True) as session:
            row = (
                session.execute(select(log_entries).where(log_entries.c.id == log_id))
                .mappings()
                .one_or_none()
            )
            if row is not None:
                return row_to_entry(row)
            legacy = (
                session.execute(select(event_log).where(event_log.c.id == log_id))
                .mappings()
                .one_or_none()
            )
            return None if legacy is None else legacy_row_to_entry(legacy)

    def entry_exists(self, log_id: str) -> bool:
        """Return whether either primary table holds ``log_id``."""
        with transactional_session(self._session_factory, read_only=True) as session:
            found = session.execute(
                select(log_entries.c.id).where(log_entries.c.id == log_id)
            ).first()
            if found is not None:
                return True
            return (
                session.execute(
                    select(event_log.c.id).where(event_log.c.id == log_id)
                ).first()
                is not None
            )

    def list_entries(
        self,
        *,
        start: datetime,
        end: datetime,
        environment: str | None = None,
    ) -> list[LogEntry]:
        """Read window entries from both tables; ``log_entries`` wins on id."""
        with transactional_session(self._session_factory, read_only=True) as session:
            stmt = select(log_entries).where(
                log_entries.c.timestamp >= start,
                log_entries.c.timestamp <= end,
            )
            if environment is not None:
                stmt = stmt.where(log_entries.c.environment == environment)
            rows = session.execute(stmt.order_by(log_entries.c.timestamp)).mappings()
            entries = {row["id"]: row_to_entry(row) for row in rows}

            legacy_rows = session.execute(
                select(event_log)
                .where(event_log.c.ts >= start, event_log.c.ts <= end)
                .order_by(event_log.c.ts)
            ).mappings()
            for row in legacy_rows:
                if row["id"] in entries:
                    continue
                entry = legacy_row_to_entry(row)
                if environment is None or entry.environment == environment:
                    entries[entry.id] = entry

        return sorted(entries.values(), key=lambda item: (item.timestamp, item.id))


def entry_to_row(entry: LogEntry) -> dict[str, Any]:
    """Map one entry onto ``log_entries`` column values."""
    document = entry.model_dump(mode="json")
    return {
        "id": entry.id,
        "timestamp": entry.timestamp,
        "canonical_operation": entry.canonical_operation,
        "original_operation": entry.original_operation,
        "kind": entry.kind,
        "level": entry.level,
        "session_id": entry.session_id,
        "who": entry.who,
        "tags": document["tags"],
        "stores_written": document["stores_written"],
        "stores_missing": document["stores_missing"],
        "artifact_pointer": entry.artifact_pointer,
        "error_message": entry.error_message,
        "error_code": entry.error_code,
        "payload": document["payload"],
        "environment": entry.environment,
        "source": entry.source,
    }


def entry_to_legacy_row(entry: LogEntry) -> dict[str, Any]:
    """Map one entry onto ``event_log`` columns, keeping the full document."""
    return {
        "id": entry.id,
        "ts": entry.timestamp,
        "type": entry.kind,
        "who": entry.who or "system",
        "level": entry.level,
        "session_id": entry.session_id,
        "tags": json.dumps(list(entry.tags)),
        "payload": entry.model_dump_json(),
    }


def row_to_entry(row: Mapping[str, Any]) -> LogEntry:
    """Map one ``log_entries`` row to a strict domain entry."""
    return LogEntry(
        id=str(row["id"]),
        timestamp=_row_dt(row["timestamp"]),
        canonical_operation=str(row["canonical_operation"]),
        original_operation=row.get("original_operation"),
        kind=str(row["kind"]),
        level=str(row["level"]),
        session_id=row.get("session_id"),
        who=row.get("who"),
        tags=tuple(row.get("tags") or ()),
        payload=dict(row.get("payload") or {}),
        stores_written=tuple(row.get("stores_written") or ()),
        stores_missing=tuple(row.get("stores_missing") or ()),
        artifact_pointer=row.get("artifact_pointer"),
        error_message=row.get("error_message"),
        error_code=row.get("error_code"),
        environment=str(row["environment"]),
        source=str(row["source"]),
    )


def legacy_row_to_entry(row: Mapping[str, Any]) -> LogEntry:
    """Map one ``event_log`` row to a domain entry.

    Rows written by this service carry the whole entry document in
    ``payload``. Older rows only have the legacy columns; the operation is
    then recovered from an ``action:`` tag, falling back to ``type``.
    """
    document = _json_or_none(row.get("payload"))
    if isinstance(document, dict) and document.get("id") == row["id"]:
        try:
            return LogEntry.model_validate(document)
        except ValidationError:
            _LOGGER.warning("Legacy event document invalid: log_id=%s", row["id"])

    tags = _json_or_none(row.get("tags"))
    tag_list = [str(tag) for tag in tags] if isinstance(tags, list) else []
    operation = next(
        (
            tag[len(_ACTION_TAG_PREFIX) :]
            for tag in tag_list
            if tag.startswith(_ACTION_TAG_PREFIX)
        ),
        str(row["type"]),
    )
    return LogEntry(
        id=str(row["id"]),
        timestamp=_row_dt(row["ts"]),
        canonical_operation=operation,
        kind=str(row["type"]),
        level=str(row.get("level") or "info"),
        session_id=row.get("session_id"),
        who=row.get("who"),
        tags=tuple(dict.fromkeys(tag_list)),
        payload=document if isinstance(document, dict) else {},
    )


def _json_or_none(value: object) -> object:
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return None


def _row_dt(value: object) -> datetime:
    """Normalize one SQL datetime value to timezone-aware UTC."""
    if not isinstance(value, datetime):
        raise ValueError("expected datetime column")
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
