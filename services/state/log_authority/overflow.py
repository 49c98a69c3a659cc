"""Oversized payload handling: move out of line to blob, or truncate."""

from __future__ import annotations

import functools
import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from packages.ark_shared.errors import ErrorDetail, codes, dependency_error
from packages.ark_shared.logging import get_logger
from resources.substrates.filesystem import BlobSubstrate
from services.state.log_authority.breaker import CircuitBreakerRegistry
from services.state.log_authority.domain import StoreId
from services.state.log_authority.lanes import StoreLanes
from services.state.log_authority.metrics import LogMetrics

_LOGGER = get_logger(__name__)

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class OverflowOutcome:
    """Payload to store plus the blob pointer when it moved out of line."""

    payload: dict[str, Any]
    overflow_pointer: str | None = None
    diagnostics: list[ErrorDetail] = field(default_factory=list)


def serialize_payload(payload: Any) -> str:
    """Return the compact JSON text used for size checks and blob bodies."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def payload_size(payload: Any) -> int:
    """Return the UTF-8 byte length of the compact JSON form of ``payload``."""
    return len(serialize_payload(payload).encode("utf-8"))


def overflow_key(*, timestamp: datetime, log_id: str) -> str:
    """Return the blob key holding one entry's full overflowed payload."""
    return f"overflow/{timestamp.date().isoformat()}/{log_id}.json"


class OverflowHandler:
    """Keep payloads under ``max_bytes`` without ever raising.

    Payloads over the limit are written whole to the blob store and replaced
    by a summary pointing at them. A payload that cannot reach blob is
    truncated in place instead.

    With ``lanes`` set the blob write runs on the blob lane and is bounded by
    ``timeout_seconds``.
    """

    def __init__(
        self,
        *,
        blob: BlobSubstrate,
        breakers: CircuitBreakerRegistry,
        metrics: LogMetrics | None = None,
        max_bytes: int = 16384,
        preview_chars: int = 200,
        cache_control: str = "max-age=86400",
        lanes: StoreLanes | None = None,
        timeout_seconds: float = 5.0,
    ) -> None:
        self._blob = blob
        self._breakers = breakers
        self._metrics = metrics
        self._max_bytes = max_bytes
        self._preview_chars = preview_chars
        self._cache_control = cache_control
        self._lanes = lanes
        self._timeout_seconds = timeout_seconds

    def handle(
        self,
        payload: dict[str, Any],
        *,
        entry_id: str,
        timestamp: datetime,
        max_bytes: int | None = None,
        allow_blob: bool = True,
    ) -> OverflowOutcome:
        """Return ``payload`` unchanged, as an overflow summary, or truncated.

        ``allow_blob=False`` truncates oversized payloads without touching
        the blob store.
        """
        limit = self._max_bytes if max_bytes is None else max_bytes
        text = serialize_payload(payload)
        body = text.encode("utf-8")
        if len(body) <= limit:
            return OverflowOutcome(payload=payload)

        if not allow_blob:
            _LOGGER.info(
                "Blob not targeted, truncating payload: original_size=%s", len(body)
            )
            self._count("truncated")
            return OverflowOutcome(
                payload=truncate_payload(text, original_size=len(body), max_bytes=limit)
            )

        key = overflow_key(timestamp=timestamp, log_id=entry_id)
        diagnostic = self._store(key=key, body=body)
        if diagnostic is None:
            self._count("pointer")
            return OverflowOutcome(
                payload={
                    "_overflow": True,
                    "pointer": key,
                    "checksum": f"sha256:{hashlib.sha256(body).hexdigest()}",
                    "original_size": len(body),
                    "preview": text[: self._preview_chars],
                },
                overflow_pointer=key,
            )

        self._count("truncated")
        return OverflowOutcome(
            payload=truncate_payload(text, original_size=len(body), max_bytes=limit),
            diagnostics=[diagnostic],
        )

    def _store(self, *, key: str, body: bytes) -> ErrorDetail | None:
        """Write the full payload to blob, returning a diagnostic on failure."""
        if self._breakers.should_skip(StoreId.BLOB):
            return dependency_error(
                "blob circuit open; payload truncated",
                code=codes.CIRCUIT_OPEN,
                metadata={"store": StoreId.BLOB.value, "key": key},
            )
        put = functools.partial(
            self._blob.put_object,
            key=key,
            content=body,
            content_type=JSON_CONTENT_TYPE,
            cache_control=self._cache_control,
        )
        try:
            if self._lanes is None:
                put()
            else:
                self._lanes.call(StoreId.BLOB, put, timeout=self._timeout_seconds)
        except Exception as exc:  # noqa: BLE001
            self._breakers.record_failure(StoreId.BLOB)
            _LOGGER.warning(
                "Overflow write failed: store=%s key=%s exception_type=%s",
                StoreId.BLOB.value,
                key,
                type(exc).__name__,
                exc_info=exc,
            )
            return dependency_error(
                "overflow blob write failed; payload truncated",
                code=codes.OVERFLOW_BLOB_WRITE_FAILED,
                metadata={"key": key, "exception_type": type(exc).__name__},
            )
        self._breakers.record_success(StoreId.BLOB)
        return None

    def _count(self, outcome: str) -> None:
        if self._metrics is not None:
            self._metrics.payload_overflowed(outcome)


def truncate_payload(text: str, *, original_size: int, max_bytes: int) -> dict[str, Any]:
    """Return a truncation record whose compact JSON fits in ``max_bytes``.

    ``content`` is the longest prefix of ``text`` that fits once JSON string
    escaping is applied.
    """

    def record(content: str) -> dict[str, Any]:
        return {"_truncated": True, "original_size": original_size, "content": content}

    low, high = 0, min(len(text), max_bytes)
    while low < high:
        mid = (low + high + 1) // 2
        if payload_size(record(text[:mid])) <= max_bytes:
            low = mid
        else:
            high = mid - 1
    return record(text[:low])
