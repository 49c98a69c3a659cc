"""OpenTelemetry counters for log fan-out and reconciliation outcomes."""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from opentelemetry import metrics as otel_metrics

from packages.ark_shared.logging import fields
from services.state.log_authority.domain import StoreId

DEFAULT_METER_NAME = "ark.logs"


class _CounterLike(Protocol):
    """Minimal counter interface used by ``LogMetrics``."""

    def add(self, amount: int | float, attributes: Mapping[str, str]) -> None:
        """Record one counter increment with attributes."""


class LogMetrics:
    """Counters shared by writer, overflow handler, breakers and reconciler."""

    def __init__(self, *, meter: Any | None = None) -> None:
        if meter is None:
            meter = otel_metrics.get_meter(DEFAULT_METER_NAME)
        self.logs_written_total: _CounterLike = meter.create_counter(
            name="logs_written_total",
            description="Count of log entries accepted per store.",
            unit="1",
        )
        self.missing_store_writes_total: _CounterLike = meter.create_counter(
            name="missing_store_writes_total",
            description="Count of per-store writes that did not land.",
            unit="1",
        )
        self.reconcile_backfills_total: _CounterLike = meter.create_counter(
            name="reconcile_backfills_total",
            description="Count of entries restored into a store by reconciliation.",
            unit="1",
        )
        self.store_circuit_open_total: _CounterLike = meter.create_counter(
            name="store_circuit_open_total",
            description="Count of circuit breaker transitions into open.",
            unit="1",
        )
        self.payload_overflows_total: _CounterLike = meter.create_counter(
            name="payload_overflows_total",
            description="Count of oversized payloads by overflow outcome.",
            unit="1",
        )

    @classmethod
    def named(cls, meter_name: str) -> "LogMetrics":
        """Build metrics on one named OpenTelemetry meter."""
        return cls(meter=otel_metrics.get_meter(meter_name))

    def log_written(self, store: StoreId) -> None:
        self.logs_written_total.add(1, attributes={fields.STORE: store.value})

    def store_write_missing(self, store: StoreId) -> None:
        self.missing_store_writes_total.add(1, attributes={fields.STORE: store.value})

    def backfilled(self, store: StoreId) -> None:
        self.reconcile_backfills_total.add(1, attributes={fields.STORE: store.value})

    def circuit_opened(self, store: StoreId) -> None:
        self.store_circuit_open_total.add(1, attributes={fields.STORE: store.value})

    def payload_overflowed(self, outcome: str) -> None:
        self.payload_overflows_total.add(1, attributes={fields.OUTCOME: outcome})
