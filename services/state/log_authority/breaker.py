"""Per-store circuit breakers shared by the writer, overflow and reconciler.

Each store has a three-state breaker:

- CLOSED: writes pass. Failures are counted inside a sliding window; once
  ``threshold`` failures land inside ``window_seconds`` the breaker opens.
  Any success clears the count.
- OPEN: writes are skipped without I/O until ``open_until``.
- HALF_OPEN: the first ``should_skip`` caller after the cooldown claims a
  single trial write and pushes ``open_until`` out by another cooldown, so
  concurrent callers keep skipping. The trial's success closes the breaker,
  its failure re-opens it.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from packages.ark_shared.logging import get_logger
from services.state.log_authority.config import BreakerSettings
from services.state.log_authority.domain import (
    ALL_STORES,
    BreakerState,
    CircuitBreakerSnapshot,
    StoreId,
)
from services.state.log_authority.metrics import LogMetrics

_LOGGER = get_logger(__name__)


@dataclass
class _Breaker:
    state: BreakerState = BreakerState.CLOSED
    failures: deque[float] = field(default_factory=deque)
    open_until: float | None = None


class CircuitBreakerRegistry:
    """Lock-guarded map of store id to breaker state."""

    def __init__(
        self,
        *,
        threshold: int = 5,
        window_seconds: float = 60.0,
        cooldown_seconds: float = 300.0,
        metrics: LogMetrics | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if threshold <= 0:
            raise ValueError("threshold must be > 0")
        self._threshold = threshold
        self._window_seconds = window_seconds
        self._cooldown_seconds = cooldown_seconds
        self._metrics = metrics
        self._clock = clock
        self._lock = threading.Lock()
        self._breakers: dict[StoreId, _Breaker] = {
            store: _Breaker() for store in ALL_STORES
        }

    @classmethod
    def from_settings(
        cls,
        settings: BreakerSettings,
        *,
        metrics: LogMetrics | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> "CircuitBreakerRegistry":
        """Build a registry from typed breaker settings."""
        return cls(
            threshold=settings.threshold,
            window_seconds=settings.window_seconds,
            cooldown_seconds=settings.cooldown_seconds,
            metrics=metrics,
            clock=clock,
        )

    def should_skip(self, store: StoreId) -> bool:
        """Return True when writes to ``store`` must be skipped right now."""
        with self._lock:
            breaker = self._breakers[store]
            if breaker.state is BreakerState.CLOSED:
                return False
            now = self._clock()
            if breaker.open_until is not None and now < breaker.open_until:
                return True
            # cooldown elapsed: this caller owns the trial write
            breaker.state = BreakerState.HALF_OPEN
            breaker.open_until = now + self._cooldown_seconds
            return False

    def record_failure(self, store: StoreId) -> None:
        """Count one failed write, opening the breaker when warranted."""
        with self._lock:
            breaker = self._breakers[store]
            now = self._clock()
            if breaker.state is BreakerState.HALF_OPEN:
                opened = True
            elif breaker.state is BreakerState.OPEN:
                # late result of a write started before the breaker opened
                opened = False
            else:
                breaker.failures.append(now)
                while breaker.failures and now - breaker.failures[0] > self._window_seconds:
                    breaker.failures.popleft()
                opened = len(breaker.failures) >= self._threshold
            if opened:
                breaker.state = BreakerState.OPEN
                breaker.open_until = now + self._cooldown_seconds
                breaker.failures.clear()

        if opened:
            _LOGGER.warning(
                "Circuit opened: store=%s cooldown_seconds=%s",
                store.value,
                self._cooldown_seconds,
            )
            if self._metrics is not None:
                self._metrics.circuit_opened(store)

    def record_success(self, store: StoreId) -> None:
        """Reset the breaker for ``store`` after a successful write."""
        with self._lock:
            breaker = self._breakers[store]
            recovered = breaker.state is not BreakerState.CLOSED
            breaker.state = BreakerState.CLOSED
            breaker.failures.clear()
            breaker.open_until = None
        if recovered:
            _LOGGER.info("Circuit closed: store=%s", store.value)

    def snapshot(self, store: StoreId) -> CircuitBreakerSnapshot:
        """Return a point-in-time view of one breaker."""
        with self._lock:
            breaker = self._breakers[store]
            return CircuitBreakerSnapshot(
                store=store,
                state=breaker.state,
                failure_count=len(breaker.failures),
                open_until=breaker.open_until,
                threshold=self._threshold,
            )

    def snapshots(self) -> dict[StoreId, CircuitBreakerSnapshot]:
        """Return views of every store breaker."""
        return {store: self.snapshot(store) for store in ALL_STORES}
