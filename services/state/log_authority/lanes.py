"""Per-store worker lanes for bounded store I/O.

Every store gets its own thread pool. A store whose calls hang can only
exhaust its own lane, so the other stores keep their workers and their
timeouts. A lane never queues: a call is accepted only when a worker is
free to start it at once, otherwise it is rejected with ``StoreBusyError``.
Because accepted calls start immediately, a caller's timeout measures
running time rather than time spent waiting behind another store.
"""

from __future__ import annotations

import contextvars
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Iterable, TypeVar

from packages.ark_shared.logging import get_logger
from services.state.log_authority.domain import ALL_STORES, StoreId

_LOGGER = get_logger(__name__)

T = TypeVar("T")


class StoreBusyError(RuntimeError):
    """Raised when every worker of a store lane is still running a call."""

    def __init__(self, store: StoreId, in_flight: int) -> None:
        super().__init__(
            f"{store.value} lane saturated: {in_flight} calls still running"
        )
        self.store = store
        self.in_flight = in_flight


class StoreLanes:
    """One fixed-size thread pool per store, rejecting work when saturated."""

    def __init__(
        self,
        *,
        workers_per_store: int = 4,
        stores: Iterable[StoreId] = ALL_STORES,
    ) -> None:
        if workers_per_store < 1:
            raise ValueError("workers_per_store must be >= 1")
        self._workers = workers_per_store
        self._lock = threading.Lock()
        self._in_flight: dict[StoreId, int] = {}
        self._executors: dict[StoreId, ThreadPoolExecutor] = {}
        for store in stores:
            self._in_flight[store] = 0
            self._executors[store] = ThreadPoolExecutor(
                max_workers=workers_per_store,
                thread_name_prefix=f"ark-log-{store.value}",
            )

    @property
    def workers_per_store(self) -> int:
        return self._workers

    def in_flight(self, store: StoreId) -> int:
        """Return how many calls on ``store`` have not returned yet."""
        with self._lock:
            return self._in_flight[store]

    def submit(self, store: StoreId, func: Callable[..., T], *args: Any) -> Future[T]:
        """Start ``func(*args)`` on the lane for ``store``.

        The caller's logging context is copied into the worker thread.
        Raises ``StoreBusyError`` when no worker of the lane is free.
        """
        with self._lock:
            in_flight = self._in_flight[store]
            if in_flight >= self._workers:
                busy = StoreBusyError(store, in_flight)
            else:
                busy = None
                self._in_flight[store] = in_flight + 1
        if busy is not None:
            _LOGGER.warning(
                "Store lane saturated: store=%s in_flight=%s", store.value, in_flight
            )
            raise busy

        context = contextvars.copy_context()
        try:
            return self._executors[store].submit(
                context.run, self._run, store, func, *args
            )
        except RuntimeError:
            # executor already shut down
            self._release(store)
            raise

    def call(
        self, store: StoreId, func: Callable[..., T], *args: Any, timeout: float
    ) -> T:
        """Run ``func(*args)`` on the lane for ``store`` and wait up to ``timeout``.

        Raises ``TimeoutError`` when the call does not return in time. The
        worker keeps running until the call returns and stays counted against
        the lane until then.
        """
        future = self.submit(store, func, *args)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as exc:
            future.cancel()
            raise TimeoutError(
                f"{store.value} call timed out after {timeout}s"
            ) from exc

    def close(self) -> None:
        """Stop accepting calls; running calls finish on their own threads."""
        for executor in self._executors.values():
            executor.shutdown(wait=False, cancel_futures=True)

    def _run(self, store: StoreId, func: Callable[..., T], *args: Any) -> T:
        try:
            return func(*args)
        finally:
            self._release(store)

    def _release(self, store: StoreId) -> None:
        with self._lock:
            self._in_flight[store] -= 1
