"""Best-effort pipeline steps with collected diagnostics.

A step never raises: it returns the best available value together with the
diagnostics explaining any degradation, and the caller decides what to log.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import Logger
from typing import Callable, Generic, TypeVar

from packages.ark_shared.errors import ErrorDetail, exception_to_error

T = TypeVar("T")


@dataclass(frozen=True)
class StepResult(Generic[T]):
    """Value produced by one best-effort step plus its diagnostics."""

    value: T
    diagnostics: list[ErrorDetail] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return True when the step completed without degradation."""
        return len(self.diagnostics) == 0


def best_effort(
    *,
    step: str,
    func: Callable[[], T],
    fallback: T,
    logger: Logger,
    code: str | None = None,
) -> StepResult[T]:
    """Run ``func`` and fall back to ``fallback`` when it raises."""
    try:
        return StepResult(value=func())
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "%s step failed open: exception_type=%s",
            step,
            type(exc).__name__,
            exc_info=exc,
        )
        return StepResult(value=fallback, diagnostics=[exception_to_error(exc, code=code)])
