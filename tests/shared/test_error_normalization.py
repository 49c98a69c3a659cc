"""Tests for exception normalization and best-effort pipeline steps."""

from __future__ import annotations

import logging
from concurrent.futures import TimeoutError as FutureTimeoutError

import pytest

from packages.ark_shared.errors import ErrorCategory, codes, exception_to_error
from packages.ark_shared.steps import best_effort

_LOGGER = logging.getLogger("tests.steps")


@pytest.mark.parametrize(
    ("exc", "category", "code", "retryable"),
    [
        (TimeoutError("slow"), ErrorCategory.DEPENDENCY, codes.DEPENDENCY_TIMEOUT, True),
        (
            FutureTimeoutError(),
            ErrorCategory.DEPENDENCY,
            codes.DEPENDENCY_TIMEOUT,
            True,
        ),
        (
            ConnectionError("refused"),
            ErrorCategory.DEPENDENCY,
            codes.DEPENDENCY_UNAVAILABLE,
            True,
        ),
        (ValueError("bad"), ErrorCategory.VALIDATION, codes.INVALID_ARGUMENT, False),
        (KeyError("gone"), ErrorCategory.NOT_FOUND, codes.RESOURCE_NOT_FOUND, False),
        (RuntimeError("boom"), ErrorCategory.INTERNAL, codes.UNEXPECTED_EXCEPTION, False),
    ],
)
def test_exceptions_map_to_shared_taxonomy(
    exc: Exception, category: ErrorCategory, code: str, retryable: bool
) -> None:
    """Each exception family should land in its documented category."""
    error = exception_to_error(exc)

    assert error.category is category
    assert error.code == code
    assert error.retryable is retryable
    assert error.metadata["exception_type"] == type(exc).__name__


def test_explicit_code_overrides_generic_code() -> None:
    """Steps can tag failures with their own code while keeping the category."""
    error = exception_to_error(OSError("disk full"), code=codes.OVERFLOW_BLOB_WRITE_FAILED)

    assert error.code == codes.OVERFLOW_BLOB_WRITE_FAILED
    assert error.category is ErrorCategory.DEPENDENCY


def test_best_effort_returns_value_without_diagnostics() -> None:
    """Successful steps should pass their value through untouched."""
    result = best_effort(step="demo", func=lambda: 3, fallback=0, logger=_LOGGER)

    assert result.value == 3
    assert result.ok is True


def test_best_effort_falls_back_and_records_diagnostic(caplog) -> None:
    """Failing steps should return the fallback and never raise."""

    def _fail() -> int:
        raise ConnectionError("blob store offline")

    caplog.set_level(logging.WARNING, logger="tests.steps")

    result = best_effort(
        step="overflow",
        func=_fail,
        fallback=-1,
        logger=_LOGGER,
        code=codes.OVERFLOW_BLOB_UNAVAILABLE,
    )

    assert result.value == -1
    assert result.ok is False
    assert result.diagnostics[0].code == codes.OVERFLOW_BLOB_UNAVAILABLE
    assert "overflow step failed open" in caplog.text
