"""Exception normalization utilities for shared error contracts."""

from __future__ import annotations

from concurrent.futures import TimeoutError as FutureTimeoutError

from . import codes
from .factories import dependency_error, internal_error, not_found_error, validation_error
from .types import ErrorDetail


def exception_to_error(exc: BaseException, *, code: str | None = None) -> ErrorDetail:
    """Normalize a Python exception into a shared ``ErrorDetail``.

    ``code`` overrides the generic code while keeping the inferred category,
    which lets pipeline steps tag failures with their own identifier.
    """
    metadata = {"exception_type": type(exc).__name__}

    if isinstance(exc, (TimeoutError, FutureTimeoutError)):
        return dependency_error(
            str(exc) or "dependency timeout",
            code=code or codes.DEPENDENCY_TIMEOUT,
            retryable=True,
            metadata=metadata,
        )

    if isinstance(exc, (ConnectionError, OSError)):
        return dependency_error(
            str(exc) or "dependency unavailable",
            code=code or codes.DEPENDENCY_UNAVAILABLE,
            retryable=True,
            metadata=metadata,
        )

    if isinstance(exc, ValueError):
        return validation_error(
            str(exc), code=code or codes.INVALID_ARGUMENT, metadata=metadata
        )

    if isinstance(exc, KeyError):
        return not_found_error(
            str(exc), code=code or codes.RESOURCE_NOT_FOUND, metadata=metadata
        )

    return internal_error(
        str(exc) or "unexpected exception",
        code=code or codes.UNEXPECTED_EXCEPTION,
        metadata=metadata,
    )
