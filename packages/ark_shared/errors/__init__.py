"""Public shared error API for Ark services."""

from . import codes
from .factories import (
    dependency_error,
    internal_error,
    not_found_error,
    validation_error,
)
from .normalize import exception_to_error
from .types import ErrorCategory, ErrorDetail

__all__ = [
    "ErrorCategory",
    "ErrorDetail",
    "codes",
    "dependency_error",
    "exception_to_error",
    "internal_error",
    "not_found_error",
    "validation_error",
]
