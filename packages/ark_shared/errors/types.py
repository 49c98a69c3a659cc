"""Canonical shared error types for Ark services.

This module defines a transport-agnostic error taxonomy and shape used for
store outcomes, best-effort step diagnostics and service results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class ErrorCategory(str, Enum):
    """High-level error categories shared across component boundaries."""

    UNSPECIFIED = "unspecified"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorDetail:
    """Structured error object carried by results and diagnostics."""

    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)
