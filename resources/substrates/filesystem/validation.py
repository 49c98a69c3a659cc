"""Validation helpers for filesystem substrate object keys."""

from __future__ import annotations

import re

METADATA_SUFFIX = ".meta"
_SEGMENT = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def normalize_object_key(value: str) -> str:
    """Validate one slash-delimited object key and return it stripped.

    Keys are relative, use ``/`` separators, and each segment starts with an
    alphanumeric character, which rules out ``..`` traversal and hidden files.
    """
    key = value.strip()
    if key == "":
        raise ValueError("object key is required")
    if key.startswith("/") or key.endswith("/"):
        raise ValueError("object key must be relative without trailing slash")
    if key.endswith(METADATA_SUFFIX):
        raise ValueError(f"object key must not end with {METADATA_SUFFIX}")
    for segment in key.split("/"):
        if not _SEGMENT.match(segment):
            raise ValueError(f"object key segment is invalid: {segment!r}")
    return key
