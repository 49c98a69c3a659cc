"""Transport-agnostic protocol for key-addressed blob substrate operations."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict


class BlobMetadata(BaseModel):
    """HTTP-style metadata stored alongside one blob object."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    content_type: str
    cache_control: str = ""
    size_bytes: int


class FilesystemHealthStatus(BaseModel):
    """Filesystem blob substrate readiness payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    detail: str


class BlobSubstrate(Protocol):
    """Protocol for key-addressed blob persistence operations."""

    def health(self) -> FilesystemHealthStatus:
        """Probe blob substrate readiness."""

    def put_object(
        self,
        *,
        key: str,
        content: bytes,
        content_type: str,
        cache_control: str = "",
    ) -> None:
        """Write or replace one object and its metadata."""

    def get_object(self, *, key: str) -> bytes | None:
        """Read one object body or ``None`` when missing."""

    def get_metadata(self, *, key: str) -> BlobMetadata | None:
        """Read metadata stored for one object or ``None`` when missing."""

    def object_exists(self, *, key: str) -> bool:
        """Return whether one object key is stored."""

    def delete_object(self, *, key: str) -> bool:
        """Delete one object and return whether it existed."""


class FilesystemBlobSubstrate(BlobSubstrate, Protocol):
    """Blob substrate variant that can expose resolved local paths."""

    def resolve_path(self, *, key: str) -> Path:
        """Resolve the local path for one object key."""
