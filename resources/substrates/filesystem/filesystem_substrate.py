"""Filesystem-backed blob substrate with atomic safe-write semantics."""

from __future__ import annotations

import json
import os
from pathlib import Path
from tempfile import NamedTemporaryFile

from resources.substrates.filesystem.config import FilesystemSubstrateSettings
from resources.substrates.filesystem.substrate import (
    BlobMetadata,
    FilesystemBlobSubstrate,
    FilesystemHealthStatus,
)
from resources.substrates.filesystem.validation import (
    METADATA_SUFFIX,
    normalize_object_key,
)


class LocalFilesystemBlobSubstrate(FilesystemBlobSubstrate):
    """Persist/retrieve key-addressed blobs on local disk.

    The object body lives at ``<root>/<key>`` and its metadata in a JSON
    sidecar at ``<root>/<key>.meta``. Both are written through a temporary
    file and ``os.replace`` so readers never observe partial content, and a
    repeated put with the same key overwrites in place.
    """

    def __init__(self, *, settings: FilesystemSubstrateSettings) -> None:
        self._settings = settings
        self._root = settings.root_path()

    def health(self) -> FilesystemHealthStatus:
        """Return filesystem substrate readiness for root dir access."""
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            if not self._root.is_dir():
                return FilesystemHealthStatus(
                    ready=False,
                    detail=f"root path is not a directory: {self._root}",
                )
        except Exception as exc:  # noqa: BLE001
            return FilesystemHealthStatus(
                ready=False,
                detail=f"filesystem probe failed: {type(exc).__name__}",
            )
        return FilesystemHealthStatus(ready=True, detail="ok")

    def resolve_path(self, *, key: str) -> Path:
        """Resolve the filesystem path for one validated object key."""
        return self._root.joinpath(*normalize_object_key(key).split("/"))

    def put_object(
        self,
        *,
        key: str,
        content: bytes,
        content_type: str,
        cache_control: str = "",
    ) -> None:
        """Write one object body and metadata sidecar atomically."""
        path = self.resolve_path(key=key)
        if self._root.exists() and not self._root.is_dir():
            raise OSError(f"filesystem substrate root is not a directory: {self._root}")
        path.parent.mkdir(parents=True, exist_ok=True)

        metadata = BlobMetadata(
            content_type=content_type,
            cache_control=cache_control,
            size_bytes=len(content),
        )
        self._atomic_write(path, content)
        self._atomic_write(
            _metadata_path(path),
            json.dumps(metadata.model_dump(mode="json")).encode("utf-8"),
        )

    def get_object(self, *, key: str) -> bytes | None:
        """Read one object body by key."""
        path = self.resolve_path(key=key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def get_metadata(self, *, key: str) -> BlobMetadata | None:
        """Read one object metadata sidecar by key."""
        path = _metadata_path(self.resolve_path(key=key))
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        return BlobMetadata.model_validate_json(raw)

    def object_exists(self, *, key: str) -> bool:
        """Return whether the object body exists on disk."""
        return self.resolve_path(key=key).is_file()

    def delete_object(self, *, key: str) -> bool:
        """Delete one object body and its sidecar."""
        path = self.resolve_path(key=key)
        _metadata_path(path).unlink(missing_ok=True)
        if not path.exists():
            return False
        path.unlink()
        return True

    def _atomic_write(self, path: Path, content: bytes) -> None:
        """Write bytes to ``path`` through a same-directory temporary file."""
        tmp_path: Path | None = None
        try:
            with NamedTemporaryFile(
                mode="wb",
                prefix=f".{self._settings.temp_prefix}-",
                suffix=".tmp",
                dir=path.parent,
                delete=False,
            ) as handle:
                tmp_path = Path(handle.name)
                handle.write(content)
                handle.flush()
                if self._settings.fsync_writes:
                    os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        finally:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink(missing_ok=True)


def _metadata_path(path: Path) -> Path:
    """Return the metadata sidecar path for one object body path."""
    return path.with_name(path.name + METADATA_SUFFIX)
