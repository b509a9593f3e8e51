"""
Blob Storage

Narrow contract for uploaded application files: store bytes and get back a
public URL plus a storage id, or delete by storage id.

LocalBlobStore writes to the local filesystem; blocking file I/O runs in a
worker thread so request handlers never block the event loop.
"""

import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import anyio

from app.core.config import settings

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


@dataclass(frozen=True)
class StoredBlob:
    """Location of a stored file."""

    url: str
    id: str


class BlobStore(Protocol):
    async def store(
        self,
        content: bytes,
        *,
        folder: str,
        filename: str,
        content_type: str,
    ) -> StoredBlob: ...

    async def delete(self, blob_id: str) -> None: ...


def sanitize_filename(filename: str) -> str:
    """Strip directories and unsafe characters from a client filename."""
    name = Path(filename or "upload").name
    return _UNSAFE_CHARS.sub("_", name) or "upload"


class LocalBlobStore:
    """Filesystem-backed BlobStore rooted at `root`."""

    def __init__(self, root: str | Path, base_url: str):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")

    def _path_for(self, blob_id: str) -> Path:
        path = (self.root / blob_id).resolve()
        if not path.is_relative_to(self.root):
            raise ValueError(f"Blob id escapes storage root: {blob_id}")
        return path

    async def store(
        self,
        content: bytes,
        *,
        folder: str,
        filename: str,
        content_type: str,
    ) -> StoredBlob:
        safe_folder = "/".join(sanitize_filename(part) for part in folder.split("/") if part)
        blob_id = f"{safe_folder}/{uuid.uuid4().hex}_{sanitize_filename(filename)}"
        path = self._path_for(blob_id)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)

        await anyio.to_thread.run_sync(_write)
        logger.info(f"Stored blob {blob_id} ({len(content)} bytes, {content_type})")

        return StoredBlob(url=f"{self.base_url}/{blob_id}", id=blob_id)

    async def delete(self, blob_id: str) -> None:
        path = self._path_for(blob_id)
        await anyio.to_thread.run_sync(lambda: path.unlink(missing_ok=True))
        logger.info(f"Deleted blob {blob_id}")


_blob_store: BlobStore | None = None


def get_blob_store() -> BlobStore:
    """FastAPI dependency returning the configured blob store."""
    global _blob_store
    if _blob_store is None:
        _blob_store = LocalBlobStore(settings.upload_dir, settings.upload_base_url)
    return _blob_store
