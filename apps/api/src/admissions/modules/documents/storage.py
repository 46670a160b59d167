"""
Document Store

Byte storage for uploaded documents, addressed by a store-relative key.
The local implementation writes under ``settings.upload_root``; blocking
file I/O runs in a worker thread so it does not stall the event loop.
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from admissions.core.config import settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the store cannot write, read or delete a file."""


@dataclass(frozen=True)
class StoredFile:
    key: str
    size: int


class DocumentStore(ABC):
    """Storage collaborator used by the document services."""

    @abstractmethod
    async def save(self, key: str, content: bytes) -> StoredFile:
        """Write ``content`` under ``key``. Never overwrites an existing key."""

    @abstractmethod
    async def read(self, key: str) -> bytes:
        """Return the bytes stored under ``key``."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove ``key``. Returns False if it did not exist."""

    @abstractmethod
    async def exists(self, key: str) -> bool: ...


class LocalDocumentStore(DocumentStore):
    """Filesystem-backed store rooted at a directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root):
            raise StorageError(f"Storage key escapes the store root: {key!r}")
        return path

    def _write(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        # "xb" refuses to clobber an existing file
        fh = open(path, "xb")
        try:
            with fh:
                fh.write(content)
                fh.flush()
                os.fsync(fh.fileno())
        except OSError:
            # Only a file this call created gets removed
            path.unlink(missing_ok=True)
            raise

    async def save(self, key: str, content: bytes) -> StoredFile:
        path = self._path(key)
        try:
            await asyncio.to_thread(self._write, path, content)
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}") from e
        logger.debug(f"Stored {len(content)} bytes at {key}")
        return StoredFile(key=key, size=len(content))

    async def read(self, key: str) -> bytes:
        path = self._path(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    async def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e
        logger.debug(f"Deleted stored file {key}")
        return True

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self._path(key).is_file)


@lru_cache
def get_document_store() -> DocumentStore:
    """FastAPI dependency returning the configured store."""
    return LocalDocumentStore(settings.upload_root)
