"""An in-memory blob store shared by all clients created from it."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from .base import (
    BlobClient,
    BlobNotFoundError,
    BlobObject,
    BlobProperties,
    BlobStore,
    GenerationMismatchError,
)

logger = logging.getLogger(__name__)


@dataclass
class MemBlob:
    """A stored blob and its write generation."""

    generation: int
    path: str
    data: bytes = field(repr=False)


def _mismatch(locked: int, current: int) -> GenerationMismatchError:
    return GenerationMismatchError(f"Lock generation mismatch '{locked}' != '{current}'")


class MemBlobStore(BlobStore):
    """Blob store that keeps every blob in a dictionary in memory."""

    def __init__(self, prefix: str = "", supports_locking: bool = True) -> None:
        self.prefix = prefix
        self.supports_locking = supports_locking
        self.blobs: dict[str, MemBlob] = {}
        self.lock = threading.Lock()

    def new_client(self) -> MemBlobClient:
        return MemBlobClient(self)

    def __str__(self) -> str:
        return "memstore"


class MemBlobClient(BlobClient):
    """Client of a :class:`MemBlobStore`."""

    def __init__(self, store: MemBlobStore) -> None:
        self.store = store
        self.closed = False

    def new_object(self, path: str) -> MemBlobObject:
        return MemBlobObject(self, path)

    def get_objects(self, path_prefix: str) -> list[BlobProperties]:
        with self.store.lock:
            return [
                BlobProperties(size=len(blob.data), name=name)
                for name, blob in self.store.blobs.items()
                if name.startswith(path_prefix)
            ]

    def supports_locking(self) -> bool:
        return self.store.supports_locking

    def close(self) -> None:
        """Mark the client as closed; the shared blobs stay in the store."""
        self.closed = True
        logger.debug("closed client of %s", self.store)

    def __str__(self) -> str:
        return str(self.store)


class MemBlobObject(BlobObject):
    """Handle to one blob in a :class:`MemBlobStore`."""

    def __init__(self, client: MemBlobClient, path: str) -> None:
        self.client = client
        self.path = path
        self.locked_generation: int | None = None

    @property
    def _store(self) -> MemBlobStore:
        return self.client.store

    def exists(self) -> bool:
        with self._store.lock:
            return self.path in self._store.blobs

    def lock_write_version(self) -> bool:
        with self._store.lock:
            blob = self._store.blobs.get(self.path)
            if blob is None:
                logger.warning("lock_write_version: blob not found")
                raise BlobNotFoundError(f"Blob '{self.path}' not found")
            self.locked_generation = blob.generation
        return True

    def read(self) -> bytes:
        with self._store.lock:
            blob = self._store.blobs.get(self.path)
            if blob is None:
                raise BlobNotFoundError(f"Blob '{self.path}' not found")
            return bytes(blob.data)

    def write(self, data: bytes) -> None:
        with self._store.lock:
            blob = self._store.blobs.get(self.path)
            if blob is None:
                blob = MemBlob(generation=0, path=self.path, data=bytes(data))
                logger.debug("write: inserting blob: %r", blob)
                self._store.blobs[self.path] = blob
                return
            locked = self.locked_generation
            if locked is not None and (locked != blob.generation or locked == -1):
                raise _mismatch(locked, blob.generation)
            blob.data = bytes(data)
            blob.generation += 1

    def delete(self) -> None:
        with self._store.lock:
            locked = self.locked_generation
            if locked is not None:
                blob = self._store.blobs.get(self.path)
                if blob is None:
                    logger.warning("delete: blob not found")
                    raise BlobNotFoundError(f"Blob '{self.path}' not found")
                if locked != blob.generation:
                    raise _mismatch(locked, blob.generation)
            self._store.blobs.pop(self.path, None)

    def __str__(self) -> str:
        return f"{self.client}/{self.path}"