"""A blob store backed by a directory on the local file system."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager, nullcontext

import portalocker

from .base import (
    BlobClient,
    BlobNotFoundError,
    BlobObject,
    BlobProperties,
    BlobStore,
    BlobStoreError,
    GenerationMismatchError,
    LockingNotSupportedError,
)

logger = logging.getLogger(__name__)

_NO_GENERATION = -1
_GENERATION_SIZE = 8


def normalize_file_system_path(path: str) -> str:
    """Return ``path`` with every backslash turned into a forward slash."""
    return path.replace("\\", "/")


class FsBlobStore(BlobStore):
    """Blob store rooted at the directory ``prefix``."""

    def __init__(self, prefix: str, enable_locking: bool = True) -> None:
        self.prefix = prefix
        self.enable_locking = enable_locking

    def new_client(self) -> FsBlobClient:
        return FsBlobClient(self)

    def __str__(self) -> str:
        return "fsblob://"

    def __repr__(self) -> str:
        return (
            f"FsBlobStore(prefix={self.prefix!r}, "
            f"enable_locking={self.enable_locking!r})"
        )


class FsBlobClient(BlobClient):
    """Client of a :class:`FsBlobStore`."""

    def __init__(self, store: FsBlobStore) -> None:
        self.store = store
        self.closed = False

    def new_object(self, path: str) -> FsBlobObject:
        full_path = normalize_file_system_path(f"{self.store.prefix}{os.sep}{path}")
        return FsBlobObject(self, full_path)

    def get_objects(self, path_prefix: str) -> list[BlobProperties]:
        search_path = self.store.prefix
        if not os.path.isdir(search_path):
            size = os.stat(search_path).st_size
            return [
                BlobProperties(size=size, name=normalize_file_system_path(search_path))
            ]
        objects = []
        with os.scandir(search_path) as entries:
            for entry in entries:
                if entry.is_dir() or entry.path.endswith("._lck"):
                    continue
                leaf_path = normalize_file_system_path(entry.name)
                if leaf_path.startswith(path_prefix):
                    objects.append(
                        BlobProperties(size=entry.stat().st_size, name=leaf_path)
                    )
        return objects

    def supports_locking(self) -> bool:
        return self.store.enable_locking

    def close(self) -> None:
        """Mark the client as closed; files are opened per operation."""
        self.closed = True
        logger.debug("closed client of %r", self.store)

    def __str__(self) -> str:
        return str(self.store)


class FsBlobObject(BlobObject):
    """Handle to one file inside a :class:`FsBlobStore`.

    With locking enabled, each blob has a sibling ``.gen`` file holding its
    write generation and a ``.lck`` file used as an exclusive lock.
    """

    def __init__(self, client: FsBlobClient, path: str) -> None:
        self.client = client
        self.path = path
        self.metageneration = _NO_GENERATION

    @property
    def _locking(self) -> bool:
        return self.client.store.enable_locking

    @property
    def _generation_path(self) -> str:
        return f"{self.path}.gen"

    def _get_meta_generation(self) -> int:
        try:
            with open(self._generation_path, "rb") as f:
                data = f.read()
        except FileNotFoundError:
            return 0
        if len(data) != _GENERATION_SIZE:
            raise BlobStoreError(f"invalid meta generation in {self._generation_path}")
        return int.from_bytes(data, "little", signed=True)

    def _set_meta_generation(self, generation: int) -> None:
        with open(self._generation_path, "wb") as f:
            f.write(generation.to_bytes(_GENERATION_SIZE, "little", signed=True))

    def _delete_generation(self) -> None:
        try:
            os.remove(self._generation_path)
        except FileNotFoundError:
            pass

    def _check_generation(self) -> None:
        current = self._get_meta_generation()
        if current != self.metageneration:
            raise GenerationMismatchError("meta generation mismatch")

    @contextmanager
    def _lock_file(self) -> Iterator[None]:
        lock_path = f"{self.path}.lck"
        f = open(lock_path, "wb")
        try:
            portalocker.lock(f, portalocker.LOCK_EX)
            try:
                yield
            finally:
                portalocker.unlock(f)
        finally:
            f.close()
            os.remove(lock_path)

    def _maybe_lock(self):
        return self._lock_file() if self._locking else nullcontext()

    def exists(self) -> bool:
        try:
            os.stat(self.path)
        except FileNotFoundError:
            logger.info("FsBlobObject.exists(%s) -> False", self.path)
            return False
        logger.info("FsBlobObject.exists(%s) -> True", self.path)
        return True

    def lock_write_version(self) -> bool:
        if not self._locking:
            raise LockingNotSupportedError("locking is not supported")
        with self._lock_file():
            self.metageneration = (
                self._get_meta_generation() if self.exists() else 0
            )
        return True

    def read(self) -> bytes:
        with self._maybe_lock():
            try:
                with open(self.path, "rb") as f:
                    return f.read()
            except FileNotFoundError as exc:
                raise BlobNotFoundError(f"Blob '{self.path}' not found") from exc

    def write(self, data: bytes) -> None:
        parent = os.path.dirname(self.path)
        if parent:
            try:
                os.makedirs(parent, exist_ok=True)
            except OSError:
                pass
        with self._maybe_lock():
            versioned = self._locking and self.metageneration != _NO_GENERATION
            if versioned:
                self._check_generation()
            with open(self.path, "wb") as f:
                f.write(bytes(data))
            if versioned:
                self._set_meta_generation(self.metageneration + 1)

    def delete(self) -> None:
        if self._locking:
            with self._lock_file():
                if self.metageneration != _NO_GENERATION:
                    self._check_generation()
        try:
            os.remove(self.path)
        except FileNotFoundError as exc:
            raise BlobNotFoundError(f"Blob '{self.path}' not found") from exc
        if self._locking:
            self._delete_generation()

    def __str__(self) -> str:
        return f"{self.client}{self.path}"