"""Abstract blob store interfaces and the errors they raise."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class BlobStoreError(Exception):
    """Base class for all blob store failures."""


class BlobNotFoundError(BlobStoreError):
    """The requested blob does not exist."""


class GenerationMismatchError(BlobStoreError):
    """A blob changed since its write version was locked."""


class LockingNotSupportedError(BlobStoreError):
    """The store was configured without locking support."""


@dataclass(frozen=True)
class BlobProperties:
    """Name and size of a blob found in a listing."""

    size: int
    name: str


class BlobObject(ABC):
    """A handle to a single blob inside a store."""

    @abstractmethod
    def exists(self) -> bool:
        """Return whether the blob currently exists."""

    @abstractmethod
    def lock_write_version(self) -> bool:
        """Remember the blob's current generation for later conditional writes."""

    @abstractmethod
    def read(self) -> bytes:
        """Return the whole content of the blob."""

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Replace the content of the blob with ``data``."""

    @abstractmethod
    def delete(self) -> None:
        """Remove the blob."""

    @abstractmethod
    def __str__(self) -> str:
        """Return a URI-like description of the blob."""


class BlobClient(ABC):
    """A connection to a blob store that hands out blob objects."""

    @abstractmethod
    def new_object(self, path: str) -> BlobObject:
        """Return a handle to the blob at ``path``."""

    @abstractmethod
    def get_objects(self, path_prefix: str) -> list[BlobProperties]:
        """List the blobs whose names start with ``path_prefix``."""

    @abstractmethod
    def supports_locking(self) -> bool:
        """Return whether conditional writes are supported."""

    @abstractmethod
    def close(self) -> None:
        """Release resources held by the client."""

    @abstractmethod
    def __str__(self) -> str:
        """Return a URI-like description of the client's store."""

    def __enter__(self) -> BlobClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class BlobStore(ABC):
    """A factory for clients of one blob storage location."""

    @abstractmethod
    def new_client(self) -> BlobClient:
        """Create a new client for this store."""

    @abstractmethod
    def __str__(self) -> str:
        """Return a URI-like description of the store."""