"""Creating blob stores from URIs and reading blobs through them."""

from __future__ import annotations

import logging
import urllib.parse

from .base import BlobClient, BlobStore
from .fsstore import FsBlobStore
from .s3store import S3BlobStore, S3Options

logger = logging.getLogger(__name__)

_FSBLOB = "fsblob://"
_S3 = "s3://"
_FILE = "file://"


def create_blob_store_for_uri(uri: str, opts: S3Options | None = None) -> BlobStore:
    """Return the blob store that ``uri`` names.

    ``fsblob://`` and ``file://`` URIs and bare paths give a file system store;
    ``s3://bucket/prefix`` gives an S3 store. Raises ``ValueError`` when an
    S3 URI has no bucket.
    """
    if uri.startswith(_FSBLOB):
        return FsBlobStore(uri[len(_FSBLOB):], True)
    if uri.startswith(_S3):
        parsed = urllib.parse.urlsplit(uri)
        if not parsed.hostname:
            raise ValueError(f"could not parse blob_store URI bucket_name: {uri!r}")
        prefix = parsed.path.lstrip("/")
        return S3BlobStore(parsed.hostname, prefix, opts)
    if uri.startswith(_FILE):
        return FsBlobStore(uri[len(_FILE):], True)
    return FsBlobStore(uri, True)


def split_uri(uri: str) -> tuple[str, str]:
    """Split ``uri`` at its last slash into parent and name."""
    parent, sep, name = uri.rpartition("/")
    if not sep:
        return "", uri
    return parent, name


def read_blob(client: BlobClient, key: str) -> bytes:
    """Read the blob at ``key`` through ``client``."""
    return client.new_object(key).read()


def read_from_uri(uri: str, opts: S3Options | None = None) -> bytes:
    """Read the whole blob that ``uri`` points at."""
    parent, name = split_uri(uri)
    logger.debug("Reading from URI: [%s] [%s]", parent, name)
    store = create_blob_store_for_uri(parent, opts)
    with store.new_client() as client:
        return client.new_object(name).read()