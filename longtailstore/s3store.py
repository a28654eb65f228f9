"""A blob store backed by an S3 bucket, reached through the S3 REST API."""

from __future__ import annotations

import datetime
import hashlib
import hmac
import logging
import os
import urllib.error
import urllib.parse
import urllib.request
import xml.etree.ElementTree as ET
from dataclasses import dataclass

from .base import (
    BlobClient,
    BlobNotFoundError,
    BlobObject,
    BlobProperties,
    BlobStore,
    BlobStoreError,
)

logger = logging.getLogger(__name__)

_DEFAULT_REGION = "us-east-1"
_TIMEOUT = 60
_ALGORITHM = "AWS4-HMAC-SHA256"


class S3Error(BlobStoreError):
    """A request to S3 failed."""


@dataclass(frozen=True)
class S3Options:
    """Optional settings for reaching S3."""

    endpoint_resolver_uri: str | None = None
    s3_transfer_accel: bool | None = None


@dataclass(frozen=True)
class _Credentials:
    access_key_id: str
    secret_access_key: str
    session_token: str | None = None

    @classmethod
    def from_environment(cls) -> _Credentials | None:
        access_key_id = os.environ.get("AWS_ACCESS_KEY_ID")
        secret_access_key = os.environ.get("AWS_SECRET_ACCESS_KEY")
        if not access_key_id or not secret_access_key:
            return None
        return cls(access_key_id, secret_access_key, os.environ.get("AWS_SESSION_TOKEN"))


def _region_from_environment() -> str:
    return (
        os.environ.get("AWS_REGION")
        or os.environ.get("AWS_DEFAULT_REGION")
        or _DEFAULT_REGION
    )


def _quote(text: str, safe: str = "") -> str:
    return urllib.parse.quote(text, safe=safe)


def _hmac(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def _signed_headers(
    method: str,
    url: str,
    payload: bytes,
    credentials: _Credentials | None,
    region: str,
    now: datetime.datetime,
) -> dict[str, str]:
    """Return the request headers, signed with SigV4 when credentials exist."""
    parts = urllib.parse.urlsplit(url)
    payload_hash = hashlib.sha256(payload).hexdigest()
    amz_date = now.strftime("%Y%m%dT%H%M%SZ")
    headers = {
        "host": parts.netloc,
        "x-amz-content-sha256": payload_hash,
        "x-amz-date": amz_date,
    }
    if credentials is None:
        return headers
    if credentials.session_token:
        headers["x-amz-security-token"] = credentials.session_token

    names = sorted(headers)
    canonical_headers = "".join(f"{name}:{headers[name].strip()}\n" for name in names)
    signed_names = ";".join(names)
    query = urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
    canonical_query = "&".join(
        f"{_quote(key)}={_quote(value)}" for key, value in sorted(query)
    )
    canonical_request = "\n".join(
        [
            method,
            parts.path or "/",
            canonical_query,
            canonical_headers,
            signed_names,
            payload_hash,
        ]
    )
    date = amz_date[:8]
    scope = f"{date}/{region}/s3/aws4_request"
    string_to_sign = "\n".join(
        [
            _ALGORITHM,
            amz_date,
            scope,
            hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
        ]
    )
    key = _hmac(f"AWS4{credentials.secret_access_key}".encode("utf-8"), date)
    for part in (region, "s3", "aws4_request"):
        key = _hmac(key, part)
    signature = hmac.new(
        key, string_to_sign.encode("utf-8"), hashlib.sha256
    ).hexdigest()
    headers["authorization"] = (
        f"{_ALGORITHM} Credential={credentials.access_key_id}/{scope}, "
        f"SignedHeaders={signed_names}, Signature={signature}"
    )
    return headers


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


class S3BlobStore(BlobStore):
    """Blob store holding its blobs under ``prefix`` in ``bucket_name``."""

    def __init__(
        self, bucket_name: str, prefix: str = "", options: S3Options | None = None
    ) -> None:
        self.bucket_name = bucket_name
        self.prefix = prefix
        self.options = options

    def new_client(self) -> S3BlobClient:
        return S3BlobClient(self)

    def __str__(self) -> str:
        return f"s3://{self.bucket_name}/{self.prefix}"

    def __repr__(self) -> str:
        return (
            f"S3BlobStore(bucket_name={self.bucket_name!r}, "
            f"prefix={self.prefix!r}, options={self.options!r})"
        )


class S3BlobClient(BlobClient):
    """Client of a :class:`S3BlobStore`."""

    def __init__(self, store: S3BlobStore) -> None:
        self.store = store
        self.closed = False
        self._region = _region_from_environment()
        self._credentials = _Credentials.from_environment()
        options = store.options or S3Options()
        if options.s3_transfer_accel is not None:
            logger.debug("Setting s3 transfer acceleration: %s", options.s3_transfer_accel)
        else:
            logger.debug("Not using s3 transfer acceleration")

    def _base_url(self) -> str:
        options = self.store.options or S3Options()
        bucket = self.store.bucket_name
        if options.endpoint_resolver_uri:
            return f"{options.endpoint_resolver_uri.rstrip('/')}/{_quote(bucket)}"
        if options.s3_transfer_accel:
            return f"https://{bucket}.s3-accelerate.amazonaws.com"
        return f"https://{bucket}.s3.{self._region}.amazonaws.com"

    def _object_url(self, key: str) -> str:
        return f"{self._base_url()}/{_quote(key, safe='/')}"

    def _send(self, method: str, url: str, data: bytes = b"") -> bytes:
        """Send a signed request and return the response body.

        HTTP error statuses propagate as ``urllib.error.HTTPError``; transport
        failures become :class:`S3Error`.
        """
        headers = _signed_headers(
            method,
            url,
            data,
            self._credentials,
            self._region,
            datetime.datetime.now(datetime.timezone.utc),
        )
        if method == "PUT":
            headers["content-type"] = "application/octet-stream"
        request = urllib.request.Request(
            url,
            data=data if method == "PUT" else None,
            headers=headers,
            method=method,
        )
        try:
            with urllib.request.urlopen(request, timeout=_TIMEOUT) as response:
                return response.read()
        except urllib.error.HTTPError:
            raise
        except (urllib.error.URLError, OSError) as exc:
            raise S3Error(f"{method} {url} failed: {exc}") from exc

    def new_object(self, object_key: str) -> S3BlobObject:
        """Return a handle rooted under the store prefix.

        A key that already starts with the prefix is used as it is.
        """
        prefix = self.store.prefix
        if object_key.startswith(prefix):
            return S3BlobObject(self, object_key)
        trimmed_prefix = prefix[:-1] if prefix.endswith("/") else prefix
        trimmed_key = object_key[1:] if object_key.startswith("/") else object_key
        return S3BlobObject(self, f"{trimmed_prefix}/{trimmed_key}")

    def get_objects(self, path_prefix: str) -> list[BlobProperties]:
        full_prefix = f"{self.store.prefix}{path_prefix}"
        logger.debug("Listing objects: [%s] [%s]", self.store.bucket_name, full_prefix)
        query = urllib.parse.urlencode(
            {"list-type": "2", "prefix": full_prefix}, quote_via=urllib.parse.quote
        )
        url = f"{self._base_url()}/?{query}"
        try:
            body = self._send("GET", url)
        except urllib.error.HTTPError as exc:
            raise S3Error(f"listing {full_prefix!r} failed: HTTP {exc.code}") from exc
        try:
            root = ET.fromstring(body)
        except ET.ParseError as exc:
            raise S3Error(f"malformed listing response: {exc}") from exc
        objects = []
        for element in root.iter():
            if _local_name(element.tag) != "Contents":
                continue
            fields = {_local_name(child.tag): (child.text or "") for child in element}
            size_text = fields.get("Size", "")
            objects.append(
                BlobProperties(
                    size=int(size_text) if size_text else 0,
                    name=fields.get("Key", ""),
                )
            )
        return objects

    def supports_locking(self) -> bool:
        return False

    def close(self) -> None:
        """Mark the client as closed; each request opens its own connection."""
        self.closed = True
        logger.debug("closed client of %s", self.store)

    def __str__(self) -> str:
        return str(self.store)


class S3BlobObject(BlobObject):
    """Handle to one object in a :class:`S3BlobStore`; the key holds the prefix."""

    def __init__(self, client: S3BlobClient, object_key: str) -> None:
        self.client = client
        self.object_key = object_key

    @property
    def _url(self) -> str:
        return self.client._object_url(self.object_key)

    def exists(self) -> bool:
        logger.debug(
            "Checking object exists: [%s] [%s] [%s]",
            self.client.store.bucket_name,
            self.client.store.prefix,
            self.object_key,
        )
        try:
            self.client._send("HEAD", self._url)
        except urllib.error.HTTPError as exc:
            if exc.code == 404:
                return False
            # Only a "not found" answer from the service counts as absent.
            return True
        return True

    def lock_write_version(self) -> bool:
        return False

    def read(self) -> bytes:
        logger.debug(
            "Reading object from s3: [%s] [%s]",
            self.client.store.bucket_name,
            self.object_key,
        )
        try:
            return self.client._send("GET", self._url)
        except urllib.error.HTTPError as exc:
            if exc.code == 404:
                raise BlobNotFoundError(f"Blob '{self.object_key}' not found") from exc
            raise S3Error(f"reading {self.object_key!r} failed: HTTP {exc.code}") from exc

    def write(self, data: bytes) -> None:
        try:
            self.client._send("PUT", self._url, bytes(data))
        except urllib.error.HTTPError as exc:
            raise S3Error(f"writing {self.object_key!r} failed: HTTP {exc.code}") from exc

    def delete(self) -> None:
        try:
            self.client._send("DELETE", self._url)
        except urllib.error.HTTPError as exc:
            raise S3Error(f"deleting {self.object_key!r} failed: HTTP {exc.code}") from exc

    def __str__(self) -> str:
        key = self.object_key[1:] if self.object_key.startswith("/") else self.object_key
        return f"s3://{self.client.store.bucket_name}/{key}"