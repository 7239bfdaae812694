"""Fetch capabilities: read raw bytes from a location.

The walker and the validator never do I/O themselves. They take a fetch
capability, any callable ``fetch(location) -> bytes`` that raises
:class:`~stacgraph.errors.FetchError` when the location cannot be read.
Retries and timeouts, if wanted, belong in the fetcher.

Two implementations are provided:

- ObstoreFetcher reads local paths, ``file://``, ``http(s)://``, ``s3://``,
  ``gs://`` and ``az://`` locations through obstore. Stores are created once
  per bucket (or origin, or directory) and reused.
- DictFetcher serves documents from an in-memory mapping, for tests and
  for callers that already hold the payloads.

Usage:
    from stacgraph.fetch import ObstoreFetcher, read

    fetch = ObstoreFetcher(s3_region="eu-west-1")
    catalog = read("s3://bucket/catalog.json", fetch)
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import unquote, urlsplit

import obstore as obs
from obstore.store import (
    AzureStore,
    GCSStore,
    HTTPStore,
    LocalStore,
    MemoryStore,
    S3Store,
)

from stacgraph.document import parse
from stacgraph.errors import FetchError
from stacgraph.href import is_url, normalize
from stacgraph.models import Document

logger = logging.getLogger(__name__)

# Type alias for all supported object stores
ObjectStore = S3Store | GCSStore | AzureStore | HTTPStore | LocalStore | MemoryStore


class Fetcher(Protocol):
    """Anything that can turn a location into bytes."""

    def __call__(self, location: str) -> bytes: ...


FetchFn = Callable[[str], bytes]


# =============================================================================
# URL Parsing
# =============================================================================


def parse_object_store_url(url: str) -> tuple[str, str]:
    """Parse object store URL into (bucket_url, key).

    The bucket_url is what obstore needs to create a store.
    The key is the object path within that bucket.

    Examples:
        s3://bucket/prefix/catalog.json -> (s3://bucket, prefix/catalog.json)
        gs://bucket/catalog.json -> (gs://bucket, catalog.json)
        az://account/container/catalog.json -> (az://account/container, catalog.json)
        https://host/a/catalog.json -> (https://host, a/catalog.json)

    Raises:
        ValueError: If URL scheme is not supported
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    key = unquote(parts.path).lstrip("/")

    if scheme in ("s3", "gs"):
        return f"{scheme}://{parts.netloc}", key

    elif scheme == "az":
        # Azure: az://account/container/path
        segments = key.split("/", 1)
        if not parts.netloc or not segments[0]:
            raise ValueError(f"Invalid Azure URL: {url}. Expected az://account/container/path")
        container = segments[0]
        key = segments[1] if len(segments) > 1 else ""
        return f"az://{parts.netloc}/{container}", key

    elif scheme in ("http", "https"):
        return f"{scheme}://{parts.netloc}", key

    else:
        raise ValueError(f"Unsupported URL scheme: {url}")


# =============================================================================
# Fetchers
# =============================================================================


class ObstoreFetcher:
    """Fetch bytes through obstore.

    Args:
        s3_endpoint: Custom S3-compatible endpoint (e.g. "minio.example.com:9000").
        s3_region: S3 region. Left to obstore's discovery when None.
        s3_use_ssl: Whether to use HTTPS for the custom S3 endpoint.
    """

    def __init__(
        self,
        *,
        s3_endpoint: str | None = None,
        s3_region: str | None = None,
        s3_use_ssl: bool = True,
    ) -> None:
        self.s3_endpoint = s3_endpoint
        self.s3_region = s3_region
        self.s3_use_ssl = s3_use_ssl
        self._stores: dict[str, ObjectStore] = {}
        self._lock = threading.Lock()

    def __call__(self, location: str) -> bytes:
        """Read the object at ``location``.

        Raises:
            FetchError: If the location is unsupported or cannot be read.
        """
        try:
            store, key = self._store_for(location)
            logger.debug("Fetching %s", location)
            return bytes(obs.get(store, key).bytes())
        except Exception as err:
            raise FetchError(location, err) from err

    def _store_for(self, location: str) -> tuple[ObjectStore, str]:
        if not is_url(location) or urlsplit(location).scheme.lower() == "file":
            path = Path(unquote(urlsplit(location).path) if is_url(location) else location)
            path = path.absolute()
            return self._cached(str(path.parent), lambda: LocalStore(path.parent)), path.name

        bucket_url, key = parse_object_store_url(location)
        return self._cached(bucket_url, lambda: self._build_store(bucket_url)), key

    def _cached(self, name: str, factory: Callable[[], ObjectStore]) -> ObjectStore:
        # Fetches may run in worker threads
        with self._lock:
            store = self._stores.get(name)
            if store is None:
                logger.debug("Creating object store for %s", name)
                store = factory()
                self._stores[name] = store
            return store

    def _build_store(self, bucket_url: str) -> ObjectStore:
        if bucket_url.startswith("s3://") and (self.s3_endpoint or self.s3_region):
            bucket = bucket_url.replace("s3://", "").split("/")[0]
            store_kwargs: dict[str, str] = {}
            if self.s3_region:
                store_kwargs["region"] = self.s3_region
            if self.s3_endpoint:
                protocol = "https" if self.s3_use_ssl else "http"
                store_kwargs["endpoint"] = f"{protocol}://{self.s3_endpoint}"
                store_kwargs.setdefault("region", "us-east-1")
            return S3Store(bucket, **store_kwargs)  # type: ignore[arg-type]

        if bucket_url.startswith(("http://", "https://")):
            return HTTPStore.from_url(bucket_url)

        return obs.store.from_url(bucket_url)


class DictFetcher:
    """Serve payloads from an in-memory mapping.

    Keys are locations; they are normalized, so "https://ex/a/../cat.json"
    and "https://ex/cat.json" name the same entry. Values may be bytes,
    text, or a JSON-compatible dict. A value that is an exception instance
    is raised (wrapped in FetchError) when requested.

    Every requested location is appended to ``requests``.
    """

    def __init__(self, documents: Mapping[str, Any]) -> None:
        self._documents = {normalize(location): value for location, value in documents.items()}
        self.requests: list[str] = []

    def __call__(self, location: str) -> bytes:
        self.requests.append(location)
        try:
            value = self._documents[normalize(location)]
        except KeyError as err:
            raise FetchError(location, FileNotFoundError(location)) from err

        if isinstance(value, BaseException):
            raise FetchError(location, value)
        if isinstance(value, dict):
            return json.dumps(value).encode("utf-8")
        if isinstance(value, str):
            return value.encode("utf-8")
        return bytes(value)


def read(location: str, fetch: FetchFn | None = None) -> Document:
    """Fetch and parse the document at ``location``.

    Args:
        location: Path or URL of a Catalog, Collection or Item.
        fetch: Fetch capability; defaults to a new ObstoreFetcher.

    Raises:
        FetchError: If the location cannot be read.
        ParseError: If the payload is not a valid document.
    """
    fetch = fetch or ObstoreFetcher()
    return parse(fetch(location))
