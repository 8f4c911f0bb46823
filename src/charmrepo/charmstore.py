"""
Charm store repository.

Implements the Repository protocol on top of a StoreTransport. Archives
are fetched through a verified cache: the store's advertised SHA-384 and
size are checked against the cached file on every get(), and a fresh
download is written only when the cached file is missing or stale.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError

from .charm import Charm, read_charm_archive
from .errors import (
    AccessDeniedError,
    CharmDownloadError,
    CharmNotFoundError,
    CharmRepoError,
    InvalidReferenceError,
)
from .runtime_types import CharmRevision
from .settings import Settings
from .storage.base import StoreTransport
from .storage.cache import CharmCache
from .storage.params import HashResponse, IdRevisionResponse
from .storage.store_errors import StoreAPIError, StoreNotFound, StoreUnauthorized
from .url import CharmURL, Reference, parse_url

logger = logging.getLogger(__name__)

__all__ = ["CharmStore", "charm_not_found"]

BUNDLE_SERIES = "bundle"
LATEST_INCLUDES = ["id-revision", "hash256"]


def charm_not_found(url: str) -> CharmNotFoundError:
    return CharmNotFoundError(f"charm not found: {url}", ref=url)


class CharmStore:
    """
    Repository backed by a remote charm store.

    Args:
        transport: Store transport (StoreHTTP in production, fakes in tests)
        cache_dir: Directory for the archive cache (required)

    Raises:
        ValueError: If cache_dir is empty
    """

    def __init__(self, transport: StoreTransport, cache_dir: Union[str, Path]):
        if not cache_dir:
            raise ValueError("charm cache directory path is empty")
        self.transport = transport
        self.cache = CharmCache(cache_dir)

    @classmethod
    def from_settings(cls, settings: Settings) -> CharmStore:
        from .storage.store_http import StoreHTTP

        return cls(StoreHTTP.from_settings(settings), settings.cache_dir)

    @property
    def url(self) -> str:
        """Root endpoint URL of the charm store."""
        return self.transport.url

    def with_test_mode(self) -> CharmStore:
        """
        Return a repository whose downloads do not increase the store's
        download stats. Fetch and cache behaviour is unchanged.
        """
        return CharmStore(self.transport.with_stats_disabled(), self.cache.root)

    def close(self):
        """Close the transport if it holds network resources."""
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def get(self, url: CharmURL) -> Charm:
        """
        Fetch a charm, serving it from the cache when the cached archive
        matches the store's advertised hash and size.

        Raises:
            InvalidReferenceError: If url refers to a bundle
            CacheError: If the cache directory cannot be created
            CharmNotFoundError: If the store has no such charm
            AccessDeniedError: If the store refuses access
            CharmDownloadError: For other transport failures
            IntegrityError: If the download fails verification
            CharmParseError: If the archive cannot be read
        """
        if url.series == BUNDLE_SERIES:
            raise InvalidReferenceError(f'expected a charm URL, got bundle URL "{url}"')

        self.cache.ensure()

        try:
            download = self.transport.get_archive(str(url))
        except StoreNotFound as e:
            raise CharmNotFoundError(f'cannot retrieve charm "{url}": charm not found', ref=url) from e
        except StoreUnauthorized as e:
            raise AccessDeniedError(f'access denied to charm URL "{url}"') from e
        except StoreAPIError as e:
            raise CharmDownloadError(f'cannot retrieve charm "{url}": {e}') from e

        with download:
            path = self.cache.path_for(download.id)
            if self.cache.lookup(path, download.hash, download.size):
                logger.debug(f"using cached archive {path} for {url}")
                return read_charm_archive(path)

            try:
                self.cache.store(download.body, path, download.hash, download.size)
            except StoreAPIError as e:
                raise CharmDownloadError(f'cannot read charm archive "{url}": {e}') from e
            logger.info(f"downloaded {download.id} ({download.size} bytes) to {path}")

        return read_charm_archive(path)

    def latest(self, *urls: CharmURL) -> List[CharmRevision]:
        """
        Return the latest revision and hash of each charm in one request.

        Raises:
            CharmDownloadError: If the batch request fails as a whole
        """
        if not urls:
            return []

        ids = [str(url.with_revision(-1)) for url in urls]
        try:
            results = self.transport.meta_any_bulk(ids, LATEST_INCLUDES)
        except StoreAPIError as e:
            raise CharmDownloadError(f"cannot get metadata from the charm store: {e}") from e

        return [self._revision_record(url, id, results.get(id)) for url, id in zip(urls, ids)]

    @staticmethod
    def _revision_record(url: CharmURL, id: str, result: Optional[dict]) -> CharmRevision:
        if result is None:
            return CharmRevision(name=url.name, err=charm_not_found(id))
        try:
            meta = result["Meta"]
            revision = IdRevisionResponse.model_validate(meta["id-revision"])
            hash256 = HashResponse.model_validate(meta["hash256"])
        except (KeyError, TypeError, ValidationError) as e:
            return CharmRevision(
                name=url.name,
                err=CharmRepoError(f"invalid metadata for {id}: {e}"),
            )
        return CharmRevision(name=url.name, revision=revision.revision, sha256=hash256.sum)

    def resolve(self, ref: Reference) -> CharmURL:
        """
        Resolve an under-specified reference to its canonical URL.

        Raises:
            CharmNotFoundError: If the store cannot resolve ref
            AccessDeniedError: If the store refuses access
            CharmDownloadError: For other failures
        """
        try:
            result = self.transport.meta(str(ref), ["id"])
        except StoreNotFound as e:
            raise CharmNotFoundError(f'cannot resolve charm URL "{ref}": charm not found', ref=ref) from e
        except StoreUnauthorized as e:
            raise AccessDeniedError(f'access denied to charm URL "{ref}"') from e
        except StoreAPIError as e:
            raise CharmDownloadError(f'cannot resolve charm URL "{ref}": {e}') from e

        try:
            return parse_url(result.id)
        except InvalidReferenceError as e:
            raise CharmDownloadError(
                f"cannot make fully resolved entity URL from {result.id!r}: {e}"
            ) from e
