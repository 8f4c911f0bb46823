"""
Storage interfaces for charmrepo.

These protocols define the boundary between the charm store repository
and the transport that talks to the store, enabling clean dependency
injection and testing with fakes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from ..runtime_types import ByteStream
from .params import MetaAnyResponse


@dataclass
class ArchiveDownload:
    """
    An open archive download.

    Invariants:
    - id: canonical, fully resolved charm URL string (e.g. "cs:trusty/wordpress-23")
    - hash: SHA-384 of the archive, 96 lowercase hex characters
    - size: exact byte length advertised by the store

    The body is not read until someone consumes it; close() must be
    called (or the object used as a context manager) either way.
    """
    id: str
    hash: str
    size: Optional[int]
    body: ByteStream
    closer: Optional[Callable[[], None]] = field(default=None, repr=False)

    def close(self) -> None:
        closer, self.closer = self.closer, None
        if closer is not None:
            closer()
        elif hasattr(self.body, "close"):
            self.body.close()

    def __enter__(self) -> ArchiveDownload:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = ["ArchiveDownload", "StoreTransport"]


@runtime_checkable
class StoreTransport(Protocol):
    """Protocol for charm store transport operations."""

    @property
    def url(self) -> str:
        """Root endpoint URL of the store."""
        ...

    def get_archive(self, id: str) -> ArchiveDownload:
        """
        Open the archive for a charm.

        Args:
            id: Charm URL string, possibly without revision

        Returns:
            Open download carrying the canonical id, hash and size

        Raises:
            StoreNotFound: If the charm does not exist
            StoreUnauthorized: If access is denied
            StoreAPIError: For other transport failures
        """
        ...

    def meta_any_bulk(self, ids: List[str], include: List[str]) -> Dict[str, Any]:
        """
        Fetch metadata for many ids in a single round trip.

        Args:
            ids: Charm URL strings
            include: Meta endpoint names, e.g. ["id-revision", "hash256"]

        Returns:
            Mapping from each found id (as given) to its raw meta/any JSON
            object. Ids the store does not know are absent.

        Raises:
            StoreAPIError: If the batch request itself fails
        """
        ...

    def meta(self, id: str, include: List[str]) -> MetaAnyResponse:
        """
        Fetch metadata for one, possibly under-specified, id.

        Raises:
            StoreNotFound: If the id cannot be resolved
            StoreUnauthorized: If access is denied
            StoreAPIError: For other transport failures
        """
        ...

    def with_stats_disabled(self) -> StoreTransport:
        """Return a transport whose downloads do not count in store stats."""
        ...
