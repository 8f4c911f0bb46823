"""
Runtime types shared by charm repository implementations.

These types define the contract between callers and repositories,
enabling callers to work against either the charm store or a local
directory without knowing which one they have.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import IO, TYPE_CHECKING, Iterable, List, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .charm import Charm
    from .url import CharmURL, Reference

# Type alias for byte streams (file-like or iterable)
ByteStream = IO[bytes] | Iterable[bytes]

__all__ = ["CharmRevision", "Repository", "ByteStream"]


@dataclass(frozen=True)
class CharmRevision:
    """
    Latest revision of one charm, or the error encountered looking it up.

    Exactly one of (revision, err) is meaningful: if err is set the other
    fields carry no information.
    """
    name: str = ""
    revision: int = 0
    sha256: str = ""
    err: Optional[Exception] = None


@runtime_checkable
class Repository(Protocol):
    """
    Protocol for charm repositories (a collection of charms).

    Implemented independently by CharmStore and LocalRepository.
    """

    def get(self, url: CharmURL) -> Charm:
        """
        Return the charm matching url.

        Raises:
            CharmNotFoundError: If no matching charm exists
            CharmRepoError: For any other failure
        """
        ...

    def latest(self, *urls: CharmURL) -> List[CharmRevision]:
        """
        Return the latest revision of each charm, ignoring the revision
        in the given URLs.

        Results are in input order; a failure for one URL is reported in
        its own record and does not affect the others.
        """
        ...

    def resolve(self, ref: Reference) -> CharmURL:
        """Return the fully resolved URL (series and revision) for ref."""
        ...
