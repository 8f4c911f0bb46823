"""
Local charm repository.

A local repository is a directory containing one subdirectory per series,
each holding charm directories and/or ``.charm`` archives targeted at that
series::

    /path/to/repository/oneiric/mongodb/
    /path/to/repository/precise/mongodb.charm
    /path/to/repository/precise/wordpress/
"""
from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import List, Optional, Union

from .charm import Charm, read_charm
from .errors import (
    CharmNotFoundError,
    CharmParseError,
    CharmRepoError,
    InvalidReferenceError,
    RepositoryNotFoundError,
)
from .runtime_types import CharmRevision
from .storage.cache import CHARM_SUFFIX
from .url import CharmURL, Reference

logger = logging.getLogger(__name__)

__all__ = ["LocalRepository"]

LOCAL_SCHEMA = "local"


def _charm_not_found(url: CharmURL, repo_path: Path) -> CharmNotFoundError:
    return CharmNotFoundError(f'charm not found in "{repo_path}": {url}', ref=url)


def _might_be_charm(name: str, mode: int) -> bool:
    if stat.S_ISDIR(mode):
        return not name.startswith(".")
    return name.endswith(CHARM_SUFFIX)


class LocalRepository:
    """
    Repository backed by a directory tree partitioned by series.

    Raises:
        ValueError: If path is empty
    """

    def __init__(self, path: Union[str, Path]):
        if not path:
            raise ValueError("path to local repository not specified")
        self.path = Path(path)

    def get(self, url: CharmURL) -> Charm:
        """
        Return the charm matching url.

        With an explicit revision, the first candidate with that exact
        revision wins. With revision -1, the highest revision among all
        candidates with the right name is returned. Candidates are
        visited in file name order.

        Raises:
            InvalidReferenceError: If url is not a local URL
            RepositoryNotFoundError: If the repository root is missing
            CharmNotFoundError: If no candidate matches
        """
        if url.schema != LOCAL_SCHEMA:
            raise InvalidReferenceError(f'local repository got URL with non-local schema: "{url}"')
        if not self.path.is_dir():
            raise RepositoryNotFoundError(str(self.path))

        series_path = self.path / url.series
        try:
            entries = sorted(os.scandir(series_path), key=lambda e: e.name)
        except OSError as e:
            logger.debug(f"cannot list {series_path}: {e}")
            raise _charm_not_found(url, self.path) from e

        latest: Optional[Charm] = None
        for entry in entries:
            try:
                # scandir's stat follows symlinks, so links are classified by target
                mode = entry.stat().st_mode
            except OSError as e:
                logger.warning(f"cannot stat charm candidate {entry.path!r}: {e}")
                continue
            if not _might_be_charm(entry.name, mode):
                continue

            try:
                ch = read_charm(entry.path)
            except (CharmParseError, OSError) as e:
                logger.warning(f"failed to load charm at {entry.path!r}: {e}")
                continue

            if ch.name != url.name:
                continue
            if ch.revision == url.revision:
                return ch
            if latest is None or ch.revision > latest.revision:
                latest = ch

        if url.revision == -1 and latest is not None:
            return latest
        raise _charm_not_found(url, self.path)

    def latest(self, *urls: CharmURL) -> List[CharmRevision]:
        """Return the latest revision of each charm; errors are per record."""
        results = []
        for url in urls:
            try:
                ch = self.get(url.with_revision(-1))
            except CharmRepoError as e:
                results.append(CharmRevision(name=url.name, err=e))
            else:
                results.append(CharmRevision(name=url.name, revision=ch.revision))
        return results

    def resolve(self, ref: Reference) -> CharmURL:
        """
        Resolve ref against this repository.

        Raises:
            InvalidReferenceError: If ref has no series
            CharmNotFoundError: If ref has no revision and no charm matches
        """
        if not ref.series:
            raise InvalidReferenceError(f"no series specified for {ref}")
        url = ref.url()
        if ref.revision != -1:
            return url
        ch = self.get(url)
        return url.with_revision(ch.revision)
