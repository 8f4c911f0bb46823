"""
Charm repository selection and helpers.

Both repository implementations satisfy the Repository protocol from
runtime_types; this module picks one for a reference and wraps the bulk
latest() call for the common single-charm case.
"""
from __future__ import annotations

from typing import Optional

from .charmstore import CharmStore
from .errors import CharmRepoError, InvalidReferenceError
from .local import LocalRepository
from .runtime_types import CharmRevision, Repository
from .settings import Settings
from .url import CharmURL, Reference

__all__ = ["Repository", "CharmRevision", "latest", "infer_repository"]


def latest(repo: Repository, url: CharmURL) -> int:
    """
    Return the latest revision of the charm referenced by url, regardless
    of the revision set on url.

    Raises:
        CharmRepoError: The record's error, or if the repository returned
            an unexpected number of results
    """
    revs = repo.latest(url)
    if len(revs) != 1:
        raise CharmRepoError(f"expected 1 result, got {len(revs)}")
    rev = revs[0]
    if rev.err is not None:
        raise rev.err
    return rev.revision


def infer_repository(ref: Reference, local_repo_path: Optional[str] = None, *,
                     settings: Optional[Settings] = None) -> Repository:
    """
    Return the repository a reference points at.

    Args:
        ref: Charm reference; its schema selects the backend
        local_repo_path: Root of the local repository (local refs only)
        settings: Settings for the charm store (loaded from env if None)

    Raises:
        ValueError: If a local ref is given without a repository path
        InvalidReferenceError: If the schema is unknown
    """
    if ref.schema == "cs":
        if settings is None:
            from .settings import create_settings_from_env
            settings = create_settings_from_env()
        return CharmStore.from_settings(settings)
    if ref.schema == "local":
        if not local_repo_path:
            raise ValueError("path to local repository not specified")
        return LocalRepository(local_repo_path)
    raise InvalidReferenceError(f'unknown schema for charm reference "{ref}"')
