"""
Charm repository error classes.

Provides the taxonomy of errors raised by repository operations. Callers
branch on these classes (e.g. falling back to another repository on
CharmNotFoundError) so every class here is part of the public API.
"""
from __future__ import annotations

from typing import Optional


class CharmRepoError(Exception):
    """Base class for all charm repository errors."""
    pass


class CharmNotFoundError(CharmRepoError):
    """
    The requested charm does not exist in the repository that was queried.

    Carries the reference that could not be found (``ref``) so callers can
    report it or try another repository.
    """

    def __init__(self, message: str, ref: Optional[object] = None):
        super().__init__(message)
        self.ref = ref


class RepositoryNotFoundError(CharmNotFoundError):
    """The local repository root does not exist or is not a directory."""

    def __init__(self, path: str):
        super().__init__(f'no repository found at "{path}"')
        self.path = path


class InvalidReferenceError(CharmRepoError, ValueError):
    """
    Malformed or unsupported charm reference.

    Raised before any I/O, e.g. for a bundle URL handed to a charm fetch
    or a local reference without a series.
    """
    pass


class UnresolvedURLError(InvalidReferenceError):
    """A charm URL was required but the reference has no series."""

    def __init__(self, message: str = "charm url series is not resolved"):
        super().__init__(message)


class IntegrityError(CharmRepoError):
    """
    Downloaded content failed size or hash verification.

    Never leaves a usable cache entry behind; retrying the fetch is safe.
    """

    def __init__(self, message: str, expected: object = None, actual: object = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class SizeMismatchError(IntegrityError):
    """Byte count of the download differs from the advertised size."""
    pass


class HashMismatchError(IntegrityError):
    """SHA-384 of the download differs from the advertised hash."""
    pass


class CharmDownloadError(CharmRepoError):
    """
    Transport or environment failure while talking to the charm store.

    The underlying error is available as ``__cause__``.
    """
    pass


class AccessDeniedError(CharmDownloadError):
    """The store refused access to the requested entity."""
    pass


class CacheError(CharmRepoError):
    """The charm cache directory could not be prepared."""
    pass


class CharmParseError(CharmRepoError):
    """A file or directory could not be read as a charm."""
    pass


class InvalidFingerprintError(CharmRepoError, ValueError):
    """Fingerprint has the wrong size or is the zero value."""
    pass


__all__ = [
    "CharmRepoError",
    "CharmNotFoundError",
    "RepositoryNotFoundError",
    "InvalidReferenceError",
    "UnresolvedURLError",
    "IntegrityError",
    "SizeMismatchError",
    "HashMismatchError",
    "CharmDownloadError",
    "AccessDeniedError",
    "CacheError",
    "CharmParseError",
    "InvalidFingerprintError",
]
