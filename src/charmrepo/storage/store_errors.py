"""
Charm store transport error classes.

Provides the taxonomy of errors raised by store transports. These errors
are mapped from HTTP status codes and the store's JSON error bodies so the
repository layer can special-case "not found" regardless of the
underlying transport implementation.
"""
from __future__ import annotations

from typing import Optional


class StoreAPIError(Exception):
    """
    Base class for all charm store transport errors.

    Attributes:
        code: Error code from the store's JSON error body, if any
        status: HTTP status code, if the error came from a response
    """

    def __init__(self, message: str, code: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.status = status


class StoreNotFound(StoreAPIError):
    """
    Entity not found in the store.

    Raised when:
    - HTTP 404 Not Found
    - A fake transport has no entry for the requested id
    """
    pass


class StoreUnauthorized(StoreAPIError):
    """
    Authentication or authorization error.

    Raised when:
    - HTTP 401 Unauthorized
    - HTTP 403 Forbidden
    """
    pass


__all__ = [
    "StoreAPIError",
    "StoreNotFound",
    "StoreUnauthorized",
]
