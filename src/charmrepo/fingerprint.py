"""
Content fingerprints for charm archives.

A fingerprint is the raw SHA-384 digest of some content. The charm store
advertises archive hashes in hex and the local cache verifies entries by
comparing Fingerprint values, so both sides of every comparison go
through fingerprint_stream() and new_hash().
"""
from __future__ import annotations

import binascii
import hashlib
from typing import Callable, Optional, Tuple

from .errors import InvalidFingerprintError
from .runtime_types import ByteStream

__all__ = ["Fingerprint", "FINGERPRINT_SIZE", "fingerprint_stream", "new_hash", "CHUNK_SIZE"]

FINGERPRINT_SIZE = 48  # 384 / 8

# Streaming read size shared by hashing and cache writes
CHUNK_SIZE = 1024 * 1024  # 1 MiB


def new_hash():
    """Return a fresh hasher for the fingerprint algorithm (SHA-384)."""
    return hashlib.sha384()


def _check_size(raw: bytes) -> None:
    if len(raw) < FINGERPRINT_SIZE:
        raise InvalidFingerprintError("invalid fingerprint (too small)")
    if len(raw) > FINGERPRINT_SIZE:
        raise InvalidFingerprintError("invalid fingerprint (too big)")


class Fingerprint:
    """
    Immutable SHA-384 fingerprint of some content.

    ``Fingerprint()`` is the zero value: it can be constructed but fails
    validate(). Any other value must be exactly 48 bytes long.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: bytes = b""):
        raw = bytes(raw)
        if raw:
            _check_size(raw)
        self._raw = raw

    @classmethod
    def new(cls, raw: bytes) -> Fingerprint:
        """
        Wrap a raw digest.

        Raises:
            InvalidFingerprintError: If raw is not exactly 48 bytes long
        """
        _check_size(raw)
        return cls(raw)

    @classmethod
    def parse_hex(cls, text: str) -> Fingerprint:
        """Build a fingerprint from its hex representation."""
        try:
            raw = binascii.unhexlify(text)
        except (binascii.Error, ValueError) as e:
            raise InvalidFingerprintError(f"invalid fingerprint hex {text!r}: {e}") from e
        return cls.new(raw)

    @classmethod
    def generate(cls, data: ByteStream) -> Fingerprint:
        """
        Compute the fingerprint of a stream, consuming it fully.

        Args:
            data: File-like object with read() or an iterable of bytes

        Raises:
            OSError: If reading the stream fails
        """
        fp, _ = fingerprint_stream(data)
        return fp

    def validate(self) -> None:
        """Raise InvalidFingerprintError for the zero value or a wrong size."""
        if not self._raw:
            raise InvalidFingerprintError("zero-value fingerprint")
        _check_size(self._raw)

    def hex(self) -> str:
        return self._raw.hex()

    def __bytes__(self) -> bytes:
        return self._raw

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"Fingerprint({self.hex()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fingerprint):
            return NotImplemented
        return self._raw == other._raw

    def __hash__(self) -> int:
        return hash(self._raw)


def fingerprint_stream(data: ByteStream,
                       sink: Optional[Callable[[bytes], object]] = None) -> Tuple[Fingerprint, int]:
    """
    Fingerprint a stream in CHUNK_SIZE pieces, counting its bytes.

    Args:
        data: File-like object with read() or an iterable of bytes
        sink: Optional callable receiving every chunk (e.g. a file's write)

    Returns:
        (fingerprint, total byte count)
    """
    hash_obj = new_hash()
    size = 0

    def consume(chunk: bytes) -> None:
        nonlocal size
        hash_obj.update(chunk)
        if sink is not None:
            sink(chunk)
        size += len(chunk)

    if hasattr(data, "read"):
        while True:
            chunk = data.read(CHUNK_SIZE)
            if not chunk:
                break
            consume(chunk)
    else:
        for chunk in data:
            consume(chunk)
    return Fingerprint(hash_obj.digest()), size
