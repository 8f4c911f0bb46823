"""
Verified on-disk cache of charm archives.

Entries live in a single flat directory, one file per resolved charm URL,
named by quoting the URL string and appending ``.charm``. Nothing else is
persisted: every lookup re-hashes the file against the hash and size the
store advertises at call time, so tampered or truncated entries are
simply treated as absent and overwritten.

New entries are written to a private temp file in the cache directory and
published with a single os.replace(), so concurrent readers see either
the old file or the complete new one.
"""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from ..errors import CacheError, HashMismatchError, InvalidFingerprintError, SizeMismatchError
from ..fingerprint import Fingerprint, fingerprint_stream
from ..runtime_types import ByteStream
from ..url import CharmURL, quote

logger = logging.getLogger(__name__)

__all__ = ["CharmCache", "CHARM_SUFFIX"]

CHARM_SUFFIX = ".charm"
TEMP_PREFIX = "charm-download"


class CharmCache:
    """
    Directory of previously downloaded charm archives.

    Args:
        root: Cache directory; created (with parents) by ensure()
    """

    def __init__(self, root: Union[str, Path]):
        if not root:
            raise ValueError("charm cache directory path is empty")
        self.root = Path(root)

    def ensure(self) -> None:
        """
        Create the cache directory if needed.

        Raises:
            CacheError: If the directory cannot be created
        """
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheError(f"cannot create the cache directory: {e}") from e

    def path_for(self, url: Union[CharmURL, str]) -> Path:
        """Return the cache path for a resolved charm URL."""
        return self.root / (quote(str(url)) + CHARM_SUFFIX)

    def lookup(self, path: Path, expected_hash: str, expected_size: Optional[int]) -> bool:
        """
        Check whether path holds exactly the expected content.

        Any I/O error or mismatch means "not usable" and is only logged.

        Args:
            path: Cache entry to verify
            expected_hash: SHA-384 hex digest advertised by the store
            expected_size: Byte length advertised by the store (None to skip)

        Returns:
            True if the entry can be served without downloading
        """
        expected = _expected_fingerprint(expected_hash)
        if expected is None:
            logger.debug(f"cannot verify {path}: invalid expected hash {expected_hash!r}")
            return False
        try:
            with open(path, "rb") as f:
                actual, size = fingerprint_stream(f)
        except OSError as e:
            logger.debug(f"cache miss for {path}: {e}")
            return False

        if expected_size is not None and size != expected_size:
            logger.debug(f"size mismatch for {path}: expected {expected_size}, got {size}")
            return False
        if actual != expected:
            logger.debug(f"hash mismatch for {path}")
            return False
        return True

    def store(
        self,
        bytestream: ByteStream,
        path: Path,
        expected_hash: str,
        expected_size: Optional[int],
    ) -> Path:
        """
        Stream content into the cache with verification and atomic publish.

        Args:
            bytestream: Content stream (file-like with read() or iterable of bytes)
            path: Final cache entry path (must be inside the cache directory)
            expected_hash: SHA-384 hex digest the content must have
            expected_size: Byte length the content must have (None to skip)

        Returns:
            The published cache path

        Raises:
            SizeMismatchError: If the byte count is wrong (checked first)
            HashMismatchError: If the SHA-384 is wrong or expected_hash is not one
            OSError: If file operations fail
        """
        expected = _expected_fingerprint(expected_hash)

        # Temp file in the cache directory itself so the rename stays on one filesystem
        fd, temp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=self.root)
        temp_path = Path(temp_name)

        try:
            with os.fdopen(fd, "wb") as out:
                actual, size = fingerprint_stream(bytestream, out.write)
                out.flush()
                os.fsync(out.fileno())

            if expected_size is not None and size != expected_size:
                raise SizeMismatchError(
                    "size mismatch; network corruption?", expected=expected_size, actual=size
                )
            if actual != expected:
                raise HashMismatchError(
                    "hash mismatch; network corruption?", expected=expected_hash, actual=actual.hex()
                )

            os.replace(temp_path, path)

        except Exception:
            # Clean up temp file on any error
            try:
                temp_path.unlink()
            except FileNotFoundError:
                pass
            raise

        logger.debug(f"cached {size} bytes at {path}")
        return path


def _expected_fingerprint(expected_hash: str) -> Optional[Fingerprint]:
    """Parse an advertised hex digest; None if it cannot be a SHA-384."""
    try:
        return Fingerprint.parse_hex(expected_hash)
    except InvalidFingerprintError:
        return None
