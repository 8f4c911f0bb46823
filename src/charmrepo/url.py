"""
Charm references and URLs.

A Reference identifies a charm that may be under-specified (no series,
no revision). A CharmURL is a Reference whose series is known, which is
what repositories need to fetch anything. Both are immutable values.

Supported forms::

    [schema:][~user/][series/]name[-revision]

    cs:~joe/trusty/wordpress-42
    cs:precise/mysql
    local:quantal/upgrade
    wordpress
"""
from __future__ import annotations

import re
from dataclasses import dataclass, replace

from .errors import InvalidReferenceError, UnresolvedURLError

__all__ = [
    "Reference",
    "CharmURL",
    "parse_reference",
    "parse_url",
    "quote",
    "is_valid_name",
    "is_valid_series",
    "SCHEMAS",
]

SCHEMAS = ("cs", "local")

_VALID_SERIES = re.compile(r"^[a-z]+([a-z0-9]+)?$")
_VALID_NAME = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]*[a-z][a-z0-9]*)*$")
_VALID_USER = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9+.-]*$")
_QUOTE_SAFE = frozenset(b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789.-")


def is_valid_series(series: str) -> bool:
    return bool(_VALID_SERIES.match(series))


def is_valid_name(name: str) -> bool:
    return bool(_VALID_NAME.match(name))


@dataclass(frozen=True)
class Reference:
    """
    A possibly partial charm identifier.

    revision is -1 when unset, meaning "latest".
    """
    schema: str
    name: str
    user: str = ""
    series: str = ""
    revision: int = -1

    @property
    def path(self) -> str:
        """Schema-less path form, e.g. ``~joe/trusty/wordpress-42``."""
        parts = []
        if self.user:
            parts.append(f"~{self.user}")
        if self.series:
            parts.append(self.series)
        if self.revision >= 0:
            parts.append(f"{self.name}-{self.revision}")
        else:
            parts.append(self.name)
        return "/".join(parts)

    def with_revision(self, revision: int):
        return replace(self, revision=revision)

    def url(self, default_series: str = "") -> CharmURL:
        """
        Return a CharmURL for this reference.

        Uses default_series when the reference carries no series.

        Raises:
            UnresolvedURLError: If no series is available
            InvalidReferenceError: If default_series is malformed
        """
        series = self.series
        if not series:
            if not default_series:
                raise UnresolvedURLError()
            if not is_valid_series(default_series):
                raise InvalidReferenceError(f"default series {default_series!r} is invalid")
            series = default_series
        return CharmURL(
            schema=self.schema,
            name=self.name,
            user=self.user,
            series=series,
            revision=self.revision,
        )

    def __str__(self) -> str:
        return f"{self.schema}:{self.path}"


@dataclass(frozen=True)
class CharmURL(Reference):
    """A charm reference with its series determined."""

    def __post_init__(self) -> None:
        if not self.series:
            raise UnresolvedURLError()

    @property
    def reference(self) -> Reference:
        return Reference(
            schema=self.schema,
            name=self.name,
            user=self.user,
            series=self.series,
            revision=self.revision,
        )


def parse_reference(text: str) -> Reference:
    """
    Parse a charm reference. A missing schema is assumed to be ``cs``.

    Raises:
        InvalidReferenceError: If text is not a valid reference
    """
    ref = _parse(text)
    if not ref["schema"]:
        ref["schema"] = "cs"
    return Reference(**ref)


def parse_url(text: str) -> CharmURL:
    """
    Parse a fully qualified charm URL (schema and series required).

    Raises:
        UnresolvedURLError: If the URL has no series
        InvalidReferenceError: If the URL is malformed or has no schema
    """
    ref = _parse(text)
    if not ref["series"]:
        raise UnresolvedURLError()
    if not ref["schema"]:
        raise InvalidReferenceError(f"charm URL has no schema: {text!r}")
    return CharmURL(**ref)


def _parse(text: str) -> dict:
    schema = ""
    rest = text
    if ":" in text:
        schema, rest = text.split(":", 1)
        if schema not in SCHEMAS:
            raise InvalidReferenceError(f"charm URL has invalid schema: {text!r}")

    parts = rest.split("/")
    if len(parts) > 3:
        raise InvalidReferenceError(f"charm URL has invalid form: {text!r}")

    user = ""
    if parts[0].startswith("~"):
        if schema == "local":
            raise InvalidReferenceError(f"local charm URL with user name: {text!r}")
        user = parts[0][1:]
        if not _VALID_USER.match(user):
            raise InvalidReferenceError(f"charm URL has invalid user name: {text!r}")
        parts = parts[1:]
    if len(parts) > 2:
        raise InvalidReferenceError(f"charm URL has invalid form: {text!r}")

    series = ""
    if len(parts) == 2:
        series = parts[0]
        if not is_valid_series(series):
            raise InvalidReferenceError(f"charm URL has invalid series: {text!r}")
        parts = parts[1:]
    if not parts or not parts[0]:
        raise InvalidReferenceError(f"charm URL without charm name: {text!r}")

    # <name>[-<revision>]
    name = parts[0]
    revision = -1
    head, sep, tail = name.rpartition("-")
    if sep and head and tail.isdigit() and tail.isascii():
        name, revision = head, int(tail)
    if not is_valid_name(name):
        raise InvalidReferenceError(f"charm URL has invalid charm name: {text!r}")

    return {"schema": schema, "name": name, "user": user, "series": series, "revision": revision}


def quote(unsafe: str) -> str:
    """
    Make a charm URL string safe for use as a file name.

    ASCII letters, digits, dot and dash are kept; every other byte of the
    UTF-8 encoding becomes its two-digit hex value surrounded by
    underscores.
    """
    out = []
    for b in unsafe.encode("utf-8"):
        if b in _QUOTE_SAFE:
            out.append(chr(b))
        else:
            out.append(f"_{b:02x}_")
    return "".join(out)
