"""
Minimal charm reader.

Reads the parts of a charm the repositories need (metadata and revision)
from either an expanded charm directory or a zipped ``.charm`` archive.
Every format problem surfaces as CharmParseError so callers can decide
whether a bad candidate is fatal or skippable.
"""
from __future__ import annotations

import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import CharmParseError
from .url import is_valid_name

__all__ = ["Charm", "CharmMeta", "read_charm", "read_charm_dir", "read_charm_archive", "read_meta"]

METADATA_FILE = "metadata.yaml"
REVISION_FILE = "revision"


class CharmMeta(BaseModel):
    """Charm metadata as declared in metadata.yaml."""
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Charm name")
    summary: str = Field(default="", description="One-line summary")
    description: str = Field(default="", description="Long description")
    series: List[str] = Field(default_factory=list, description="Supported series")
    subordinate: bool = Field(default=False, description="Whether the charm is subordinate")
    revision: Optional[int] = Field(default=None, description="Obsolete revision field")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not is_valid_name(v):
            raise ValueError(f"invalid charm name {v!r}")
        return v


@dataclass(frozen=True)
class Charm:
    """A charm read from disk."""
    path: Path
    meta: CharmMeta
    revision: int
    is_archive: bool

    @property
    def name(self) -> str:
        return self.meta.name


def read_meta(data: Union[bytes, str]) -> CharmMeta:
    """
    Parse metadata.yaml content.

    Raises:
        CharmParseError: If the YAML is invalid or fails validation
    """
    try:
        doc = yaml.safe_load(data)
    except yaml.YAMLError as e:
        raise CharmParseError(f"invalid metadata.yaml: {e}") from e
    if not isinstance(doc, dict):
        raise CharmParseError("invalid metadata.yaml: expected a mapping")
    try:
        return CharmMeta.model_validate(doc)
    except ValidationError as e:
        raise CharmParseError(f"invalid metadata.yaml: {e}") from e


def _parse_revision(data: Optional[bytes], meta: CharmMeta) -> int:
    if data is None:
        return meta.revision if meta.revision is not None else 0
    fields = data.decode("utf-8", errors="replace").split()
    try:
        return int(fields[0])
    except (IndexError, ValueError) as e:
        raise CharmParseError("invalid revision file") from e


def read_charm_dir(path: Union[str, Path]) -> Charm:
    """Read an expanded charm directory."""
    path = Path(path)
    meta_path = path / METADATA_FILE
    if not meta_path.is_file():
        raise CharmParseError(f'"{METADATA_FILE}" not found in charm directory {path}')
    meta = read_meta(meta_path.read_bytes())

    rev_path = path / REVISION_FILE
    rev_data = rev_path.read_bytes() if rev_path.is_file() else None
    return Charm(path=path, meta=meta, revision=_parse_revision(rev_data, meta), is_archive=False)


def read_charm_archive(path: Union[str, Path]) -> Charm:
    """Read a zipped charm archive."""
    path = Path(path)
    try:
        with zipfile.ZipFile(path) as zf:
            names = set(zf.namelist())
            if METADATA_FILE not in names:
                raise CharmParseError(f'archive file "{METADATA_FILE}" not found in {path}')
            meta = read_meta(zf.read(METADATA_FILE))
            rev_data = zf.read(REVISION_FILE) if REVISION_FILE in names else None
    # zipfile reports encrypted members, unknown compression methods and
    # corrupt deflate streams with generic exception types
    except (zipfile.BadZipFile, RuntimeError, NotImplementedError, zlib.error, EOFError) as e:
        raise CharmParseError(f"cannot read charm archive {path}: {e}") from e
    return Charm(path=path, meta=meta, revision=_parse_revision(rev_data, meta), is_archive=True)


def read_charm(path: Union[str, Path]) -> Charm:
    """
    Read a charm from a directory or an archive file.

    Raises:
        CharmParseError: If the charm cannot be parsed
        OSError: If path cannot be accessed
    """
    path = Path(path)
    if path.is_dir():
        return read_charm_dir(path)
    return read_charm_archive(path)
