"""
Wire models for the charm store v4 API.

Field names follow the store's JSON (capitalised keys); Python attributes
are lower-case aliases.
"""
from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "IdResponse",
    "IdRevisionResponse",
    "HashResponse",
    "MetaAnyResponse",
    "ErrorResponse",
]


class _StoreModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class IdResponse(_StoreModel):
    """Response to the ``id`` meta endpoint."""
    id: str = Field(..., alias="Id")
    user: str = Field(default="", alias="User")
    series: str = Field(default="", alias="Series")
    name: str = Field(default="", alias="Name")
    revision: int = Field(default=-1, alias="Revision")


class IdRevisionResponse(_StoreModel):
    """Response to the ``id-revision`` meta endpoint."""
    revision: int = Field(..., alias="Revision")


class HashResponse(_StoreModel):
    """Response to the ``hash`` and ``hash256`` meta endpoints."""
    sum: str = Field(..., alias="Sum")


class MetaAnyResponse(_StoreModel):
    """
    Response to ``meta/any``.

    ``meta`` maps each included endpoint name to its raw JSON value.
    """
    id: str = Field(..., alias="Id")
    meta: Dict[str, Any] = Field(default_factory=dict, alias="Meta")


class ErrorResponse(_StoreModel):
    """JSON error body returned with non-2xx responses."""
    message: str = Field(default="", alias="Message")
    code: str = Field(default="", alias="Code")
