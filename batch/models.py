from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

BASIC_TRANSFER = "basic"
HASH_ALGO = "sha256"

# Git LFS API media type
LFS_MEDIA_TYPE = "application/vnd.git-lfs+json"


# =============================================================================
# Request
# =============================================================================
class BatchRef(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str


class BatchRequestObject(BaseModel):
    model_config = ConfigDict(extra="ignore")

    oid: str = Field(..., min_length=1)
    size: int = Field(..., ge=0)


class BatchRequest(BaseModel):
    """
    Request body for POST /objects/batch

    `operation` stays a plain string so unsupported values reach the
    handler and get a specific message.
    """

    model_config = ConfigDict(extra="ignore")

    operation: str
    transfers: Optional[List[str]] = None
    ref: Optional[BatchRef] = None
    objects: List[BatchRequestObject] = Field(default_factory=list)
    hash_algo: Optional[str] = None


# =============================================================================
# Response
# =============================================================================
class ObjectAction(BaseModel):
    href: str
    header: Optional[Dict[str, str]] = None
    expires_in: int


class ObjectError(BaseModel):
    code: int
    message: str


class BatchResponseObject(BaseModel):
    """
    One entry per requested object.

    actions: {"upload"|"download": ObjectAction}
    error:   per-object failure (e.g. 404 on download)
    neither: already stored, nothing to do
    """

    oid: str
    size: int
    authenticated: bool = True
    actions: Optional[Dict[Literal["upload", "download"], ObjectAction]] = None
    error: Optional[ObjectError] = None


class BatchResponse(BaseModel):
    transfer: Literal["basic"] = BASIC_TRANSFER
    hash_algo: Literal["sha256"] = HASH_ALGO
    objects: List[BatchResponseObject] = Field(default_factory=list)

    def to_wire(self) -> dict:
        return self.model_dump(exclude_none=True)
