"""
DocMeta Backend — Pydantic Request/Response Schemas
=====================================================

What:  The API contract. Field names are snake_case in Python and camelCase
       on the wire (`repository_id` <-> `repositoryId`).
How:   Every schema inherits CamelModel, which sets the alias generator and
       accepts either spelling on input. FastAPI serializes response models
       by alias.
"""

import enum
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from docmeta.models.entity import EntityType


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Records
# ══════════════════════════════════════════════════════════════════════════


class UserOut(CamelModel):
    """Profile fields needed to show who holds a lock."""

    id: int
    fullname: str
    email: str


class EntityOut(CamelModel):
    id: int
    type: str
    name: str
    namespace: str
    description: Optional[str] = None
    creator_id: Optional[int] = None
    locker_id: Optional[int] = None
    repository_id: Optional[int] = None
    module_id: Optional[int] = None
    priority: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


class PropertyOut(CamelModel):
    id: int
    entity_id: int
    scope: str
    parent_id: Optional[int] = None
    priority: int
    name: str
    type: str
    rule: Optional[str] = None
    value: Optional[str] = None
    description: Optional[str] = None
    required: bool = False
    pos: int
    creator_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ══════════════════════════════════════════════════════════════════════════
# Request Bodies
# ══════════════════════════════════════════════════════════════════════════


class EntityCreate(CamelModel):
    """
    Body of POST /entity/create.

    creatorId and priority are not accepted here: the service stamps them
    from the session and the clock.
    """

    type: EntityType
    name: str = Field(min_length=1, max_length=256)
    namespace: str = Field(max_length=256)
    description: Optional[str] = None
    repository_id: int
    module_id: Optional[int] = None


class EntityUpdate(CamelModel):
    """
    Body of POST /entity/update: an id plus any subset of editable fields.

    Only fields present in the request are written (partial replacement).
    lockerId is deliberately absent; use /entity/lock and /entity/unlock.
    """

    id: int
    type: Optional[EntityType] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=256)
    namespace: Optional[str] = Field(default=None, max_length=256)
    description: Optional[str] = None
    repository_id: Optional[int] = None
    module_id: Optional[int] = None

    def changes(self) -> dict:
        """The fields the client actually sent, minus the id."""
        data = self.model_dump(exclude_unset=True, exclude={"id"})
        # NOT NULL columns: an explicit null means "leave unchanged"
        for key in ("type", "name", "namespace"):
            if key in data and data[key] is None:
                del data[key]
        if "type" in data:
            data["type"] = EntityType(data["type"]).value
        return data


class MoveOp(int, enum.Enum):
    MOVE = 1
    COPY = 2


class EntityMoveRequest(CamelModel):
    """Body of POST /entity/move: `{modId, entId, op, repositoryId?}`."""

    mod_id: int
    ent_id: int
    op: MoveOp = MoveOp.MOVE
    repository_id: Optional[int] = None


class EntityIdRequest(CamelModel):
    id: Optional[int] = None

    @field_validator("id", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if v == "":
            return None
        return v


# ══════════════════════════════════════════════════════════════════════════
# Response Envelopes — every success body is `{data: ...}`
# ══════════════════════════════════════════════════════════════════════════


class CountResponse(CamelModel):
    data: int


class EntityListResponse(CamelModel):
    data: List[EntityOut]


class EntityEnvelope(CamelModel):
    ent: Optional[EntityOut] = None


class EntityMutationResponse(CamelModel):
    data: EntityEnvelope


class OkFlag(CamelModel):
    is_ok: bool = True


class OkResponse(CamelModel):
    data: OkFlag = Field(default_factory=OkFlag)


class LockResponse(CamelModel):
    data: UserOut


class ErrorResponse(CamelModel):
    """
    Error body shared by every endpoint.

    Example:
        {"isOk": false, "errMsg": "No entity with id 7 was found", "requestId": "3f2a9c1d"}
    """

    is_ok: bool = False
    err_msg: str
    err_code: Optional[str] = None
    request_id: Optional[str] = None


class HealthResponse(CamelModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float
