"""
DocMeta Backend — Entity and Property Models
==============================================

What:  ORM models for documented data structures (`entities`) and their
       fields (`properties`).

Table Design Rationale:
    - locker_id: the advisory edit lock. NULL means unlocked; otherwise the
      id of the single user currently editing.
    - deleted_at: soft delete. Entities are never physically removed, so audit
      rows keep pointing at something. Properties ARE physically removed when
      their entity is soft-deleted.
    - priority: millisecond timestamp stamped at creation, used as the default
      sort key by clients.
    - properties.parent_id: nesting inside one (entity, scope) forest. NULL or
      -1 marks a root.
"""

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from docmeta.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EntityType(str, enum.Enum):
    STRUCT = "struct"
    EXCEPTION = "exception"
    UNION = "union"


class PropertyScope(str, enum.Enum):
    REQUEST = "request"
    RESPONSE = "response"


class RequestParamsType(int, enum.Enum):
    """Where a request property travels."""

    HEADERS = 1
    QUERY_PARAMS = 2
    BODY_PARAMS = 3


class Entity(Base):
    """
    One documented data structure.

    Lifecycle:
        1. Created with creator_id from the session and priority = now (ms)
        2. Edited through partial updates; locked/unlocked via locker_id only
        3. Soft-deleted (deleted_at set); its properties are hard-deleted
    """

    __tablename__ = "entities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="struct, exception or union",
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    namespace: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    creator_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )

    # ── Advisory Lock ─────────────────────────────────────────────────────
    # NULL = unlocked. Only LockService writes this column.
    locker_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=True,
        default=None,
        comment="User currently editing this entity; NULL when unlocked",
    )

    repository_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("repositories.id"), nullable=True
    )
    module_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("modules.id"), nullable=True
    )

    priority: Mapped[int] = mapped_column(BigInteger, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    __table_args__ = (
        CheckConstraint(
            "type IN ('struct', 'exception', 'union')", name="ck_entities_type"
        ),
        Index("idx_entities_repository_id", "repository_id"),
        Index("idx_entities_module_id", "module_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Entity(id={self.id}, name='{self.name}', "
            f"locker_id={self.locker_id})>"
        )


class Property(Base):
    """A field of an entity, possibly nested under another property."""

    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    entity_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("entities.id"), nullable=False
    )
    scope: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=PropertyScope.RESPONSE.value,
        comment="request or response",
    )
    parent_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        default=-1,
        comment="Parent property id; NULL or -1 for roots",
    )
    priority: Mapped[int] = mapped_column(BigInteger, nullable=False, default=1)

    # ── Type-specific fields ──────────────────────────────────────────────
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="String",
        comment="String, Number, Boolean, Object, Array, Function, RegExp or Null",
    )
    rule: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    pos: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=RequestParamsType.QUERY_PARAMS.value,
    )

    creator_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        CheckConstraint("scope IN ('request', 'response')", name="ck_properties_scope"),
        Index("idx_properties_entity_id", "entity_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Property(id={self.id}, entity_id={self.entity_id}, "
            f"scope='{self.scope}', parent_id={self.parent_id})>"
        )
