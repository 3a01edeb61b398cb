"""
DocMeta Backend — Repository and Module Models
================================================

What:  The containers that own entities. A repository has an owner, a
       visibility flag and a member list; modules group entities inside a
       repository.
Why:   The access policy reads these tables to decide who may view or edit
       an entity. Repository and module management endpoints live outside
       this service.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from docmeta.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Many-to-many: which users may edit a repository besides its owner
repositories_members = Table(
    "repositories_members",
    Base.metadata,
    Column("repository_id", Integer, ForeignKey("repositories.id"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id"), primary_key=True),
)


class Repository(Base):
    """
    A documentation repository.

    visibility=True means anyone, logged in or not, may read it. Writes
    always require ownership or membership.
    """

    __tablename__ = "repositories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    visibility: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Public repositories are readable without membership",
    )

    owner_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    def __repr__(self) -> str:
        return f"<Repository(id={self.id}, name='{self.name}')>"


class Module(Base):
    __tablename__ = "modules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    priority: Mapped[int] = mapped_column(BigInteger, nullable=False, default=1)

    repository_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("repositories.id"), nullable=False, index=True
    )
    creator_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    def __repr__(self) -> str:
        return f"<Module(id={self.id}, repository_id={self.repository_id})>"
