"""
DocMeta Backend — User Model
==============================

Users are created and authenticated elsewhere; this service only reads them
to stamp creators and to render who holds an entity lock.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from docmeta.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    fullname: Mapped[str] = mapped_column(String(32), nullable=False)

    email: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        unique=True,
        comment="Login identity; unique across users",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
