"""
DocMeta Backend — Audit Log Model
===================================

Append-only trail of who created, updated or deleted which entity. Rows are
written by AuditService after a mutation actually changed something.
"""

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from docmeta.database import Base


class AuditLogType(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False)

    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    repository_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    module_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    entity_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_audit_logs_entity_id", "entity_id"),
    )

    def __repr__(self) -> str:
        return f"<AuditLog(type='{self.type}', entity_id={self.entity_id})>"
