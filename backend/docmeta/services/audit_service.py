"""
DocMeta Backend — Audit Service
=================================

Second step of every logged mutation: the caller performs the change, looks at
how many rows it touched, and only then calls record(). A zero-row outcome
writes nothing.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from docmeta.models.audit_log import AuditLog, AuditLogType
from docmeta.models.entity import Entity
from docmeta.repositories import AuditLogRepository

logger = logging.getLogger(__name__)


class AuditService:
    async def record(
        self,
        db: AsyncSession,
        type: AuditLogType,
        user_id: Optional[int],
        entity: Entity,
        rows_affected: int = 1,
    ) -> Optional[AuditLog]:
        if rows_affected == 0:
            logger.debug("Skipping %s audit for entity %s: no rows changed", type.value, entity.id)
            return None
        return await AuditLogRepository(db).create(
            type=type.value,
            user_id=user_id,
            repository_id=entity.repository_id,
            module_id=entity.module_id,
            entity_id=entity.id,
        )


audit_service = AuditService()
