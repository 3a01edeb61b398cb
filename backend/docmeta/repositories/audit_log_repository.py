from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docmeta.models.audit_log import AuditLog


class AuditLogRepository:
    """Append-only access to the audit trail."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        type: str,
        user_id: Optional[int],
        repository_id: Optional[int],
        module_id: Optional[int],
        entity_id: Optional[int],
    ) -> AuditLog:
        log = AuditLog(
            type=type,
            user_id=user_id,
            repository_id=repository_id,
            module_id=module_id,
            entity_id=entity_id,
        )
        self.session.add(log)
        await self.session.flush()
        return log

    async def find_by_entity(self, entity_id: int) -> List[AuditLog]:
        result = await self.session.execute(
            select(AuditLog)
            .where(AuditLog.entity_id == entity_id)
            .order_by(AuditLog.id)
        )
        return list(result.scalars().all())
