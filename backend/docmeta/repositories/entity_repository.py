from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from docmeta.models.entity import Entity, Property


class EntityRepository:
    """
    Data access for entities.

    Soft-deleted rows (deleted_at set) are invisible unless a method says
    otherwise. Mutations return the number of rows they touched so callers
    can skip audit entries for no-op changes.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _live(self):
        return select(Entity).where(Entity.deleted_at.is_(None))

    async def find_by_id(
        self, entity_id: int, include_deleted: bool = False
    ) -> Optional[Entity]:
        query = select(Entity) if include_deleted else self._live()
        # populate_existing: bulk UPDATEs below bypass the identity map
        query = query.where(Entity.id == entity_id).execution_options(
            populate_existing=True
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def find_all(self, repository_id: Optional[int] = None) -> List[Entity]:
        query = self._live()
        if repository_id is not None:
            query = query.where(Entity.repository_id == repository_id)
        result = await self.session.execute(query.order_by(Entity.id))
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(
            select(func.count(Entity.id)).where(Entity.deleted_at.is_(None))
        )
        return result.scalar() or 0

    async def create(self, fields: Dict[str, Any]) -> Entity:
        entity = Entity(**fields)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def update(self, entity_id: int, fields: Dict[str, Any]) -> int:
        if not fields:
            return 0
        result = await self.session.execute(
            update(Entity)
            .where(Entity.id == entity_id, Entity.deleted_at.is_(None))
            .values(**fields)
        )
        return result.rowcount

    async def soft_delete(self, entity_id: int) -> int:
        result = await self.session.execute(
            update(Entity)
            .where(Entity.id == entity_id, Entity.deleted_at.is_(None))
            .values(deleted_at=datetime.now(timezone.utc))
        )
        return result.rowcount

    async def get_locker_id(self, entity_id: int) -> Optional[int]:
        entity = await self.find_by_id(entity_id)
        return entity.locker_id if entity else None

    async def set_locker_if_unlocked(self, entity_id: int, user_id: int) -> int:
        """Takes the lock only while nobody holds it; returns 1 on success."""
        result = await self.session.execute(
            update(Entity)
            .where(
                Entity.id == entity_id,
                Entity.deleted_at.is_(None),
                Entity.locker_id.is_(None),
            )
            .values(locker_id=user_id)
        )
        return result.rowcount

    async def clear_locker(self, entity_id: int) -> int:
        result = await self.session.execute(
            update(Entity)
            .where(Entity.id == entity_id, Entity.deleted_at.is_(None))
            .values(locker_id=None)
        )
        return result.rowcount


class PropertyRepository:
    """Data access for properties. Deletes here are physical."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_entity(self, entity_id: int) -> List[Property]:
        result = await self.session.execute(
            select(Property)
            .where(Property.entity_id == entity_id)
            .order_by(Property.priority, Property.id)
        )
        return list(result.scalars().all())

    async def create(self, fields: Dict[str, Any]) -> Property:
        prop = Property(**fields)
        self.session.add(prop)
        await self.session.flush()
        return prop

    async def delete_by_entity(self, entity_id: int) -> int:
        result = await self.session.execute(
            delete(Property).where(Property.entity_id == entity_id)
        )
        return result.rowcount
