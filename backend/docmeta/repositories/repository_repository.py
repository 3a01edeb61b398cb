from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docmeta.models.repository import Module, Repository, repositories_members


class RepositoryRepository:
    """Lookups on documentation repositories, their members and modules."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, repository_id: int) -> Optional[Repository]:
        result = await self.session.execute(
            select(Repository).where(
                Repository.id == repository_id,
                Repository.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()

    async def is_member(self, repository_id: int, user_id: int) -> bool:
        result = await self.session.execute(
            select(repositories_members.c.user_id).where(
                repositories_members.c.repository_id == repository_id,
                repositories_members.c.user_id == user_id,
            )
        )
        return result.first() is not None

    async def find_module(self, module_id: int) -> Optional[Module]:
        result = await self.session.execute(
            select(Module).where(Module.id == module_id, Module.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()
