"""
DocMeta Backend — Access Policy
=================================

What:  Answers "may user U do X to target T?" for the entity endpoints.
How:   Reads repository ownership, membership and visibility.

    REPOSITORY_GET  target = repository id  → public, or owner, or member
    REPOSITORY_SET  target = repository id  → owner or member
    ENTITY_SET      target = entity id      → REPOSITORY_SET on the entity's repository

An anonymous caller (user_id None) can only ever pass REPOSITORY_GET on a
public repository. Unknown targets are denied rather than reported missing,
so the policy never leaks which ids exist.
"""

import enum
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from docmeta.repositories import EntityRepository, RepositoryRepository

logger = logging.getLogger(__name__)


class AccessType(str, enum.Enum):
    REPOSITORY_GET = "repository_get"
    REPOSITORY_SET = "repository_set"
    ENTITY_SET = "entity_set"


class AccessPolicy:
    """Stateless; every check takes the request's session."""

    async def can_user_access(
        self,
        db: AsyncSession,
        access_type: AccessType,
        user_id: Optional[int],
        target_id: Optional[int],
    ) -> bool:
        if target_id is None:
            return False

        if access_type == AccessType.ENTITY_SET:
            if user_id is None:
                return False
            entity = await EntityRepository(db).find_by_id(target_id)
            if entity is None or entity.repository_id is None:
                return False
            return await self._can_edit_repository(db, user_id, entity.repository_id)

        if access_type == AccessType.REPOSITORY_SET:
            if user_id is None:
                return False
            return await self._can_edit_repository(db, user_id, target_id)

        if access_type == AccessType.REPOSITORY_GET:
            repository = await RepositoryRepository(db).find_by_id(target_id)
            if repository is None:
                return False
            if repository.visibility:
                return True
            if user_id is None:
                return False
            return await self._can_edit_repository(db, user_id, target_id)

        return False

    async def can_user_move_entity(
        self,
        db: AsyncSession,
        user_id: Optional[int],
        entity_id: int,
        repository_id: Optional[int],
        module_id: int,
    ) -> bool:
        """
        Moving or copying needs edit rights on the entity, edit rights on the
        destination repository, and a destination module inside that repository.
        """
        if not await self.can_user_access(db, AccessType.ENTITY_SET, user_id, entity_id):
            return False
        if not await self.can_user_access(db, AccessType.REPOSITORY_SET, user_id, repository_id):
            return False
        module = await RepositoryRepository(db).find_module(module_id)
        if module is None or module.repository_id != repository_id:
            logger.info(
                "Move of entity %s rejected: module %s is not in repository %s",
                entity_id, module_id, repository_id,
            )
            return False
        return True

    async def _can_edit_repository(
        self, db: AsyncSession, user_id: int, repository_id: int
    ) -> bool:
        repositories = RepositoryRepository(db)
        repository = await repositories.find_by_id(repository_id)
        if repository is None:
            return False
        if repository.owner_id == user_id:
            return True
        return await repositories.is_member(repository_id, user_id)


access_policy = AccessPolicy()
