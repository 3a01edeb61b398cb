"""
DocMeta Backend — Entity Lock Service
=======================================

What:  Advisory "who is editing this entity" lock, stored in entities.locker_id.
Why:   Editors check the lock before opening an entity; nothing in the
       database enforces it.

State machine per entity:

    Unlocked ──lock(u)──────────▶ LockedBy(u)
    LockedBy(u) ──lock(u')──────▶ LockedBy(u)       no-op, returns u
    LockedBy(u) ──unlock(u)─────▶ Unlocked
    LockedBy(u) ──unlock(u'≠u)──▶ LockedBy(u)       LockOwnershipError

Locking is idempotent: once anyone holds the lock, further lock calls return
the holder and change nothing. The write is `UPDATE ... WHERE locker_id IS
NULL`, so two first-time lockers racing each other cannot both win; the loser
re-reads and gets the winner back.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from docmeta.exceptions import (
    AccessDeniedError,
    LockOwnershipError,
    MissingParameterError,
    NotAuthenticatedError,
    NotFoundError,
)
from docmeta.models.entity import Entity
from docmeta.models.user import User
from docmeta.repositories import EntityRepository, UserRepository
from docmeta.services.access import AccessPolicy, AccessType, access_policy

logger = logging.getLogger(__name__)


class LockService:
    def __init__(self, policy: Optional[AccessPolicy] = None):
        self.policy = policy or access_policy

    async def _authorize(
        self, db: AsyncSession, entity_id: Optional[int], user_id: Optional[int]
    ) -> Entity:
        if user_id is None:
            raise NotAuthenticatedError()
        if entity_id is None:
            raise MissingParameterError("id")
        entity = await EntityRepository(db).find_by_id(entity_id)
        if entity is None:
            raise NotFoundError(resource="entity", resource_id=entity_id)
        if not await self.policy.can_user_access(db, AccessType.ENTITY_SET, user_id, entity_id):
            raise AccessDeniedError(context={"entity_id": entity_id, "user_id": user_id})
        return entity

    async def _owner(self, db: AsyncSession, locker_id: int) -> User:
        owner = await UserRepository(db).find_by_id(locker_id)
        if owner is None:
            raise NotFoundError(resource="user", resource_id=locker_id)
        return owner

    async def lock(
        self, db: AsyncSession, entity_id: Optional[int], user_id: Optional[int]
    ) -> User:
        """
        Take the edit lock on an entity, or report who already has it.

        Returns:
            The lock holder, which is `user_id` unless someone else got there first.

        Raises:
            NotAuthenticatedError: no session user
            AccessDeniedError:     user may not edit the entity
            NotFoundError:         entity missing or soft-deleted
        """
        entity = await self._authorize(db, entity_id, user_id)

        if entity.locker_id is not None:
            logger.info(
                "Entity %s already locked by user %s; lock request from %s ignored",
                entity_id, entity.locker_id, user_id,
            )
            return await self._owner(db, entity.locker_id)

        entities = EntityRepository(db)
        await entities.set_locker_if_unlocked(entity_id, user_id)
        locker_id = await entities.get_locker_id(entity_id)
        if locker_id is None:
            raise NotFoundError(resource="entity", resource_id=entity_id)

        logger.info("Entity %s locked by user %s", entity_id, locker_id)
        return await self._owner(db, locker_id)

    async def unlock(
        self, db: AsyncSession, entity_id: Optional[int], user_id: Optional[int]
    ) -> bool:
        """
        Release the edit lock. Only the holder may do this.

        Raises:
            NotAuthenticatedError, AccessDeniedError, NotFoundError: as for lock()
            LockOwnershipError: the lock is held by someone else, or by nobody
        """
        entity = await self._authorize(db, entity_id, user_id)

        if entity.locker_id != user_id:
            raise LockOwnershipError(entity_id=entity_id, locker_id=entity.locker_id)

        await EntityRepository(db).clear_locker(entity_id)
        logger.info("Entity %s unlocked by user %s", entity_id, user_id)
        return True


lock_service = LockService()
