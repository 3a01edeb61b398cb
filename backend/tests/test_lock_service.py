"""
DocMeta Backend — Lock Service Tests
======================================

Runs the lock state machine against a real (in-memory SQLite) session.

What we test:
    ✅ First lock takes ownership
    ✅ Locking is idempotent: a second user gets the first owner back
    ✅ Unlock succeeds only for the owner; others get LockOwnershipError
    ✅ Unlocking an unlocked entity is rejected
    ✅ NotAuthenticated / AccessDenied / NotFound / MissingParameter paths
"""

import pytest

from docmeta.exceptions import (
    AccessDeniedError,
    LockOwnershipError,
    MissingParameterError,
    NotAuthenticatedError,
    NotFoundError,
)
from docmeta.repositories import EntityRepository
from docmeta.services.lock_service import LockService


async def _locker_id(db_session, entity_id):
    return await EntityRepository(db_session).get_locker_id(entity_id)


class TestLock:
    def setup_method(self):
        self.service = LockService()

    @pytest.mark.asyncio
    async def test_lock_unlocked_entity_takes_ownership(self, db_session, seed):
        owner = await self.service.lock(db_session, seed.order.id, seed.alice.id)

        assert owner.id == seed.alice.id
        assert owner.fullname == "Alice"
        assert await _locker_id(db_session, seed.order.id) == seed.alice.id

    @pytest.mark.asyncio
    async def test_second_lock_by_other_user_is_a_no_op(self, db_session, seed):
        await self.service.lock(db_session, seed.order.id, seed.alice.id)

        owner = await self.service.lock(db_session, seed.order.id, seed.bob.id)

        assert owner.id == seed.alice.id
        assert await _locker_id(db_session, seed.order.id) == seed.alice.id

    @pytest.mark.asyncio
    async def test_repeated_lock_by_owner_is_a_no_op(self, db_session, seed):
        first = await self.service.lock(db_session, seed.order.id, seed.bob.id)
        second = await self.service.lock(db_session, seed.order.id, seed.bob.id)
        assert first.id == second.id == seed.bob.id

    @pytest.mark.asyncio
    async def test_lock_requires_session_user(self, db_session, seed):
        with pytest.raises(NotAuthenticatedError):
            await self.service.lock(db_session, seed.order.id, None)

    @pytest.mark.asyncio
    async def test_lock_requires_edit_access(self, db_session, seed):
        with pytest.raises(AccessDeniedError):
            await self.service.lock(db_session, seed.order.id, seed.dave.id)
        assert await _locker_id(db_session, seed.order.id) is None

    @pytest.mark.asyncio
    async def test_lock_missing_entity(self, db_session, seed):
        with pytest.raises(NotFoundError):
            await self.service.lock(db_session, 9999, seed.alice.id)

    @pytest.mark.asyncio
    async def test_lock_without_id(self, db_session, seed):
        with pytest.raises(MissingParameterError):
            await self.service.lock(db_session, None, seed.alice.id)


class TestUnlock:
    def setup_method(self):
        self.service = LockService()

    @pytest.mark.asyncio
    async def test_owner_can_unlock(self, db_session, seed):
        await self.service.lock(db_session, seed.order.id, seed.alice.id)

        assert await self.service.unlock(db_session, seed.order.id, seed.alice.id) is True
        assert await _locker_id(db_session, seed.order.id) is None

    @pytest.mark.asyncio
    async def test_non_owner_unlock_is_rejected_and_state_kept(self, db_session, seed):
        await self.service.lock(db_session, seed.order.id, seed.alice.id)

        with pytest.raises(LockOwnershipError) as exc_info:
            await self.service.unlock(db_session, seed.order.id, seed.bob.id)

        assert exc_info.value.context["locker_id"] == seed.alice.id
        assert await _locker_id(db_session, seed.order.id) == seed.alice.id

    @pytest.mark.asyncio
    async def test_unlock_of_unlocked_entity_is_rejected(self, db_session, seed):
        with pytest.raises(LockOwnershipError):
            await self.service.unlock(db_session, seed.order.id, seed.alice.id)

    @pytest.mark.asyncio
    async def test_lock_can_be_retaken_after_unlock(self, db_session, seed):
        await self.service.lock(db_session, seed.order.id, seed.alice.id)
        await self.service.unlock(db_session, seed.order.id, seed.alice.id)

        owner = await self.service.lock(db_session, seed.order.id, seed.bob.id)

        assert owner.id == seed.bob.id

    @pytest.mark.asyncio
    async def test_unlock_requires_session_user(self, db_session, seed):
        with pytest.raises(NotAuthenticatedError):
            await self.service.unlock(db_session, seed.order.id, None)

    @pytest.mark.asyncio
    async def test_unlock_requires_edit_access(self, db_session, seed):
        await self.service.lock(db_session, seed.order.id, seed.alice.id)
        with pytest.raises(AccessDeniedError):
            await self.service.unlock(db_session, seed.order.id, seed.carol.id)
