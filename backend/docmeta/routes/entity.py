"""
DocMeta Backend — Entity Route Handlers
=========================================

What:  The /entity/* endpoints: count, list, get, create, update, move,
       remove, lock and unlock.
How:   Each handler pulls the session user and the request's DB session,
       calls one service method and wraps the result as `{data: ...}`.
       Failures are raised as DocMetaError subclasses and rendered by the
       global handlers in main.py.

Route Inventory:
    GET  /entity/count                      → {data: int}
    GET  /entity/list?repositoryId=         → {data: [Entity]}
    GET  /entity/get?id=                    → {data: Entity + property trees}
    POST /entity/create     (login)         → {data: {ent}}
    POST /entity/update     (login, edit)   → {data: {ent}}
    POST /entity/move       (login, move)   → {data: {isOk: true}}
    GET  /entity/remove?id= (edit)          → {data: rowsAffected}
    POST /entity/lock       (login, edit)   → {data: User}
    POST /entity/unlock     (login, edit)   → {data: {isOk: true}}
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from docmeta.database import get_db_session
from docmeta.schemas.entity import (
    CountResponse,
    EntityCreate,
    EntityIdRequest,
    EntityListResponse,
    EntityMoveRequest,
    EntityMutationResponse,
    EntityUpdate,
    ErrorResponse,
    LockResponse,
    OkResponse,
    UserOut,
)
from docmeta.services.entity_service import entity_service
from docmeta.services.lock_service import lock_service
from docmeta.services.tree import stringify_with_extended_literals
from docmeta.session import get_session_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/entity", tags=["Entities"])

_ERRORS = {
    400: {"description": "Missing parameter", "model": ErrorResponse},
    401: {"description": "Not logged in", "model": ErrorResponse},
    403: {"description": "Access denied", "model": ErrorResponse},
    404: {"description": "Entity not found", "model": ErrorResponse},
}


@router.get("/count", response_model=CountResponse, summary="Count live entities")
async def count_entities(db: AsyncSession = Depends(get_db_session)) -> CountResponse:
    return CountResponse(data=await entity_service.count(db))


@router.get("/list", response_model=EntityListResponse, summary="List entities")
async def list_entities(
    repository_id: Optional[str] = Query(default=None, alias="repositoryId"),
    db: AsyncSession = Depends(get_db_session),
) -> EntityListResponse:
    """
    Lists live entities, restricted to one repository when repositoryId is given.

    Repository ids are integers, so a non-numeric repositoryId matches nothing.
    """
    repo_filter = None
    if repository_id:
        try:
            repo_filter = int(repository_id)
        except ValueError:
            return EntityListResponse(data=[])
    return EntityListResponse(
        data=await entity_service.list_entities(db, repository_id=repo_filter)
    )


@router.get(
    "/get",
    responses={**_ERRORS, 200: {"description": "Entity with property trees"}},
    summary="Get one entity with its properties",
)
async def get_entity(
    id: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
    user_id: Optional[int] = Depends(get_session_user_id),
) -> Response:
    """
    Returns the entity, its flat property list, and the request/response
    property trees.

    The body is written by the extended-literal serializer, so RegExp and
    Function property values arrive as marker tokens rather than plain strings.
    """
    ent_json = await entity_service.get_entity(db, id, user_id)
    return Response(
        content=stringify_with_extended_literals({"data": ent_json}),
        media_type="application/json",
    )


@router.post(
    "/create",
    response_model=EntityMutationResponse,
    responses=_ERRORS,
    summary="Create an entity",
)
async def create_entity(
    payload: EntityCreate,
    db: AsyncSession = Depends(get_db_session),
    user_id: Optional[int] = Depends(get_session_user_id),
) -> EntityMutationResponse:
    return EntityMutationResponse(
        data=await entity_service.create_entity(db, payload, user_id)
    )


@router.post(
    "/update",
    response_model=EntityMutationResponse,
    responses=_ERRORS,
    summary="Update some or all fields of an entity",
)
async def update_entity(
    payload: EntityUpdate,
    db: AsyncSession = Depends(get_db_session),
    user_id: Optional[int] = Depends(get_session_user_id),
) -> EntityMutationResponse:
    return EntityMutationResponse(
        data=await entity_service.update_entity(db, payload, user_id)
    )


@router.post(
    "/move",
    response_model=OkResponse,
    responses=_ERRORS,
    summary="Move (op=1) or copy (op=2) an entity to another module",
)
async def move_entity(
    payload: EntityMoveRequest,
    db: AsyncSession = Depends(get_db_session),
    user_id: Optional[int] = Depends(get_session_user_id),
) -> OkResponse:
    await entity_service.move_entity(db, payload, user_id)
    return OkResponse()


@router.get(
    "/remove",
    response_model=CountResponse,
    responses=_ERRORS,
    summary="Soft-delete an entity and delete its properties",
)
async def remove_entity(
    id: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
    user_id: Optional[int] = Depends(get_session_user_id),
) -> CountResponse:
    return CountResponse(data=await entity_service.remove_entity(db, id, user_id))


@router.post(
    "/lock",
    response_model=LockResponse,
    responses=_ERRORS,
    summary="Lock an entity for editing",
)
async def lock_entity(
    payload: EntityIdRequest,
    db: AsyncSession = Depends(get_db_session),
    user_id: Optional[int] = Depends(get_session_user_id),
) -> LockResponse:
    """
    Takes the edit lock, or returns the current holder if someone already has
    it. Repeated calls are safe no-ops.
    """
    owner = await lock_service.lock(db, payload.id, user_id)
    return LockResponse(data=UserOut.model_validate(owner))


@router.post(
    "/unlock",
    response_model=OkResponse,
    responses={**_ERRORS, 409: {"description": "Caller does not hold the lock", "model": ErrorResponse}},
    summary="Release an entity lock",
)
async def unlock_entity(
    payload: EntityIdRequest,
    db: AsyncSession = Depends(get_db_session),
    user_id: Optional[int] = Depends(get_session_user_id),
) -> OkResponse:
    await lock_service.unlock(db, payload.id, user_id)
    return OkResponse()
