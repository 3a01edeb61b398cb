"""
DocMeta Backend — Entity Service (Business Logic)
===================================================

What:  Everything the /entity routes do apart from locking: count, list, get
       with property trees, create, update, move/copy and remove.
How:   Each mutating method runs "mutate → inspect row count → audit" as
       explicit steps. All of it happens on the request's session, so a
       failure anywhere rolls back the entity change, the property cascade
       and the audit row together.

Design Decision:
    Stateless singleton, like the other services: dependencies (session,
    policy) come in per call or at construction, which keeps the tests free
    to pass a mock session or a fake policy.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from docmeta.exceptions import (
    AccessDeniedError,
    DatabaseError,
    MissingParameterError,
    NotAuthenticatedError,
    NotFoundError,
)
from docmeta.models.audit_log import AuditLogType
from docmeta.models.entity import Entity, Property, PropertyScope
from docmeta.repositories import EntityRepository, PropertyRepository
from docmeta.schemas.entity import (
    EntityCreate,
    EntityEnvelope,
    EntityMoveRequest,
    EntityOut,
    EntityUpdate,
    MoveOp,
    PropertyOut,
)
from docmeta.services.access import AccessPolicy, AccessType, access_policy
from docmeta.services.audit_service import AuditService, audit_service
from docmeta.services.tree import (
    FunctionLiteral,
    RegExpLiteral,
    array_to_tree,
    flatten_tree,
)

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def parse_entity_id(raw: Union[str, int, None], field: str = "id") -> int:
    """Query-string ids arrive as text; empty means the parameter is missing."""
    if raw is None or raw == "":
        raise MissingParameterError(field)
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise NotFoundError(resource="entity", resource_id=raw)


def property_to_node(prop: Property) -> Dict[str, Any]:
    """
    Render a property row as a tree node.

    Function and RegExp values are wrapped so the extended-literal writer
    emits them as tokens rather than plain strings.
    """
    node = PropertyOut.model_validate(prop).model_dump(by_alias=True)
    if prop.value is not None:
        if prop.type == "RegExp":
            node["value"] = RegExpLiteral.from_text(prop.value)
        elif prop.type == "Function":
            node["value"] = FunctionLiteral(source=prop.value)
    return node


class EntityService:
    def __init__(
        self,
        policy: Optional[AccessPolicy] = None,
        audit: Optional[AuditService] = None,
    ):
        self.policy = policy or access_policy
        self.audit = audit or audit_service

    # ── Reads ─────────────────────────────────────────────────────────────

    async def count(self, db: AsyncSession) -> int:
        return await EntityRepository(db).count()

    async def list_entities(
        self, db: AsyncSession, repository_id: Optional[int] = None
    ) -> List[EntityOut]:
        entities = await EntityRepository(db).find_all(repository_id=repository_id)
        return [EntityOut.model_validate(ent) for ent in entities]

    async def get_entity(
        self,
        db: AsyncSession,
        entity_id: Union[str, int, None],
        user_id: Optional[int],
    ) -> Dict[str, Any]:
        """
        Fetch one entity with its properties, flat and as trees.

        Returns a plain dict meant for stringify_with_extended_literals:
            entity fields + "properties" (flat, every scope)
                          + "requestProperties" / "responseProperties" (nested)

        Raises:
            MissingParameterError: id empty or absent
            NotFoundError:         no live entity with that id
            AccessDeniedError:     the entity's repository is not readable by user_id
        """
        ent_id = parse_entity_id(entity_id)
        entity = await EntityRepository(db).find_by_id(ent_id)
        if entity is None:
            raise NotFoundError(resource="entity", resource_id=ent_id)

        if not await self.policy.can_user_access(
            db, AccessType.REPOSITORY_GET, user_id, entity.repository_id
        ):
            raise AccessDeniedError(context={"entity_id": ent_id, "user_id": user_id})

        ent_json = EntityOut.model_validate(entity).model_dump(by_alias=True)

        properties = [
            property_to_node(p) for p in await PropertyRepository(db).find_by_entity(ent_id)
        ]
        ent_json["properties"] = properties
        for scope in PropertyScope:
            scoped = [p for p in properties if p["scope"] == scope.value]
            ent_json[f"{scope.value}Properties"] = array_to_tree(scoped)["children"]

        return ent_json

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create_entity(
        self, db: AsyncSession, payload: EntityCreate, user_id: Optional[int]
    ) -> EntityEnvelope:
        if user_id is None:
            raise NotAuthenticatedError()

        fields = payload.model_dump()
        fields["type"] = payload.type.value
        fields["creator_id"] = user_id
        fields["priority"] = now_ms()

        try:
            entity = await EntityRepository(db).create(fields)
            await self.audit.record(db, AuditLogType.CREATE, user_id, entity)
        except SQLAlchemyError as e:
            logger.error("Entity create failed: %s", str(e), exc_info=True)
            raise DatabaseError(context={"original_error": type(e).__name__})
        logger.info("Entity %s created by user %s", entity.id, user_id)
        return EntityEnvelope(ent=EntityOut.model_validate(entity))

    async def update_entity(
        self, db: AsyncSession, payload: EntityUpdate, user_id: Optional[int]
    ) -> EntityEnvelope:
        """
        Partial update; audited only when a row actually changed.

        Changing repositoryId or moduleId relocates the entity, so it needs
        the same rights as /entity/move on the resulting destination.
        """
        if user_id is None:
            raise NotAuthenticatedError()
        if not await self.policy.can_user_access(db, AccessType.ENTITY_SET, user_id, payload.id):
            raise AccessDeniedError(context={"entity_id": payload.id, "user_id": user_id})

        entities = EntityRepository(db)
        changes = payload.changes()
        if "repository_id" in changes or "module_id" in changes:
            current = await entities.find_by_id(payload.id)
            if current is None:
                raise NotFoundError(resource="entity", resource_id=payload.id)
            repository_id = changes.get("repository_id", current.repository_id)
            module_id = changes.get("module_id", current.module_id)
            if not await self.policy.can_user_move_entity(
                db, user_id, payload.id, repository_id, module_id
            ):
                raise AccessDeniedError(
                    context={"entity_id": payload.id, "repository_id": repository_id}
                )

        rows = await entities.update(payload.id, changes)
        entity = await entities.find_by_id(payload.id)

        if entity is not None:
            await self.audit.record(db, AuditLogType.UPDATE, user_id, entity, rows_affected=rows)
        logger.info("Entity %s updated by user %s (%d rows)", payload.id, user_id, rows)
        return EntityEnvelope(ent=EntityOut.model_validate(entity) if entity else None)

    async def move_entity(
        self, db: AsyncSession, payload: EntityMoveRequest, user_id: Optional[int]
    ) -> bool:
        """
        Relocate (op=1) or copy (op=2) an entity into another module.

        The destination repository defaults to the entity's current one.
        A copy gets a new id, the caller as creator, and a copy of every
        property with parent links remapped to the new rows.
        """
        if user_id is None:
            raise NotAuthenticatedError()

        entities = EntityRepository(db)
        entity = await entities.find_by_id(payload.ent_id)
        if entity is None:
            raise NotFoundError(resource="entity", resource_id=payload.ent_id)

        repository_id = payload.repository_id or entity.repository_id
        if not await self.policy.can_user_move_entity(
            db, user_id, payload.ent_id, repository_id, payload.mod_id
        ):
            raise AccessDeniedError(
                context={"entity_id": payload.ent_id, "repository_id": repository_id}
            )

        if payload.op == MoveOp.COPY:
            await self._copy_entity(db, entity, repository_id, payload.mod_id, user_id)
        else:
            await entities.update(
                entity.id, {"repository_id": repository_id, "module_id": payload.mod_id}
            )
            logger.info(
                "Entity %s moved to repository %s module %s by user %s",
                entity.id, repository_id, payload.mod_id, user_id,
            )
        return True

    async def _copy_entity(
        self,
        db: AsyncSession,
        source: Entity,
        repository_id: Optional[int],
        module_id: int,
        user_id: int,
    ) -> Entity:
        copy = await EntityRepository(db).create({
            "type": source.type,
            "name": f"{source.name}_copy",
            "namespace": source.namespace,
            "description": source.description,
            "repository_id": repository_id,
            "module_id": module_id,
            "creator_id": user_id,
            "priority": now_ms(),
        })

        properties = PropertyRepository(db)
        rows = await properties.find_by_entity(source.id)
        nodes = [{"id": p.id, "parentId": p.parent_id, "row": p} for p in rows]

        # Pre-order guarantees a parent is inserted before its children
        id_map: Dict[int, int] = {}
        for node in flatten_tree(array_to_tree(nodes)):
            row: Property = node["row"]
            parent_id = id_map.get(row.parent_id, -1) if row.parent_id is not None else -1
            created = await properties.create({
                "entity_id": copy.id,
                "scope": row.scope,
                "parent_id": parent_id,
                "priority": row.priority,
                "name": row.name,
                "type": row.type,
                "rule": row.rule,
                "value": row.value,
                "description": row.description,
                "required": row.required,
                "pos": row.pos,
                "creator_id": user_id,
            })
            id_map[row.id] = created.id

        await self.audit.record(db, AuditLogType.CREATE, user_id, copy)
        logger.info(
            "Entity %s copied to %s (%d properties) by user %s",
            source.id, copy.id, len(id_map), user_id,
        )
        return copy

    async def remove_entity(
        self,
        db: AsyncSession,
        entity_id: Union[str, int, None],
        user_id: Optional[int],
    ) -> int:
        """
        Soft-delete an entity and hard-delete all of its properties.

        Returns the number of entity rows soft-deleted (0 or 1). The delete
        audit entry is written only when that number is non-zero.
        """
        ent_id = parse_entity_id(entity_id)
        if not await self.policy.can_user_access(db, AccessType.ENTITY_SET, user_id, ent_id):
            raise AccessDeniedError(context={"entity_id": ent_id, "user_id": user_id})

        entities = EntityRepository(db)
        try:
            rows = await entities.soft_delete(ent_id)
            removed_properties = await PropertyRepository(db).delete_by_entity(ent_id)

            if rows:
                entity = await entities.find_by_id(ent_id, include_deleted=True)
                await self.audit.record(
                    db, AuditLogType.DELETE, user_id, entity, rows_affected=rows
                )
        except SQLAlchemyError as e:
            # The request session rolls back the soft delete and the cascade together
            logger.error("Entity %s remove failed: %s", ent_id, str(e), exc_info=True)
            raise DatabaseError(context={"entity_id": ent_id, "original_error": type(e).__name__})
        logger.info(
            "Entity %s removed by user %s (%d rows, %d properties)",
            ent_id, user_id, rows, removed_properties,
        )
        return rows


entity_service = EntityService()
