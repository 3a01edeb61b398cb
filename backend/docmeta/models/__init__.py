"""
ORM models. Importing this package registers every table with Base.metadata,
which Alembic autogenerate and the test schema both rely on.
"""

from docmeta.models.user import User
from docmeta.models.repository import Module, Repository, repositories_members
from docmeta.models.entity import Entity, EntityType, Property, PropertyScope, RequestParamsType
from docmeta.models.audit_log import AuditLog, AuditLogType

__all__ = [
    "AuditLog",
    "AuditLogType",
    "Entity",
    "EntityType",
    "Module",
    "Property",
    "PropertyScope",
    "Repository",
    "RequestParamsType",
    "User",
    "repositories_members",
]
