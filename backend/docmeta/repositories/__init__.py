"""
Data-access objects. Each one wraps the AsyncSession it is given and never
commits: the request-scoped session in docmeta.database owns the transaction.
"""

from docmeta.repositories.user_repository import UserRepository
from docmeta.repositories.repository_repository import RepositoryRepository
from docmeta.repositories.entity_repository import EntityRepository, PropertyRepository
from docmeta.repositories.audit_log_repository import AuditLogRepository

__all__ = [
    "AuditLogRepository",
    "EntityRepository",
    "PropertyRepository",
    "RepositoryRepository",
    "UserRepository",
]
