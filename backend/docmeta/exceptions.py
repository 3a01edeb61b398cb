"""
DocMeta Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for each error kind a handler can hit.
How:   Services raise them; the global handlers registered in main.py turn
       each one into an `{isOk: false, errMsg}` body with its HTTP status.

Exception Hierarchy:
    DocMetaError (base)
    ├── MissingParameterError   → 400 (required query/body field absent)
    ├── NotAuthenticatedError   → 401 (no session user)
    ├── AccessDeniedError       → 403 (access policy said no)
    ├── NotFoundError           → 404
    ├── LockOwnershipError      → 409 (unlock by someone who does not hold the lock)
    └── DatabaseError           → 500

Nothing here is retried. Access denial and missing login always carry the
same canonical message so clients can match on `errCode`.
"""

from typing import Any, Dict, Optional

ACCESS_DENY_MESSAGE = "You do not have access to this resource."
NOT_LOGIN_MESSAGE = (
    "You are not logged in or your session has expired. Please log in and try again."
)


class DocMetaError(Exception):
    """
    Base exception for all DocMeta application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
        err_code: Machine-readable code, returned as `errCode` when set
    """

    status_code: int = 500
    err_code: Optional[str] = None

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class MissingParameterError(DocMetaError):
    """Raised when a required query or body field is empty or absent."""

    status_code = 400

    def __init__(self, field: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["field"] = field
        super().__init__(message=f"Please provide the parameter '{field}'.", context=ctx)
        self.field = field


class NotAuthenticatedError(DocMetaError):
    status_code = 401
    err_code = "NOT_LOGIN"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message=NOT_LOGIN_MESSAGE, context=context)


class AccessDeniedError(DocMetaError):
    """
    Raised when the access policy rejects an action.

    The message never says which check failed; `context` records it for
    the server log.
    """

    status_code = 403
    err_code = "ACCESS_DENY"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message=ACCESS_DENY_MESSAGE, context=context)


class NotFoundError(DocMetaError):
    """
    Raised when a referenced record does not exist (or is soft-deleted).

    SQLAlchemy returns None for missing rows; services convert that into
    this exception so the handler can answer 404.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"No {resource} with id {resource_id} was found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class LockOwnershipError(DocMetaError):
    """
    Raised when someone other than the lock holder tries to unlock an entity.

    This is a business-rule rejection, not a permission failure: the caller
    may edit the entity, they just do not own its lock.
    """

    status_code = 409
    err_code = "NOT_LOCK_OWNER"

    def __init__(self, entity_id: int, locker_id: Optional[int] = None):
        super().__init__(
            message=(
                "You are not the user who locked this entity and cannot unlock it. "
                "Please refresh the page."
            ),
            context={"entity_id": entity_id, "locker_id": locker_id},
        )


class DatabaseError(DocMetaError):
    """
    Raised when a database operation fails unexpectedly.

    The client only ever sees the generic message; the original error type is
    kept in `context` for the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
