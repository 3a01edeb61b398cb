# Services package init
"""
DocMeta Backend — Services Layer
==================================

What:  Business rules between the routes (HTTP) and the repositories (SQL).
How:   Services take the request's AsyncSession per call and raise
       DocMetaError subclasses; routes only wrap results in `{data: ...}`.

Service Inventory:
    - access.AccessPolicy:        who may read/edit a repository or entity
    - audit_service.AuditService: writes audit rows after non-empty mutations
    - entity_service.EntityService: count, list, get, create, update, move/copy, remove
    - lock_service.LockService:   advisory edit locks
    - tree:                       property tree builder and extended-literal JSON
"""
