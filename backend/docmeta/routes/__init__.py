# Routes package init
"""
DocMeta Backend — API Routes Package
======================================

Route Inventory:
    - entity.py:  /entity/*   (CRUD, move/copy, lock/unlock)
    - health.py:  GET /health (database connectivity)

Routes stay thin: read the request, call a service, wrap the result in
`{data: ...}`. Business rules live in docmeta.services.
"""
