# Middleware package init
"""
DocMeta Backend — Middleware Package
======================================

Middleware Chain (order matters!):
    Request → [Session] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Session FIRST: decodes the signed cookie so handlers see request.session
    2. Request ID: correlation id for every log line of the request
    3. Logging: one access line per request, tagged with the request id

Starlette runs middleware in reverse order of registration; see create_app().
"""
