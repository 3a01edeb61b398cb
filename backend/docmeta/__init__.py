"""
DocMeta Backend — Application Package
======================================

What: Metadata service for API documentation: entities, their properties,
      and the modules and repositories that own them.
Who:  Imported by uvicorn (`docmeta.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP shapes, session, status codes
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← locking, access, audit, trees
    ├─────────────────────────────────────┤
    │      Repositories (Data Access)     │  ← one DAO per table family
    ├─────────────────────────────────────┤
    │     Models & Schemas (Data)         │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
