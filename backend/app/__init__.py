"""
Blogging API — Application Package Initializer
================================================

Architecture Note:
    Layered like this:

    ┌─────────────────────────────────────┐
    │     Routes (API Layer)              │  ← HTTP: params, status codes, envelopes
    ├─────────────────────────────────────┤
    │     Post Repository (Queries)       │  ← list/search/filter/paginate, CRUD
    ├─────────────────────────────────────┤
    │     Post Rules (Domain)             │  ← validation, readTime, slug, excerpt
    ├─────────────────────────────────────┤
    │     Models & Schemas (Data)         │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │     Database (Persistence)          │  ← injected async engine/session handle
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
