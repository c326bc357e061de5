"""
SuiviTens Backend — Application Package Initializer
====================================================

What: Blood-pressure tracking API (measurements CRUD scoped to one user).
Who:  Imported by uvicorn (`suivitens.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services + Validation (Business)   │  ← ownership-scoped CRUD
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    The database handle is built by `create_app()` and injected into routes
    through `request.app.state`, so tests can swap in a SQLite file.
"""

__version__ = "1.0.0"
