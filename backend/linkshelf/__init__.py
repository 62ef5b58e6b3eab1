"""
LinkShelf Backend — Application Package Initializer
===================================================

What: Marks the `linkshelf` directory as a Python package.
Who:  Imported by uvicorn (`linkshelf.main:app`), Alembic, pytest and the
      client library (`linkshelf.client`).

Architecture Note:
    The backend is layered the same way top to bottom:

    ┌─────────────────────────────────────┐
    │     Routes (REST API Layer)         │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (auth) / Dependencies     │  ← identity, backend injection
    ├─────────────────────────────────────┤
    │  Backends (mock | SQL)              │  ← one CRUD contract, two stores
    ├─────────────────────────────────────┤
    │  Schemas (Pydantic) / Models (ORM)  │  ← wire shapes / relational rows
    └─────────────────────────────────────┘

    The client package (`linkshelf.client`) sits outside this stack: it
    talks to the REST layer over HTTP and keeps reactive stores in sync.
"""

__version__ = "1.0.0"
