"""
IdeaNote Backend: Application Package Initializer
==================================================

What: Marks the `ideanote` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Editor, Transcoder,     │  ← Block ↔ note transforms,
    │   Codec, Note/File storage)         │    orchestration, validation
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    The editing block sequence lives only in the services layer; routes and
    the database only ever see the persisted note shape.
"""

__version__ = "1.0.0"
