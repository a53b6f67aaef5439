"""
Profilebook Backend — Application Package
==========================================

What: Backend of a small social profile site: registration and login,
      profile details, profile and background pictures, posts with an
      optional image, standalone images, and a news search proxy.

Layers:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, file cleanup scheduling
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← profiles, posts, storage, news
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
