"""
Pantry Lookup API — Application Package Initializer
=====================================================

What: Read-only reference data API (units, categories, staples) for the
      pantry application.

Architecture Note:
    ┌─────────────────────────────────────┐
    │        Routes (API Layer)           │  ← authenticate, status codes, headers
    ├─────────────────────────────────────┤
    │   Services (Backend Client, Lookup) │  ← credentials, queries, row mapping
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
