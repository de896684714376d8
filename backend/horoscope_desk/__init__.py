"""
Horoscope Desk Backend: Application Package
============================================

What:  Internal web service for a matchmaking office. Stores profiles,
       records which horoscopes and personal details were shared with whom,
       and tracks follow-ups.
Who:   Imported by uvicorn (`horoscope_desk.main:app`), Alembic and pytest.

Architecture Note:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, session gate
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← SQL call sites, validation
    ├─────────────────────────────────────┤
    │        Database Gateway             │  ← one execute(), two backends
    ├─────────────────────────────────────┤
    │   MySQL server  |  SQLite file      │  ← chosen once at startup
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
