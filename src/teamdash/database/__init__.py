"""Database layer for TeamDash.

This module handles database connections, session management, and provides
the SQLAlchemy async engine configuration (PostgreSQL via asyncpg in
production, SQLite via aiosqlite for tests and local tooling).

Public API:
    get_engine: Create an AsyncEngine from DatabaseConfig.
    get_session_factory: Create an async_sessionmaker from an engine.
    Base: SQLAlchemy declarative base for all models.
"""

from teamdash.database.connection import get_engine, get_session_factory
from teamdash.database.models import (
    Base,
    BookingStatus,
    CandidateProfile,
    ClientProfile,
    Project,
    ProjectStatus,
    ResourceAssignment,
    RosterEntry,
    TimestampMixin,
)

__all__ = [
    "get_engine",
    "get_session_factory",
    "Base",
    "TimestampMixin",
    "ClientProfile",
    "CandidateProfile",
    "Project",
    "ProjectStatus",
    "ResourceAssignment",
    "BookingStatus",
    "RosterEntry",
]
