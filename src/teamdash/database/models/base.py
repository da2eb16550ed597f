"""SQLAlchemy declarative base and common column mixins for TeamDash.

Defines the DeclarativeBase, a TimestampMixin providing id, created_at and
updated_at, and the JSON column type used for set-valued attributes.

Identifiers and timestamps are generated client side so that rows created
inside a unit of work are fully populated without a refresh round-trip, and
so the schema works unchanged on PostgreSQL and SQLite.

Example:
    >>> class MyModel(TimestampMixin, Base):
    ...     __tablename__ = "my_table"
    ...     name: Mapped[str] = mapped_column(Text, nullable=False)
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """SQLAlchemy 2.0 declarative base for all TeamDash models."""

    pass


class TimestampMixin:
    """Mixin providing id (UUID), created_at, and updated_at columns.

    List it before Base in the class hierarchy so the columns land in the
    model's table definition.

    Attributes:
        id: UUID primary key generated with uuid4.
        created_at: Row creation timestamp.
        updated_at: Timestamp refreshed on every ORM or Core UPDATE.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )
