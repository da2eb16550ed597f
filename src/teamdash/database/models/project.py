"""Project model for TeamDash.

Defines the Project table and ProjectStatus enum. A project's status is
derived from its resource assignments by the status aggregator, except for
the explicit kickoff and administrative transitions.
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from teamdash.database.models.base import Base, TimestampMixin


class ProjectStatus(enum.Enum):
    """Lifecycle status for a project.

    States:
        paused: Nothing requested yet, no slots, or paused by the client.
        awaiting_team: Booking in progress or team ready, kickoff pending.
        live: Kicked off and fully staffed.
        completed: Closed by the client after delivery.
        archived: Kept for reference, no longer active.
        deleted: Soft-deleted; history stays queryable.
    """

    paused = "paused"
    awaiting_team = "awaiting_team"
    live = "live"
    completed = "completed"
    archived = "archived"
    deleted = "deleted"


# Set only by explicit administrative action; the aggregator never leaves them.
TERMINAL_STATUSES = frozenset(
    {ProjectStatus.completed, ProjectStatus.archived, ProjectStatus.deleted}
)


class Project(TimestampMixin, Base):
    """A client project that needs to be staffed.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        owner_id: Client who created the project.
        title: Project title.
        description: Free-form description.
        start_date: Planned start date.
        due_date: Optional planned end date.
        client_budget: Optional overall budget.
        status: Current lifecycle status.
        kickoff_confirmed: Set by a successful kickoff, cleared by a manual pause.
        manually_paused: Client paused the project explicitly.
        kicked_off_at: Time of the most recent successful kickoff guard.
        closed_at: Time the project entered a terminal status.
    """

    __tablename__ = "projects"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("clients.id"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    client_budget: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, name="project_status"),
        default=ProjectStatus.paused,
        nullable=False,
    )
    kickoff_confirmed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    manually_paused: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    kicked_off_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
