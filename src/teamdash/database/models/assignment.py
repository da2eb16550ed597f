"""Resource assignment model for TeamDash.

A resource assignment is one staffing slot on a project. It embeds the
staffing requirement (profession, seniority, languages, expertises) and
tracks the slot's booking lifecycle. Rows are never deleted: retired slots
move to ``completed`` with a reason, and a replacement slot links back to
the slot it replaces.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from teamdash.database.models.base import Base, JSONType, TimestampMixin


class BookingStatus(enum.Enum):
    """State machine for the booking lifecycle of a slot.

    States:
        draft: Configured by the client, booking not requested yet.
        searching: Open to matching candidates.
        accepted: A candidate holds the slot (automated slots land here directly).
        declined: Search closed without a taker; may be re-opened.
        completed: Retired, either at project end or after a requirement change.
    """

    draft = "draft"
    searching = "searching"
    accepted = "accepted"
    declined = "declined"
    completed = "completed"


class RetireReason(enum.Enum):
    """Why a slot was moved to ``completed``."""

    project_completed = "project_completed"
    requirement_changed = "requirement_changed"
    project_cancelled = "project_cancelled"


class ResourceAssignment(TimestampMixin, Base):
    """One staffing slot belonging to exactly one project.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        project_id: Owning project.
        profession: Required profession identifier.
        seniority: Required seniority tier.
        languages: Required language identifiers (subset semantics).
        expertises: Required expertise identifiers (subset semantics).
        is_automated: Slot is served by an automated (AI) resource.
        booking_status: Current booking state.
        candidate_id: Candidate holding the slot, set only when accepted/completed.
        retired_reason: Reason code once the slot is retired.
        retired_at: Retirement timestamp.
        replaces_id: Slot this one replaces after a requirement change.
        replaced_by_id: Replacement slot created when this one was retired.
    """

    __tablename__ = "resource_assignments"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id"),
        nullable=False,
        index=True,
    )
    profession: Mapped[str] = mapped_column(Text, nullable=False)
    seniority: Mapped[str] = mapped_column(Text, nullable=False)
    languages: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    expertises: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    is_automated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    booking_status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="booking_status"),
        default=BookingStatus.draft,
        nullable=False,
    )
    candidate_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("candidates.id"),
        nullable=True,
        index=True,
    )
    retired_reason: Mapped[RetireReason | None] = mapped_column(
        Enum(RetireReason, name="retire_reason"),
        nullable=True,
    )
    retired_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    replaces_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("resource_assignments.id"),
        nullable=True,
    )
    replaced_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("resource_assignments.id"),
        nullable=True,
    )

    @property
    def is_retired(self) -> bool:
        return self.booking_status == BookingStatus.completed
