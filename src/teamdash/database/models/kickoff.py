"""Kickoff event models for TeamDash.

Each project gets at most one kickoff event. Every roster member is
registered as a required attendee.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from teamdash.database.models.base import Base, TimestampMixin


class KickoffEvent(TimestampMixin, Base):
    """The kickoff meeting of a project.

    Attributes:
        project_id: Project being kicked off (unique).
        title: Event title.
        description: Event description including the meeting link.
        start_at: Meeting start.
        end_at: Meeting end.
        meeting_url: Generated video meeting link.
        created_by: Client who organised the kickoff.
    """

    __tablename__ = "kickoff_events"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id"),
        nullable=False,
        unique=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    meeting_url: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[uuid.UUID] = mapped_column(ForeignKey("clients.id"), nullable=False)


class EventAttendee(TimestampMixin, Base):
    """An invitee of a kickoff event."""

    __tablename__ = "event_attendees"
    __table_args__ = (
        UniqueConstraint("event_id", "member_id", name="uq_event_attendee_member"),
    )

    event_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("kickoff_events.id"),
        nullable=False,
        index=True,
    )
    member_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    required: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    response_status: Mapped[str] = mapped_column(Text, default="pending", nullable=False)
