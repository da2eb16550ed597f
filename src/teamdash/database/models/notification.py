"""Candidate notification model for TeamDash.

Notifications are the engine's outbox towards candidates: matching
opportunities, expiry of opportunities taken by someone else, kickoff
invitations and access revocations after a requirement change.
"""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import Enum, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from teamdash.database.models.base import Base, TimestampMixin


class NotificationType(enum.Enum):
    """What the notification is about."""

    opportunity = "opportunity"
    kickoff_invitation = "kickoff_invitation"
    access_revoked = "access_revoked"


class NotificationStatus(enum.Enum):
    """Delivery/response state of a notification.

    States:
        unread: Delivered, not acted on.
        read: Seen by the candidate.
        accepted: Candidate took the opportunity.
        declined: Candidate passed on the opportunity.
        expired: Opportunity no longer available.
    """

    unread = "unread"
    read = "read"
    accepted = "accepted"
    declined = "declined"
    expired = "expired"


# Statuses of an opportunity that can still be acted on.
OPEN_NOTIFICATION_STATUSES = frozenset({NotificationStatus.unread, NotificationStatus.read})


class CandidateNotification(TimestampMixin, Base):
    """A message addressed to a candidate.

    Attributes:
        candidate_id: Recipient.
        project_id: Project concerned.
        assignment_id: Slot concerned, for opportunities and revocations.
        event_id: Kickoff event, for invitations.
        type: Notification type.
        status: Current status.
        title: Short headline.
        description: Message body.
    """

    __tablename__ = "candidate_notifications"

    candidate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("candidates.id"),
        nullable=False,
        index=True,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("projects.id"), nullable=False)
    assignment_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    event_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType, name="notification_type"),
        nullable=False,
    )
    status: Mapped[NotificationStatus] = mapped_column(
        Enum(NotificationStatus, name="notification_status"),
        default=NotificationStatus.unread,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
