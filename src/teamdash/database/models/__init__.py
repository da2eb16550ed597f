"""SQLAlchemy ORM models for TeamDash.

This module defines the schema: clients, candidates, projects, resource
assignments, the kickoff roster, collaboration scaffolding, kickoff events
and candidate notifications.

All models use SQLAlchemy 2.0 declarative style with Mapped[] type annotations.
"""

from teamdash.database.models.assignment import BookingStatus, ResourceAssignment, RetireReason
from teamdash.database.models.base import Base, JSONType, TimestampMixin
from teamdash.database.models.candidate import AvailabilityStatus, CandidateProfile
from teamdash.database.models.client import ClientProfile
from teamdash.database.models.collaboration import (
    BoardCard,
    BoardColumn,
    StorageFolder,
    TaskBoard,
)
from teamdash.database.models.kickoff import EventAttendee, KickoffEvent
from teamdash.database.models.notification import (
    OPEN_NOTIFICATION_STATUSES,
    CandidateNotification,
    NotificationStatus,
    NotificationType,
)
from teamdash.database.models.project import TERMINAL_STATUSES, Project, ProjectStatus
from teamdash.database.models.roster import MemberType, RosterEntry

__all__ = [
    "Base",
    "JSONType",
    "TimestampMixin",
    "ClientProfile",
    "CandidateProfile",
    "AvailabilityStatus",
    "Project",
    "ProjectStatus",
    "TERMINAL_STATUSES",
    "ResourceAssignment",
    "BookingStatus",
    "RetireReason",
    "RosterEntry",
    "MemberType",
    "TaskBoard",
    "BoardColumn",
    "BoardCard",
    "StorageFolder",
    "KickoffEvent",
    "EventAttendee",
    "CandidateNotification",
    "NotificationType",
    "NotificationStatus",
    "OPEN_NOTIFICATION_STATUSES",
]
