"""Project team roster model for TeamDash.

The roster is a denormalised snapshot of everyone taking part in a project
(the client plus the accepted candidates) written at kickoff. Assignments
stay the source of truth; the roster feeds collaboration scaffolding.
"""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import Enum, ForeignKey, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from teamdash.database.models.base import Base, TimestampMixin


class MemberType(enum.Enum):
    """Kind of roster member."""

    client = "client"
    resource = "resource"


class RosterEntry(TimestampMixin, Base):
    """A participant in a project's kickoff roster.

    Attributes:
        project_id: Project the roster belongs to.
        member_id: Client or candidate identifier.
        member_type: Whether the member is the client or a staffed resource.
        email: Contact email at kickoff time.
        first_name: Given name at kickoff time.
        last_name: Family name at kickoff time.
        role: ``owner`` for the client, the profession for resources.
        seniority: Seniority tier for resources.
        assignment_id: Slot the resource holds, if any.
    """

    __tablename__ = "project_team_roster"
    __table_args__ = (
        UniqueConstraint("project_id", "member_id", name="uq_roster_project_member"),
    )

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id"),
        nullable=False,
        index=True,
    )
    member_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    member_type: Mapped[MemberType] = mapped_column(
        Enum(MemberType, name="member_type"),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(Text, nullable=False)
    first_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    last_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    role: Mapped[str] = mapped_column(Text, nullable=False)
    seniority: Mapped[str | None] = mapped_column(Text, nullable=True)
    assignment_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
