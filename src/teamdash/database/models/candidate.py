"""Candidate directory model for TeamDash.

Candidates are maintained by the onboarding and qualification flows; the
staffing engine only reads them to evaluate matches and to build rosters.
"""

from __future__ import annotations

import enum

from sqlalchemy import Enum, Text
from sqlalchemy.orm import Mapped, mapped_column

from teamdash.database.models.base import Base, JSONType, TimestampMixin


class AvailabilityStatus(enum.Enum):
    """Qualification and availability state of a candidate.

    States:
        onboarding: Still going through qualification, never matched.
        available: Qualified and looking for missions.
        on_hold: Qualified but temporarily not taking new missions.
        unavailable: Qualified but fully booked or inactive.
    """

    onboarding = "onboarding"
    available = "available"
    on_hold = "on_hold"
    unavailable = "unavailable"


class CandidateProfile(TimestampMixin, Base):
    """A candidate who can fulfil staffing slots.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        first_name: Given name.
        last_name: Family name.
        email: Contact email.
        profession: Profession identifier (for example ``backend-developer``).
        seniority: Seniority tier identifier (for example ``senior``).
        availability_status: Qualification/availability state.
        languages: Spoken language identifiers.
        expertises: Expertise identifiers.
    """

    __tablename__ = "candidates"

    first_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    last_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    profession: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    seniority: Mapped[str] = mapped_column(Text, nullable=False)
    availability_status: Mapped[AvailabilityStatus] = mapped_column(
        Enum(AvailabilityStatus, name="availability_status"),
        default=AvailabilityStatus.onboarding,
        nullable=False,
    )
    languages: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    expertises: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
