"""Client model for TeamDash.

Clients own projects. The engine reads their contact details when it
builds the kickoff roster and invites the owner to the kickoff meeting.
"""

from __future__ import annotations

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from teamdash.database.models.base import Base, TimestampMixin


class ClientProfile(TimestampMixin, Base):
    """A client account that creates and owns projects.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        email: Contact email, used for kickoff invitations.
        first_name: Given name.
        last_name: Family name.
        company_name: Optional organisation name.
    """

    __tablename__ = "clients"

    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    last_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    company_name: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
