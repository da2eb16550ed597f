"""Project team roster query functions for TeamDash.

Roster writes are insert-if-missing so that re-running a kickoff never
duplicates members.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from teamdash.database.models.roster import MemberType, RosterEntry

logger = structlog.get_logger(__name__)


async def list_roster(session: AsyncSession, project_id: UUID) -> list[RosterEntry]:
    """List a project's roster, client first."""
    result = await session.execute(
        select(RosterEntry)
        .where(RosterEntry.project_id == project_id)
        .order_by(RosterEntry.member_type.asc(), RosterEntry.created_at.asc())
    )
    return list(result.scalars().all())


async def add_roster_entry(
    session: AsyncSession,
    project_id: UUID,
    member_id: UUID,
    member_type: MemberType,
    email: str,
    role: str,
    first_name: str = "",
    last_name: str = "",
    seniority: str | None = None,
    assignment_id: UUID | None = None,
) -> tuple[RosterEntry, bool]:
    """Add a member to a project's roster unless already present.

    Returns:
        Tuple of (entry, created). ``created`` is False when the member was
        already on the roster.
    """
    result = await session.execute(
        select(RosterEntry).where(
            RosterEntry.project_id == project_id,
            RosterEntry.member_id == member_id,
        )
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        return existing, False

    entry = RosterEntry(
        project_id=project_id,
        member_id=member_id,
        member_type=member_type,
        email=email,
        first_name=first_name,
        last_name=last_name,
        role=role,
        seniority=seniority,
        assignment_id=assignment_id,
    )
    session.add(entry)
    await session.flush()

    logger.info(
        "roster_member_added",
        project_id=str(project_id),
        member_id=str(member_id),
        member_type=member_type.value,
        role=role,
    )

    return entry, True
