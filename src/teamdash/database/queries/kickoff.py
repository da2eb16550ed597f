"""Kickoff event query functions for TeamDash."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from teamdash.database.models.kickoff import EventAttendee, KickoffEvent

logger = structlog.get_logger(__name__)


async def get_kickoff_event(session: AsyncSession, project_id: UUID) -> KickoffEvent | None:
    """Return the kickoff event of a project, if one was created."""
    result = await session.execute(
        select(KickoffEvent).where(KickoffEvent.project_id == project_id)
    )
    return result.scalar_one_or_none()


async def create_kickoff_event(
    session: AsyncSession,
    project_id: UUID,
    title: str,
    description: str,
    start_at: datetime,
    end_at: datetime,
    meeting_url: str,
    created_by: UUID,
) -> KickoffEvent:
    """Create the kickoff event of a project."""
    event = KickoffEvent(
        project_id=project_id,
        title=title,
        description=description,
        start_at=start_at,
        end_at=end_at,
        meeting_url=meeting_url,
        created_by=created_by,
    )
    session.add(event)
    await session.flush()

    logger.info(
        "kickoff_event_created",
        event_id=str(event.id),
        project_id=str(project_id),
        start_at=start_at.isoformat(),
    )

    return event


async def list_attendees(session: AsyncSession, event_id: UUID) -> list[EventAttendee]:
    """List the invitees of an event."""
    result = await session.execute(
        select(EventAttendee)
        .where(EventAttendee.event_id == event_id)
        .order_by(EventAttendee.created_at.asc())
    )
    return list(result.scalars().all())


async def add_attendee(
    session: AsyncSession,
    event_id: UUID,
    member_id: UUID,
    email: str,
) -> tuple[EventAttendee, bool]:
    """Register a required attendee unless already invited.

    Returns:
        Tuple of (attendee, created).
    """
    result = await session.execute(
        select(EventAttendee).where(
            EventAttendee.event_id == event_id,
            EventAttendee.member_id == member_id,
        )
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        return existing, False

    attendee = EventAttendee(
        event_id=event_id,
        member_id=member_id,
        email=email,
        required=True,
        response_status="pending",
    )
    session.add(attendee)
    await session.flush()
    return attendee, True
