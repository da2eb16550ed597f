"""Candidate notification query functions for TeamDash.

Notifications are deduplicated per (candidate, subject, type) while they
are still open, so that re-running a fan-out or a kickoff step is harmless.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from teamdash.database.models.notification import (
    OPEN_NOTIFICATION_STATUSES,
    CandidateNotification,
    NotificationStatus,
    NotificationType,
)

logger = structlog.get_logger(__name__)


async def find_notification(
    session: AsyncSession,
    candidate_id: UUID,
    notification_type: NotificationType,
    assignment_id: UUID | None = None,
    event_id: UUID | None = None,
    open_only: bool = False,
) -> CandidateNotification | None:
    """Find the most recent notification of a type for a candidate and subject."""
    stmt = select(CandidateNotification).where(
        CandidateNotification.candidate_id == candidate_id,
        CandidateNotification.type == notification_type,
    )
    if assignment_id is not None:
        stmt = stmt.where(CandidateNotification.assignment_id == assignment_id)
    if event_id is not None:
        stmt = stmt.where(CandidateNotification.event_id == event_id)
    if open_only:
        stmt = stmt.where(CandidateNotification.status.in_(OPEN_NOTIFICATION_STATUSES))

    stmt = stmt.order_by(CandidateNotification.created_at.desc()).limit(1)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_notification(
    session: AsyncSession,
    candidate_id: UUID,
    project_id: UUID,
    notification_type: NotificationType,
    title: str,
    description: str = "",
    assignment_id: UUID | None = None,
    event_id: UUID | None = None,
) -> CandidateNotification:
    """Persist a new unread notification."""
    notification = CandidateNotification(
        candidate_id=candidate_id,
        project_id=project_id,
        assignment_id=assignment_id,
        event_id=event_id,
        type=notification_type,
        status=NotificationStatus.unread,
        title=title,
        description=description,
    )
    session.add(notification)
    await session.flush()

    logger.info(
        "notification_created",
        notification_id=str(notification.id),
        candidate_id=str(candidate_id),
        type=notification_type.value,
    )

    return notification


async def list_notifications(
    session: AsyncSession,
    candidate_id: UUID | None = None,
    project_id: UUID | None = None,
    assignment_id: UUID | None = None,
    notification_type: NotificationType | None = None,
) -> list[CandidateNotification]:
    """List notifications with optional filters, oldest first."""
    stmt = select(CandidateNotification)

    if candidate_id is not None:
        stmt = stmt.where(CandidateNotification.candidate_id == candidate_id)
    if project_id is not None:
        stmt = stmt.where(CandidateNotification.project_id == project_id)
    if assignment_id is not None:
        stmt = stmt.where(CandidateNotification.assignment_id == assignment_id)
    if notification_type is not None:
        stmt = stmt.where(CandidateNotification.type == notification_type)

    stmt = stmt.order_by(CandidateNotification.created_at.asc()).execution_options(
        populate_existing=True
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def set_opportunity_status(
    session: AsyncSession,
    assignment_id: UUID,
    status: NotificationStatus,
    candidate_id: UUID | None = None,
    exclude_candidate_id: UUID | None = None,
) -> int:
    """Close open opportunity notifications of a slot.

    Args:
        session: Active async database session.
        assignment_id: Slot the opportunities refer to.
        status: Status to set (accepted, declined or expired).
        candidate_id: Restrict to this candidate.
        exclude_candidate_id: Skip this candidate.

    Returns:
        Number of notifications updated.
    """
    stmt = update(CandidateNotification).where(
        CandidateNotification.assignment_id == assignment_id,
        CandidateNotification.type == NotificationType.opportunity,
        CandidateNotification.status.in_(OPEN_NOTIFICATION_STATUSES),
    )
    if candidate_id is not None:
        stmt = stmt.where(CandidateNotification.candidate_id == candidate_id)
    if exclude_candidate_id is not None:
        stmt = stmt.where(CandidateNotification.candidate_id != exclude_candidate_id)

    result = await session.execute(
        stmt.values(status=status).execution_options(synchronize_session=False)
    )
    count = result.rowcount

    logger.debug(
        "opportunities_closed",
        assignment_id=str(assignment_id),
        status=status.value,
        count=count,
    )
    return count
