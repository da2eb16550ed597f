"""Resource assignment query functions for TeamDash.

Provides async functions for creating, reading and updating assignment
rows, including the compare-and-swaps that keep ``accept`` mutually exclusive
between concurrent candidates and stop a retire from overwriting an accept.

Query functions only flush; the caller owns the transaction.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from teamdash.database.models.assignment import BookingStatus, ResourceAssignment, RetireReason
from teamdash.database.models.base import utcnow

logger = structlog.get_logger(__name__)


async def create_assignment(
    session: AsyncSession,
    project_id: UUID,
    profession: str,
    seniority: str,
    languages: Iterable[str] = (),
    expertises: Iterable[str] = (),
    is_automated: bool = False,
    booking_status: BookingStatus = BookingStatus.draft,
    replaces_id: UUID | None = None,
) -> ResourceAssignment:
    """Create a new staffing slot.

    Args:
        session: Active async database session.
        project_id: UUID of the owning project.
        profession: Required profession.
        seniority: Required seniority tier.
        languages: Required languages.
        expertises: Required expertises.
        is_automated: Slot is served by an automated resource.
        booking_status: Initial booking status (draft unless replacing a slot).
        replaces_id: Slot this one replaces.

    Returns:
        The newly created ResourceAssignment instance.
    """
    assignment = ResourceAssignment(
        project_id=project_id,
        profession=profession,
        seniority=seniority,
        languages=sorted(set(languages)),
        expertises=sorted(set(expertises)),
        is_automated=is_automated,
        booking_status=booking_status,
        replaces_id=replaces_id,
    )
    session.add(assignment)
    await session.flush()

    logger.info(
        "assignment_created",
        assignment_id=str(assignment.id),
        project_id=str(project_id),
        profession=profession,
        seniority=seniority,
        is_automated=is_automated,
        status=booking_status.value,
    )

    return assignment


async def get_assignment(
    session: AsyncSession,
    assignment_id: UUID,
    refresh: bool = False,
) -> ResourceAssignment | None:
    """Retrieve an assignment by ID.

    Args:
        session: Active async database session.
        assignment_id: UUID of the assignment.
        refresh: Overwrite any copy already held by the session.

    Returns:
        The ResourceAssignment if found, None otherwise.
    """
    stmt = select(ResourceAssignment).where(ResourceAssignment.id == assignment_id)
    if refresh:
        stmt = stmt.execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_assignments(
    session: AsyncSession,
    project_id: UUID,
    include_retired: bool = True,
) -> list[ResourceAssignment]:
    """List a project's assignments in creation order.

    Rows are always re-read so that the result reflects writes made by
    concurrent transactions.
    """
    stmt = select(ResourceAssignment).where(ResourceAssignment.project_id == project_id)

    if not include_retired:
        stmt = stmt.where(ResourceAssignment.booking_status != BookingStatus.completed)

    stmt = stmt.order_by(ResourceAssignment.created_at.asc()).execution_options(
        populate_existing=True
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def claim_assignment(
    session: AsyncSession,
    assignment_id: UUID,
    candidate_id: UUID,
) -> bool:
    """Atomically accept a searching slot on behalf of a candidate.

    Issues ``UPDATE ... WHERE booking_status = 'searching'``. The caller that
    sees a row affected owns the slot; every other caller lost the race.

    Args:
        session: Active async database session.
        assignment_id: UUID of the slot.
        candidate_id: UUID of the accepting candidate.

    Returns:
        True if this call accepted the slot.
    """
    stmt = (
        update(ResourceAssignment)
        .where(
            ResourceAssignment.id == assignment_id,
            ResourceAssignment.booking_status == BookingStatus.searching,
        )
        .values(booking_status=BookingStatus.accepted, candidate_id=candidate_id)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    claimed = result.rowcount == 1

    logger.debug(
        "assignment_claim",
        assignment_id=str(assignment_id),
        candidate_id=str(candidate_id),
        claimed=claimed,
    )
    return claimed


async def retire_assignment(
    session: AsyncSession,
    assignment_id: UUID,
    expected_status: BookingStatus,
    reason: RetireReason,
) -> datetime | None:
    """Atomically retire a slot that is still in the status the caller read.

    Issues ``UPDATE ... WHERE booking_status = :expected_status`` so a
    concurrent accept committed after the caller loaded the row is never
    overwritten.

    Args:
        session: Active async database session.
        assignment_id: UUID of the slot.
        expected_status: Status the caller loaded.
        reason: Why the slot is retired.

    Returns:
        The retirement timestamp, or None if the slot had moved on.
    """
    retired_at = utcnow()
    stmt = (
        update(ResourceAssignment)
        .where(
            ResourceAssignment.id == assignment_id,
            ResourceAssignment.booking_status == expected_status,
        )
        .values(
            booking_status=BookingStatus.completed,
            retired_reason=reason,
            retired_at=retired_at,
        )
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    retired = result.rowcount == 1

    logger.debug(
        "assignment_retire",
        assignment_id=str(assignment_id),
        expected_status=expected_status.value,
        retired=retired,
    )
    return retired_at if retired else None


async def update_requirement(
    session: AsyncSession,
    assignment: ResourceAssignment,
    profession: str,
    seniority: str,
    languages: Iterable[str],
    expertises: Iterable[str],
) -> ResourceAssignment:
    """Overwrite the requirement embedded in a slot."""
    assignment.profession = profession
    assignment.seniority = seniority
    assignment.languages = sorted(set(languages))
    assignment.expertises = sorted(set(expertises))
    await session.flush()

    logger.info(
        "assignment_requirement_updated",
        assignment_id=str(assignment.id),
        profession=profession,
        seniority=seniority,
    )

    return assignment
