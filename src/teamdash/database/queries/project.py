"""Project query functions for TeamDash.

Provides async functions for creating, reading and updating Project records,
including the compare-and-swap used by the kickoff guard.

Query functions only flush; the caller owns the transaction.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from teamdash.database.models.base import utcnow
from teamdash.database.models.project import Project, ProjectStatus

logger = structlog.get_logger(__name__)

# Statuses from which a kickoff may flip a project to live
KICKOFF_SOURCE_STATUSES = (ProjectStatus.awaiting_team, ProjectStatus.paused)


async def create_project(
    session: AsyncSession,
    owner_id: UUID,
    title: str,
    start_date: date,
    description: str | None = None,
    due_date: date | None = None,
    client_budget: Decimal | None = None,
) -> Project:
    """Create a new project in the paused state.

    Args:
        session: Active async database session.
        owner_id: Client owning the project.
        title: Project title.
        start_date: Planned start date.
        description: Optional description.
        due_date: Optional planned end date.
        client_budget: Optional overall budget.

    Returns:
        The newly created Project instance.
    """
    project = Project(
        owner_id=owner_id,
        title=title,
        description=description,
        start_date=start_date,
        due_date=due_date,
        client_budget=client_budget,
        status=ProjectStatus.paused,
        kickoff_confirmed=False,
        manually_paused=False,
    )
    session.add(project)
    await session.flush()

    logger.info(
        "project_created",
        project_id=str(project.id),
        owner_id=str(owner_id),
        title=title,
        status=project.status.value,
    )

    return project


async def get_project(
    session: AsyncSession,
    project_id: UUID,
    refresh: bool = False,
) -> Project | None:
    """Retrieve a project by ID.

    Args:
        session: Active async database session.
        project_id: UUID of the project.
        refresh: Overwrite any copy already held by the session with the
            row as currently stored.

    Returns:
        The Project instance if found, None otherwise.
    """
    stmt = select(Project).where(Project.id == project_id)
    if refresh:
        stmt = stmt.execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_projects(
    session: AsyncSession,
    owner_id: UUID | None = None,
    status_filter: ProjectStatus | None = None,
) -> list[Project]:
    """List projects, newest first, with optional owner and status filters."""
    stmt = select(Project)

    if owner_id is not None:
        stmt = stmt.where(Project.owner_id == owner_id)

    if status_filter is not None:
        stmt = stmt.where(Project.status == status_filter)

    stmt = stmt.order_by(Project.created_at.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def claim_kickoff(session: AsyncSession, project_id: UUID) -> bool:
    """Atomically move a project to live if it is awaiting its kickoff.

    This is a single conditional UPDATE: of two concurrent kickoffs only one
    sees a row affected.

    Args:
        session: Active async database session.
        project_id: UUID of the project.

    Returns:
        True if this call performed the transition.
    """
    stmt = (
        update(Project)
        .where(
            Project.id == project_id,
            Project.status.in_(KICKOFF_SOURCE_STATUSES),
        )
        .values(
            status=ProjectStatus.live,
            kickoff_confirmed=True,
            manually_paused=False,
            kicked_off_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    claimed = result.rowcount == 1

    logger.debug("kickoff_claim", project_id=str(project_id), claimed=claimed)
    return claimed
