"""Project status aggregator for TeamDash.

The derived part of a project's status is a pure function of its
assignments plus two administrative flags stored on the project:

- ``kickoff_confirmed``: set by a successful kickoff, cleared by a manual pause
- ``manually_paused``: set by pause, cleared by resume

Terminal statuses (completed, archived, deleted) are only entered through
explicit actions; once there the aggregator leaves the project alone.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from teamdash.database.models.assignment import BookingStatus
from teamdash.database.models.project import TERMINAL_STATUSES, Project, ProjectStatus
from teamdash.database.queries.assignment import list_assignments

logger = structlog.get_logger(__name__)


class AssignmentLike(Protocol):
    booking_status: BookingStatus
    is_automated: bool


@dataclass(frozen=True)
class Readiness:
    """Summary of a project's staffing state.

    Attributes:
        active: Number of slots that are not retired.
        required: Active slots that need a human candidate.
        accepted: Required slots that are accepted.
        all_draft: True when no active slot has left draft.
    """

    active: int
    required: int
    accepted: int
    all_draft: bool

    @property
    def team_ready(self) -> bool:
        """Every human slot is accepted and at least one slot is engaged."""
        return self.active > 0 and not self.all_draft and self.accepted == self.required


def summarize(assignments: Iterable[AssignmentLike]) -> Readiness:
    """Count active, required and accepted slots, ignoring retired ones."""
    active = [a for a in assignments if a.booking_status != BookingStatus.completed]
    required = [a for a in active if not a.is_automated]
    return Readiness(
        active=len(active),
        required=len(required),
        accepted=sum(1 for a in required if a.booking_status == BookingStatus.accepted),
        all_draft=all(a.booking_status == BookingStatus.draft for a in active),
    )


def derive_status(
    current_status: ProjectStatus,
    kickoff_confirmed: bool,
    manually_paused: bool,
    assignments: Iterable[AssignmentLike],
) -> ProjectStatus:
    """Derive a project's status from its assignments.

    Rules, first match wins:

    1. terminal statuses are kept
    2. no active assignment, a manual pause, or only draft slots -> paused
    3. kicked off and every human slot accepted -> live
    4. otherwise -> awaiting_team

    Args:
        current_status: Status currently stored on the project.
        kickoff_confirmed: Whether a kickoff succeeded since the last pause.
        manually_paused: Whether the client paused the project.
        assignments: Every assignment of the project, retired ones included.

    Returns:
        The status the project should have.
    """
    if current_status in TERMINAL_STATUSES:
        return current_status

    readiness = summarize(assignments)

    if readiness.active == 0 or manually_paused or readiness.all_draft:
        return ProjectStatus.paused

    if kickoff_confirmed and readiness.accepted == readiness.required:
        return ProjectStatus.live

    return ProjectStatus.awaiting_team


async def recompute_project_status(
    session: AsyncSession,
    project: Project,
) -> ProjectStatus:
    """Re-derive and store a project's status from its current assignments.

    Args:
        session: Active async database session.
        project: Loaded project row.

    Returns:
        The (possibly unchanged) project status.
    """
    assignments = await list_assignments(session, project.id)
    previous = project.status
    derived = derive_status(
        previous, project.kickoff_confirmed, project.manually_paused, assignments
    )

    if derived != previous:
        project.status = derived
        logger.info(
            "project_status_derived",
            project_id=str(project.id),
            from_status=previous.value,
            to_status=derived.value,
        )
        # Commit is handled by caller
        await session.flush()

    return derived
