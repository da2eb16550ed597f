"""Assignment and project state machines for TeamDash.

This module holds the authoritative transition tables for resource
assignments (booking lifecycle) and for the explicit, administrative project
transitions. Derived project statuses (paused, awaiting_team, live) are
computed by the aggregator and are not listed here.

Accepting a slot is not performed through ``AssignmentStateMachine.transition``:
it is a compare-and-swap on ``booking_status = searching`` so that
concurrent acceptors cannot both win (see ``queries.assignment.claim_assignment``).
Retiring is likewise conditional on the status the caller loaded.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from teamdash.database.models.assignment import BookingStatus, ResourceAssignment, RetireReason
from teamdash.database.models.base import utcnow
from teamdash.database.models.project import ProjectStatus
from teamdash.database.queries.assignment import retire_assignment
from teamdash.orchestrator.errors import ConflictError, InvalidTransitionError

logger = structlog.get_logger(__name__)


# Authoritative booking lifecycle
VALID_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.draft: {BookingStatus.searching, BookingStatus.accepted, BookingStatus.completed},
    BookingStatus.searching: {
        BookingStatus.accepted,
        BookingStatus.declined,
        BookingStatus.completed,
    },
    BookingStatus.accepted: {BookingStatus.completed},
    BookingStatus.declined: {BookingStatus.searching, BookingStatus.completed},
    BookingStatus.completed: set(),  # Terminal state
}

# Statuses a slot may be retired from
RETIRABLE_STATUSES = frozenset(
    {BookingStatus.draft, BookingStatus.searching, BookingStatus.accepted}
)

# Explicit project transitions; paused/awaiting_team/live are otherwise derived
PROJECT_TRANSITIONS: dict[str, set[ProjectStatus]] = {
    "pause": {ProjectStatus.paused, ProjectStatus.awaiting_team, ProjectStatus.live},
    "resume": {ProjectStatus.paused},
    "complete": {ProjectStatus.paused, ProjectStatus.awaiting_team, ProjectStatus.live},
    "archive": {
        ProjectStatus.paused,
        ProjectStatus.awaiting_team,
        ProjectStatus.live,
        ProjectStatus.completed,
    },
    "delete": {
        ProjectStatus.paused,
        ProjectStatus.awaiting_team,
        ProjectStatus.live,
        ProjectStatus.completed,
        ProjectStatus.archived,
    },
}


def validate_transition(current: BookingStatus, target: BookingStatus) -> bool:
    """Validate if a booking transition is allowed.

    Args:
        current: Current booking status.
        target: Target booking status.

    Returns:
        True if the transition is valid according to VALID_TRANSITIONS.
    """
    return target in VALID_TRANSITIONS.get(current, set())


def validate_project_action(action: str, current: ProjectStatus) -> bool:
    """Return True if the explicit project action may run from ``current``."""
    return current in PROJECT_TRANSITIONS.get(action, set())


class AssignmentStateMachine:
    """Applies booking transitions to assignment rows.

    This class handles:
    - Validation against VALID_TRANSITIONS
    - Keeping the candidate reference consistent with the booking status
    - Recording retirement reason and timestamp
    - Logging all transitions
    """

    def __init__(self):
        self.logger = logger.bind(component="AssignmentStateMachine")

    async def transition(
        self,
        assignment: ResourceAssignment,
        target_status: BookingStatus,
        session: AsyncSession,
        *,
        candidate_id: uuid.UUID | None = None,
        reason: RetireReason | None = None,
    ) -> ResourceAssignment:
        """Move an assignment to a new booking status.

        Args:
            assignment: Loaded assignment row.
            target_status: Target booking status.
            session: Database session for the transaction.
            candidate_id: Candidate to record (only used for ``accepted``).
            reason: Retirement reason (only used for ``completed``).

        Returns:
            The updated assignment.

        Raises:
            InvalidTransitionError: If the transition is not valid.
        """
        current_status = assignment.booking_status

        if not validate_transition(current_status, target_status):
            raise InvalidTransitionError(current_status, target_status, str(assignment.id))

        assignment.booking_status = target_status

        if target_status == BookingStatus.accepted:
            assignment.candidate_id = candidate_id
        elif target_status in (BookingStatus.searching, BookingStatus.declined):
            assignment.candidate_id = None
        elif target_status == BookingStatus.completed:
            assignment.retired_reason = reason
            assignment.retired_at = utcnow()

        self.logger.info(
            "assignment_transition",
            assignment_id=str(assignment.id),
            project_id=str(assignment.project_id),
            from_status=current_status.value,
            to_status=target_status.value,
            reason=reason.value if reason else None,
        )

        # Commit is handled by caller
        await session.flush()

        return assignment

    async def retire(
        self,
        assignment: ResourceAssignment,
        reason: RetireReason,
        session: AsyncSession,
    ) -> ResourceAssignment:
        """Retire a draft, searching or accepted slot with the given reason.

        The write is conditional on the status held by ``assignment`` so that
        an accept committed since the row was loaded is not overwritten.

        Raises:
            InvalidTransitionError: If the loaded status cannot be retired.
            ConflictError: If the stored status no longer matches.
        """
        current_status = assignment.booking_status
        if current_status not in RETIRABLE_STATUSES:
            raise InvalidTransitionError(
                current_status, BookingStatus.completed, str(assignment.id)
            )

        retired_at = await retire_assignment(session, assignment.id, current_status, reason)
        if retired_at is None:
            raise ConflictError("assignment changed concurrently", str(assignment.id))

        # Mirror the stored row without scheduling a second UPDATE
        set_committed_value(assignment, "booking_status", BookingStatus.completed)
        set_committed_value(assignment, "retired_reason", reason)
        set_committed_value(assignment, "retired_at", retired_at)

        self.logger.info(
            "assignment_transition",
            assignment_id=str(assignment.id),
            project_id=str(assignment.project_id),
            from_status=current_status.value,
            to_status=BookingStatus.completed.value,
            reason=reason.value,
        )
        return assignment
