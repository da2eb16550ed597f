"""Unit tests for the assignment and project state machines.

Tests cover:
- Valid and invalid booking transitions
- Candidate reference handling on transitions
- Retirement reason and timestamp
- Explicit project actions
- Transition logging
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from teamdash.database.models.assignment import BookingStatus, ResourceAssignment, RetireReason
from teamdash.database.models.base import utcnow
from teamdash.database.models.project import ProjectStatus
from teamdash.orchestrator.errors import ConflictError, InvalidTransitionError, PreconditionViolation
from teamdash.orchestrator.state_machine import (
    PROJECT_TRANSITIONS,
    VALID_TRANSITIONS,
    AssignmentStateMachine,
    validate_project_action,
    validate_transition,
)


def make_assignment(status: BookingStatus, candidate_id: uuid.UUID | None = None) -> ResourceAssignment:
    return ResourceAssignment(
        id=uuid.uuid4(),
        project_id=uuid.uuid4(),
        profession="developer",
        seniority="senior",
        languages=["en"],
        expertises=["python"],
        is_automated=False,
        booking_status=status,
        candidate_id=candidate_id,
    )


@pytest.fixture
def mock_session() -> AsyncMock:
    session = AsyncMock(spec=AsyncSession)
    session.flush = AsyncMock()
    return session


class TestValidTransitions:
    """Test the VALID_TRANSITIONS mapping and validation."""

    def test_valid_transitions_definition(self):
        """Verify VALID_TRANSITIONS includes all BookingStatus values."""
        assert set(VALID_TRANSITIONS.keys()) == set(BookingStatus)

    def test_completed_is_terminal(self):
        assert VALID_TRANSITIONS[BookingStatus.completed] == set()

    @pytest.mark.parametrize(
        "current,target,expected",
        [
            # Valid transitions
            (BookingStatus.draft, BookingStatus.searching, True),
            (BookingStatus.draft, BookingStatus.accepted, True),
            (BookingStatus.draft, BookingStatus.completed, True),
            (BookingStatus.searching, BookingStatus.accepted, True),
            (BookingStatus.searching, BookingStatus.declined, True),
            (BookingStatus.searching, BookingStatus.completed, True),
            (BookingStatus.accepted, BookingStatus.completed, True),
            (BookingStatus.declined, BookingStatus.searching, True),
            # Invalid transitions
            (BookingStatus.accepted, BookingStatus.searching, False),
            (BookingStatus.accepted, BookingStatus.draft, False),
            (BookingStatus.searching, BookingStatus.draft, False),
            (BookingStatus.completed, BookingStatus.searching, False),
            (BookingStatus.completed, BookingStatus.accepted, False),
            (BookingStatus.declined, BookingStatus.accepted, False),
        ],
    )
    def test_validate_transition(self, current, target, expected):
        assert validate_transition(current, target) is expected


class TestAssignmentStateMachine:
    """Test AssignmentStateMachine.transition and retire."""

    async def test_accept_records_candidate(self, mock_session):
        candidate_id = uuid.uuid4()
        assignment = make_assignment(BookingStatus.draft)

        await AssignmentStateMachine().transition(
            assignment, BookingStatus.accepted, mock_session, candidate_id=candidate_id
        )

        assert assignment.booking_status == BookingStatus.accepted
        assert assignment.candidate_id == candidate_id
        mock_session.flush.assert_awaited_once()

    async def test_searching_clears_candidate(self, mock_session):
        assignment = make_assignment(BookingStatus.declined, candidate_id=uuid.uuid4())

        await AssignmentStateMachine().transition(assignment, BookingStatus.searching, mock_session)

        assert assignment.candidate_id is None

    async def test_retire_keeps_candidate_and_records_reason(self, mock_session):
        candidate_id = uuid.uuid4()
        assignment = make_assignment(BookingStatus.accepted, candidate_id=candidate_id)
        retired_at = utcnow()

        with patch(
            "teamdash.orchestrator.state_machine.retire_assignment",
            AsyncMock(return_value=retired_at),
        ) as retire_assignment:
            await AssignmentStateMachine().retire(
                assignment, RetireReason.requirement_changed, mock_session
            )

        retire_assignment.assert_awaited_once_with(
            mock_session, assignment.id, BookingStatus.accepted, RetireReason.requirement_changed
        )
        assert assignment.booking_status == BookingStatus.completed
        assert assignment.candidate_id == candidate_id
        assert assignment.retired_reason == RetireReason.requirement_changed
        assert assignment.retired_at == retired_at
        assert assignment.is_retired

    async def test_retire_after_concurrent_accept_conflicts(self, mock_session):
        assignment = make_assignment(BookingStatus.searching)

        with patch(
            "teamdash.orchestrator.state_machine.retire_assignment",
            AsyncMock(return_value=None),
        ):
            with pytest.raises(ConflictError) as exc_info:
                await AssignmentStateMachine().retire(
                    assignment, RetireReason.project_completed, mock_session
                )

        assert exc_info.value.assignment_id == str(assignment.id)
        assert assignment.booking_status == BookingStatus.searching
        assert assignment.retired_at is None

    async def test_invalid_transition_raises(self, mock_session):
        assignment = make_assignment(BookingStatus.accepted, candidate_id=uuid.uuid4())

        with pytest.raises(InvalidTransitionError) as exc_info:
            await AssignmentStateMachine().transition(
                assignment, BookingStatus.searching, mock_session
            )

        assert exc_info.value.current == BookingStatus.accepted
        assert exc_info.value.target == BookingStatus.searching
        assert exc_info.value.invariant == "valid_transition"
        assert isinstance(exc_info.value, PreconditionViolation)
        assert assignment.booking_status == BookingStatus.accepted
        mock_session.flush.assert_not_awaited()

    async def test_retire_declined_slot_rejected(self, mock_session):
        assignment = make_assignment(BookingStatus.declined)

        with pytest.raises(InvalidTransitionError):
            await AssignmentStateMachine().retire(
                assignment, RetireReason.project_completed, mock_session
            )

    async def test_transition_is_logged(self, mock_session):
        assignment = make_assignment(BookingStatus.draft)
        state_machine = AssignmentStateMachine()
        state_machine.logger = MagicMock()

        await state_machine.transition(assignment, BookingStatus.searching, mock_session)

        state_machine.logger.info.assert_called_once()
        args, kwargs = state_machine.logger.info.call_args
        assert args == ("assignment_transition",)
        assert kwargs["from_status"] == "draft"
        assert kwargs["to_status"] == "searching"
        assert kwargs["assignment_id"] == str(assignment.id)


class TestProjectActions:
    """Test the explicit project transitions."""

    @pytest.mark.parametrize(
        "action,current,expected",
        [
            ("pause", ProjectStatus.live, True),
            ("pause", ProjectStatus.awaiting_team, True),
            ("pause", ProjectStatus.completed, False),
            ("resume", ProjectStatus.paused, True),
            ("resume", ProjectStatus.live, False),
            ("complete", ProjectStatus.live, True),
            ("complete", ProjectStatus.archived, False),
            ("archive", ProjectStatus.completed, True),
            ("archive", ProjectStatus.deleted, False),
            ("delete", ProjectStatus.archived, True),
            ("delete", ProjectStatus.deleted, False),
            ("rename", ProjectStatus.paused, False),
        ],
    )
    def test_validate_project_action(self, action, current, expected):
        assert validate_project_action(action, current) is expected

    def test_terminal_statuses_never_resume(self):
        for status in (ProjectStatus.completed, ProjectStatus.archived, ProjectStatus.deleted):
            assert status not in PROJECT_TRANSITIONS["resume"]
            assert status not in PROJECT_TRANSITIONS["pause"]


def test_state_machine_logger_component():
    """The state machine binds its component name to its logger."""
    with patch("teamdash.orchestrator.state_machine.logger") as mock_logger:
        AssignmentStateMachine()
        mock_logger.bind.assert_called_once_with(component="AssignmentStateMachine")
