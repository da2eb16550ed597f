"""Integration tests for project kickoff.

Tests cover:
- The kickoff guard (team readiness, single successful start)
- Roster, scaffolding, event and invitation side effects
- Idempotent re-runs of the enrichment steps
- Failure isolation between steps
- Retrying a kickoff that failed or was interrupted after going live
- Relay events published around a kickoff
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from teamdash.database.models.notification import NotificationType
from teamdash.database.models.project import ProjectStatus
from teamdash.database.models.roster import MemberType
from teamdash.database.queries import (
    get_board,
    get_kickoff_event,
    list_attendees,
    list_cards,
    list_columns,
    list_folders,
    list_notifications,
    list_roster,
)
from teamdash.orchestrator.engine import StaffingEngine
from teamdash.orchestrator.errors import PreconditionViolation
from teamdash.orchestrator.relay import ChangeType, ProjectView


@pytest.fixture
async def staffed_project(seed):
    """Project with an accepted developer and an accepted designer."""
    owner = await seed.client(first_name="Olivia", last_name="Owner")
    project = await seed.project(owner, title="Mobile App")
    dev = await seed.candidate(first_name="Dana")
    designer = await seed.candidate(profession="designer", expertises=("figma",), first_name="Drew")
    await seed.staffed_slot(project.id, dev.id)
    await seed.staffed_slot(
        project.id, designer.id, seed.requirement("designer", expertises=("figma",))
    )
    return project, owner, dev, designer


class TestKickoffGuard:
    """Test start_project preconditions."""

    async def test_incomplete_team_rejected(self, seed, staffing: StaffingEngine) -> None:
        project = await seed.project()
        await seed.candidate()
        slot = await staffing.configure_requirement(project.id, seed.requirement())
        await staffing.request_booking(slot.id)

        with pytest.raises(PreconditionViolation) as exc_info:
            await staffing.start_project(project.id)
        assert exc_info.value.invariant == "team_ready"
        assert (await staffing.get_project(project.id)).status == ProjectStatus.awaiting_team

    async def test_only_draft_slots_rejected(self, seed, staffing: StaffingEngine) -> None:
        project = await seed.project()
        await staffing.configure_requirement(project.id, seed.requirement())

        with pytest.raises(PreconditionViolation) as exc_info:
            await staffing.start_project(project.id)
        assert exc_info.value.invariant == "team_ready"

    async def test_project_without_slots_rejected(self, seed, staffing: StaffingEngine) -> None:
        project = await seed.project()

        with pytest.raises(PreconditionViolation) as exc_info:
            await staffing.start_project(project.id)
        assert exc_info.value.invariant == "team_ready"

    async def test_second_start_rejected(self, staffing: StaffingEngine, staffed_project) -> None:
        project, *_ = staffed_project
        await staffing.start_project(project.id)

        with pytest.raises(PreconditionViolation) as exc_info:
            await staffing.start_project(project.id)
        assert exc_info.value.invariant == "not_live"

    async def test_concurrent_starts_run_saga_once(
        self, staffing: StaffingEngine, staffed_project
    ) -> None:
        project, *_ = staffed_project

        results = await asyncio.gather(
            staffing.start_project(project.id),
            staffing.start_project(project.id),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, PreconditionViolation)]
        reports = [r for r in results if not isinstance(r, BaseException)]
        assert len(reports) == 1
        assert len(failures) == 1
        assert failures[0].invariant == "not_live"

    async def test_automated_only_project_can_start(self, seed, staffing: StaffingEngine) -> None:
        project = await seed.project()
        slot = await staffing.configure_requirement(
            project.id, seed.requirement(), is_automated=True
        )
        await staffing.request_booking(slot.id)

        report = await staffing.start_project(project.id)

        assert report.ok
        assert (await staffing.get_project(project.id)).status == ProjectStatus.live


class TestKickoffSideEffects:
    """Test what a successful kickoff creates."""

    async def test_start_creates_team_workspace(
        self, staffing: StaffingEngine, session_factory, staffed_project
    ) -> None:
        project, owner, dev, designer = staffed_project
        kickoff_at = datetime(2026, 11, 3, 9, 30, tzinfo=timezone.utc)

        report = await staffing.start_project(project.id, kickoff_at)

        assert report.ok
        assert report.warnings == []
        assert [s.step for s in report.steps] == ["roster", "scaffolding", "event", "notifications"]
        assert report.meeting_url.startswith("https://meet.jit.si/TeamDash-Mobile-App-Kickoff-")

        live = await staffing.get_project(project.id)
        assert live.status == ProjectStatus.live
        assert live.kickoff_confirmed is True
        assert live.kicked_off_at is not None

        async with session_factory() as session:
            roster = await list_roster(session, project.id)
            assert {(r.member_id, r.member_type) for r in roster} == {
                (owner.id, MemberType.client),
                (dev.id, MemberType.resource),
                (designer.id, MemberType.resource),
            }

            board = await get_board(session, project.id)
            assert board.title == "Kanban - Mobile App"
            assert len(board.members) == 3
            columns = await list_columns(session, board.id)
            assert [c.title for c in columns] == [
                "Setup",
                "To do",
                "In progress",
                "To review",
                "Done",
            ]
            cards = await list_cards(session, board.id)
            assert len(cards) == 5
            assert {c.column_id for c in cards} == {columns[0].id}

            folders = {f.path for f in await list_folders(session, project.id)}
            root = f"projects/{project.id}"
            assert folders == {root, f"{root}/developer", f"{root}/designer"}

            event = await get_kickoff_event(session, project.id)
            assert event.id == report.event_id
            assert event.title == "Kickoff - Mobile App"
            assert event.start_at.replace(tzinfo=timezone.utc) == kickoff_at
            attendees = await list_attendees(session, event.id)
            assert {a.member_id for a in attendees} == {owner.id, dev.id, designer.id}

            invitations = await list_notifications(
                session,
                project_id=project.id,
                notification_type=NotificationType.kickoff_invitation,
            )
            assert {n.candidate_id for n in invitations} == {dev.id, designer.id}
            assert all(n.event_id == event.id for n in invitations)

    async def test_rerun_creates_nothing_new(
        self, staffing: StaffingEngine, session_factory, staffed_project
    ) -> None:
        project, *_ = staffed_project
        first = await staffing.start_project(project.id)

        second = await staffing.kickoff.run(project.id)

        assert second.ok
        assert second.event_id == first.event_id
        assert {s.step: s.created for s in second.steps} == {
            "roster": 0,
            "scaffolding": 0,
            "event": 0,
            "notifications": 0,
        }
        async with session_factory() as session:
            assert len(await list_roster(session, project.id)) == 3

    async def test_failed_step_does_not_block_others(
        self, staffing: StaffingEngine, session_factory, staffed_project
    ) -> None:
        project, *_ = staffed_project

        with patch.object(
            staffing.kickoff,
            "provision_scaffolding",
            AsyncMock(side_effect=RuntimeError("storage unavailable")),
        ):
            report = await staffing.start_project(project.id)

        assert not report.ok
        assert report.warnings == ["scaffolding: storage unavailable"]
        outcomes = {s.step: s.ok for s in report.steps}
        assert outcomes == {
            "roster": True,
            "scaffolding": False,
            "event": True,
            "notifications": True,
        }
        assert (await staffing.get_project(project.id)).status == ProjectStatus.live

        async with session_factory() as session:
            assert await get_board(session, project.id) is None
            assert len(await list_roster(session, project.id)) == 3

        # Re-running the saga fills in the missing step
        retry = await staffing.retry_kickoff(project.id)
        assert retry.ok
        async with session_factory() as session:
            assert await get_board(session, project.id) is not None

    async def test_failed_event_skips_invitations(
        self, staffing: StaffingEngine, staffed_project
    ) -> None:
        project, *_ = staffed_project

        with patch.object(
            staffing.kickoff,
            "create_event",
            AsyncMock(side_effect=RuntimeError("calendar down")),
        ):
            report = await staffing.start_project(project.id)

        steps = {s.step: s for s in report.steps}
        assert steps["event"].ok is False
        assert steps["notifications"].ok is False
        assert steps["notifications"].error == "skipped: no kickoff event"
        assert report.event_id is None
        assert (await staffing.get_project(project.id)).status == ProjectStatus.live

class TestKickoffRetry:
    """Test finishing a kickoff once the project is already live."""

    async def test_unresolved_team_is_reported_then_retried(
        self, staffing: StaffingEngine, session_factory, staffed_project
    ) -> None:
        project, *_ = staffed_project

        with patch(
            "teamdash.orchestrator.kickoff.get_client",
            AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("connection reset"))),
        ):
            report = await staffing.start_project(project.id)

        assert not report.ok
        assert [(s.step, s.ok) for s in report.steps] == [
            ("participants", False),
            ("roster", False),
            ("scaffolding", False),
            ("event", False),
            ("notifications", False),
        ]
        assert report.steps[1].error == "skipped: no participants"
        assert (await staffing.get_project(project.id)).status == ProjectStatus.live
        async with session_factory() as session:
            assert await list_roster(session, project.id) == []

        with pytest.raises(PreconditionViolation) as exc_info:
            await staffing.start_project(project.id)
        assert exc_info.value.invariant == "not_live"

        retry = await staffing.retry_kickoff(project.id)

        assert retry.ok
        assert [s.step for s in retry.steps] == ["roster", "scaffolding", "event", "notifications"]
        async with session_factory() as session:
            assert len(await list_roster(session, project.id)) == 3
            assert await get_kickoff_event(session, project.id) is not None

    async def test_interrupted_enrichment_can_be_retried(
        self, staffing: StaffingEngine, session_factory, staffed_project
    ) -> None:
        project, *_ = staffed_project

        with patch.object(
            staffing.kickoff, "run", AsyncMock(side_effect=RuntimeError("worker restarted"))
        ):
            with pytest.raises(RuntimeError):
                await staffing.start_project(project.id)

        assert (await staffing.get_project(project.id)).status == ProjectStatus.live

        report = await staffing.retry_kickoff(project.id)

        assert report.ok
        async with session_factory() as session:
            assert len(await list_roster(session, project.id)) == 3

    async def test_retry_before_kickoff_rejected(
        self, staffing: StaffingEngine, staffed_project
    ) -> None:
        project, *_ = staffed_project

        with pytest.raises(PreconditionViolation) as exc_info:
            await staffing.retry_kickoff(project.id)
        assert exc_info.value.invariant == "kicked_off"

    async def test_retry_of_paused_project_rejected(
        self, staffing: StaffingEngine, staffed_project
    ) -> None:
        project, *_ = staffed_project
        await staffing.start_project(project.id)
        await staffing.pause_project(project.id)

        with pytest.raises(PreconditionViolation) as exc_info:
            await staffing.retry_kickoff(project.id)
        assert exc_info.value.invariant == "kicked_off"



class TestKickoffRelay:
    """Test relay events published by a kickoff."""

    async def test_observer_view_goes_live(
        self, staffing: StaffingEngine, staffed_project
    ) -> None:
        project, *_ = staffed_project
        view = ProjectView(project.id)
        view.apply_snapshot(await staffing.project_snapshot(project.id))
        assert view.status == ProjectStatus.awaiting_team

        async with staffing.relay.subscription(project.id) as queue:
            await staffing.start_project(project.id)
            events = []
            while not queue.empty():
                events.append(queue.get_nowait())

        assert [e.change for e in events] == [
            ChangeType.PROJECT_STATUS,
            ChangeType.KICKOFF_COMPLETED,
        ]
        assert events[1].data["report"]["ok"] is True
        assert all(view.apply(event) for event in events)
        assert view.needs_resync is False
        assert view.status == ProjectStatus.live
