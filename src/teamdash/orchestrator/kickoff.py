"""Kickoff orchestrator for TeamDash.

Runs the enrichment steps that follow a successful kickoff guard (the
conditional flip of the project to ``live``, performed by the engine):

1. build the team roster (client + accepted candidates)
2. provision collaboration scaffolding (task board, starter cards, storage)
3. create the kickoff event and invite every roster member
4. notify every accepted human candidate

The owner and accepted candidates are resolved first; if that fails every
step is reported as skipped. Steps 1 and 2 run concurrently; 3 follows them
and 4 follows 3. Every step runs in its own transaction and is idempotent:
re-running the saga (``StaffingEngine.retry_kickoff``) only creates what is
missing. A failing step is logged and reported but never undoes earlier
steps or the project's ``live`` status.
"""

from __future__ import annotations

import asyncio
import re
import uuid
from collections.abc import Awaitable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from teamdash.config import KickoffConfig
from teamdash.database.models.assignment import BookingStatus
from teamdash.database.models.kickoff import KickoffEvent
from teamdash.database.models.notification import NotificationType
from teamdash.database.models.project import Project
from teamdash.database.models.roster import MemberType
from teamdash.database.queries import (
    add_attendee,
    add_roster_entry,
    create_board,
    create_card,
    create_column,
    create_kickoff_event,
    create_notification,
    ensure_folder,
    find_notification,
    get_board,
    get_candidates,
    get_client,
    get_kickoff_event,
    get_project,
    list_assignments,
    list_cards,
    list_columns,
)
from teamdash.integrations.webhook import WebhookNotifier
from teamdash.logging import get_logger
from teamdash.orchestrator.errors import NotFoundError

logger = get_logger(__name__)

COLUMN_COLORS = ["blue", "gray", "yellow", "orange", "green"]

# Steps that need the resolved participants, in run order
ENRICHMENT_STEPS = ("roster", "scaffolding", "event", "notifications")


@dataclass(frozen=True)
class Participant:
    """A kickoff participant resolved from the project and its assignments."""

    member_id: uuid.UUID
    member_type: MemberType
    email: str
    first_name: str
    last_name: str
    role: str
    seniority: str | None = None
    assignment_id: uuid.UUID | None = None

    @property
    def display_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.email


@dataclass
class StepOutcome:
    """Result of one kickoff step."""

    step: str
    ok: bool
    created: int = 0
    error: str | None = None


@dataclass
class KickoffReport:
    """Aggregated outcome of a kickoff run."""

    project_id: uuid.UUID
    steps: list[StepOutcome] = field(default_factory=list)
    event_id: uuid.UUID | None = None
    meeting_url: str | None = None

    @property
    def warnings(self) -> list[str]:
        return [f"{s.step}: {s.error}" for s in self.steps if not s.ok]

    @property
    def ok(self) -> bool:
        return all(s.ok for s in self.steps)

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_id": str(self.project_id),
            "ok": self.ok,
            "event_id": str(self.event_id) if self.event_id else None,
            "meeting_url": self.meeting_url,
            "steps": [
                {"step": s.step, "ok": s.ok, "created": s.created, "error": s.error}
                for s in self.steps
            ],
            "warnings": self.warnings,
        }


def slugify(title: str) -> str:
    """Turn a project title into a URL-safe fragment."""
    slug = re.sub(r"[^A-Za-z0-9]+", "-", title).strip("-")
    return slug or "project"


def meeting_url(base_url: str, project: Project) -> str:
    """Generate the kickoff meeting URL of a project."""
    return f"{base_url}/TeamDash-{slugify(project.title)}-Kickoff-{str(project.id)[:8]}"


def informational_cards(project: Project, participants: list[Participant]) -> list[tuple[str, str]]:
    """Return (title, description) of the starter cards placed in the first column."""
    due = project.due_date.isoformat() if project.due_date else "not set"
    budget = f"{project.client_budget:,.2f}" if project.client_budget is not None else "not set"
    team = "\n".join(f"- {p.display_name} ({p.role})" for p in participants)
    return [
        ("Reminder - Project description", project.description or "No description provided"),
        ("Reminder - Key dates", f"Start date: {project.start_date.isoformat()}\nDue date: {due}"),
        ("Reminder - Budget", f"Total budget: {budget}"),
        ("Reminder - Team composition", f"Team members:\n{team}"),
        (
            "Deliverables",
            "The client shares deliverables with the team lead, who forwards them "
            "to the members concerned. The client validates the final result.",
        ),
    ]


class KickoffOrchestrator:
    """Runs the idempotent enrichment steps of a project kickoff."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        config: KickoffConfig,
        notifier: WebhookNotifier | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.config = config
        self.notifier = notifier
        self.logger = logger.bind(component="KickoffOrchestrator")

    async def gather_participants(
        self, session: AsyncSession, project: Project
    ) -> list[Participant]:
        """Resolve the owner and every accepted human candidate of a project."""
        owner = await get_client(session, project.owner_id)
        if owner is None:
            raise NotFoundError("client", project.owner_id)

        participants = [
            Participant(
                member_id=owner.id,
                member_type=MemberType.client,
                email=owner.email,
                first_name=owner.first_name,
                last_name=owner.last_name,
                role="owner",
            )
        ]

        accepted = [
            a
            for a in await list_assignments(session, project.id, include_retired=False)
            if a.booking_status == BookingStatus.accepted
            and not a.is_automated
            and a.candidate_id is not None
        ]
        candidates = await get_candidates(session, [a.candidate_id for a in accepted])
        seen: set[uuid.UUID] = set()
        for assignment in accepted:
            candidate = candidates.get(assignment.candidate_id)
            if candidate is None or candidate.id in seen:
                continue
            seen.add(candidate.id)
            participants.append(
                Participant(
                    member_id=candidate.id,
                    member_type=MemberType.resource,
                    email=candidate.email,
                    first_name=candidate.first_name,
                    last_name=candidate.last_name,
                    role=assignment.profession,
                    seniority=assignment.seniority,
                    assignment_id=assignment.id,
                )
            )
        return participants

    async def build_roster(
        self, project_id: uuid.UUID, participants: list[Participant]
    ) -> StepOutcome:
        """Write missing roster entries."""
        created = 0
        async with self.session_factory() as session, session.begin():
            for p in participants:
                _, was_created = await add_roster_entry(
                    session,
                    project_id=project_id,
                    member_id=p.member_id,
                    member_type=p.member_type,
                    email=p.email,
                    role=p.role,
                    first_name=p.first_name,
                    last_name=p.last_name,
                    seniority=p.seniority,
                    assignment_id=p.assignment_id,
                )
                created += int(was_created)
        return StepOutcome(step="roster", ok=True, created=created)

    async def provision_scaffolding(
        self, project: Project, participants: list[Participant]
    ) -> StepOutcome:
        """Create the task board, its starter columns and cards, and the storage tree."""
        created = 0
        members = [
            {"member_id": str(p.member_id), "name": p.display_name, "role": p.role}
            for p in participants
        ]
        async with self.session_factory() as session, session.begin():
            board = await get_board(session, project.id)
            if board is None:
                board = await create_board(
                    session,
                    project_id=project.id,
                    title=f"Kanban - {project.title}",
                    description=f"Task board of project {project.title}",
                    created_by=project.owner_id,
                    members=members,
                )
                created += 1
            else:
                board.members = members

            columns = await list_columns(session, board.id)
            if not columns:
                for position, title in enumerate(self.config.board_columns):
                    columns.append(
                        await create_column(
                            session,
                            board_id=board.id,
                            title=title,
                            position=position,
                            color=COLUMN_COLORS[position % len(COLUMN_COLORS)],
                        )
                    )
                    created += 1

            if not await list_cards(session, board.id):
                for position, (title, description) in enumerate(
                    informational_cards(project, participants)
                ):
                    await create_card(
                        session,
                        board_id=board.id,
                        column_id=columns[0].id,
                        title=title,
                        description=description,
                        position=position,
                        priority="high" if position == 0 else "medium",
                    )
                    created += 1

            root = f"{self.config.storage_root_prefix}/{project.id}"
            folders = [root] + sorted(
                {f"{root}/{p.role}" for p in participants if p.member_type == MemberType.resource}
            )
            for path in folders:
                created += int(await ensure_folder(session, project.id, path))

        return StepOutcome(step="scaffolding", ok=True, created=created)

    async def create_event(
        self,
        project: Project,
        participants: list[Participant],
        kickoff_at: datetime | None,
    ) -> tuple[StepOutcome, KickoffEvent]:
        """Create the kickoff event if missing and invite every participant."""
        created = 0
        async with self.session_factory() as session, session.begin():
            event = await get_kickoff_event(session, project.id)
            if event is None:
                start_at = kickoff_at or (
                    datetime.now(timezone.utc) + timedelta(hours=self.config.default_lead_hours)
                )
                url = meeting_url(self.config.meeting_base_url, project)
                event = await create_kickoff_event(
                    session,
                    project_id=project.id,
                    title=f"Kickoff - {project.title}",
                    description=f"Kickoff meeting of project {project.title}\n\nJoin: {url}",
                    start_at=start_at,
                    end_at=start_at + timedelta(minutes=self.config.duration_minutes),
                    meeting_url=url,
                    created_by=project.owner_id,
                )
                created += 1

            for p in participants:
                _, was_created = await add_attendee(session, event.id, p.member_id, p.email)
                created += int(was_created)

        return StepOutcome(step="event", ok=True, created=created), event

    async def notify_team(
        self,
        project: Project,
        participants: list[Participant],
        event: KickoffEvent,
    ) -> StepOutcome:
        """Send a kickoff invitation to each accepted candidate not yet invited."""
        invited: list[uuid.UUID] = []
        async with self.session_factory() as session, session.begin():
            for p in participants:
                if p.member_type != MemberType.resource:
                    continue
                existing = await find_notification(
                    session,
                    candidate_id=p.member_id,
                    notification_type=NotificationType.kickoff_invitation,
                    event_id=event.id,
                )
                if existing is not None:
                    continue
                await create_notification(
                    session,
                    candidate_id=p.member_id,
                    project_id=project.id,
                    notification_type=NotificationType.kickoff_invitation,
                    title=f"Welcome to {project.title}",
                    description=(
                        f"The kickoff starts at {event.start_at.isoformat()}. "
                        f"Meeting link: {event.meeting_url}"
                    ),
                    assignment_id=p.assignment_id,
                    event_id=event.id,
                )
                invited.append(p.member_id)

        if invited and self.notifier is not None:
            await self.notifier.notify_kickoff_invitation(
                project.id, invited, event.title, event.start_at, event.meeting_url
            )
        return StepOutcome(step="notifications", ok=True, created=len(invited))

    async def _run_step(self, step: str, project_id: uuid.UUID, work: Awaitable[Any]) -> Any:
        """Await a step, converting any failure into a failed StepOutcome."""
        try:
            return await work
        except Exception as e:
            self.logger.warning(
                "kickoff_step_failed",
                project_id=str(project_id),
                step=step,
                error=str(e),
                error_type=type(e).__name__,
            )
            return StepOutcome(step=step, ok=False, error=str(e) or type(e).__name__)

    async def _run_enrichment_steps(
        self,
        report: KickoffReport,
        project: Project,
        participants: list[Participant],
        kickoff_at: datetime | None,
    ) -> None:
        project_id = project.id
        roster, scaffolding = await asyncio.gather(
            self._run_step("roster", project_id, self.build_roster(project_id, participants)),
            self._run_step(
                "scaffolding", project_id, self.provision_scaffolding(project, participants)
            ),
        )
        report.steps.extend([roster, scaffolding])

        result = await self._run_step(
            "event", project_id, self.create_event(project, participants, kickoff_at)
        )
        if isinstance(result, StepOutcome):
            report.steps.append(result)
            report.steps.append(
                StepOutcome(step="notifications", ok=False, error="skipped: no kickoff event")
            )
        else:
            event_outcome, event = result
            report.steps.append(event_outcome)
            report.event_id = event.id
            report.meeting_url = event.meeting_url
            report.steps.append(
                await self._run_step(
                    "notifications", project_id, self.notify_team(project, participants, event)
                )
            )

    async def run(self, project_id: uuid.UUID, kickoff_at: datetime | None = None) -> KickoffReport:
        """Run every enrichment step for a project that already passed the guard.

        Args:
            project_id: Project being kicked off.
            kickoff_at: Requested meeting start; defaults to now plus the
                configured lead time. Ignored when the event already exists.

        Returns:
            A KickoffReport with one outcome per step, preceded by a failed
            ``participants`` outcome when the team could not be resolved.

        Raises:
            NotFoundError: If the project does not exist.
        """
        report = KickoffReport(project_id=project_id)

        async with self.session_factory() as session:
            project = await get_project(session, project_id, refresh=True)
            if project is None:
                raise NotFoundError("project", project_id)
            resolved = await self._run_step(
                "participants", project_id, self.gather_participants(session, project)
            )

        if isinstance(resolved, StepOutcome):
            # Nothing can be built without the team; leave it all to a retry
            participants: list[Participant] = []
            report.steps.append(resolved)
            report.steps.extend(
                StepOutcome(step=step, ok=False, error="skipped: no participants")
                for step in ENRICHMENT_STEPS
            )
        else:
            participants = resolved
            await self._run_enrichment_steps(report, project, participants, kickoff_at)

        if report.ok:
            self.logger.info(
                "kickoff_completed",
                project_id=str(project_id),
                participants=len(participants),
                steps={s.step: s.created for s in report.steps},
            )
        else:
            self.logger.warning(
                "kickoff_completed_with_warnings",
                project_id=str(project_id),
                warnings=report.warnings,
            )
        return report
