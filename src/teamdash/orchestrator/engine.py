"""Staffing engine service for TeamDash.

``StaffingEngine`` is the entry point for every external operation: it
opens one transaction per call, applies the state machines, re-derives the
project status after every assignment mutation, and after commit publishes
the resulting deltas to the change relay and forwards notifications to the
webhook.

Handlers are stateless; all coordination between concurrent callers goes
through conditional writes in the store (``claim_assignment`` for accept,
``retire_assignment`` for retiring a slot, ``claim_kickoff`` for the kickoff
guard).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from teamdash.config import KickoffConfig, TeamDashConfig
from teamdash.database.models.assignment import BookingStatus, ResourceAssignment, RetireReason
from teamdash.database.models.base import utcnow
from teamdash.database.models.candidate import CandidateProfile
from teamdash.database.models.notification import (
    OPEN_NOTIFICATION_STATUSES,
    NotificationStatus,
    NotificationType,
)
from teamdash.database.models.project import Project, ProjectStatus
from teamdash.database.queries import (
    claim_assignment,
    claim_kickoff,
    create_assignment,
    create_notification,
    find_notification,
    get_assignment,
    get_candidate,
    get_client,
    get_project,
    list_assignments,
    list_candidates,
    list_notifications,
    list_projects,
    set_opportunity_status,
    update_requirement,
)
from teamdash.database.queries import create_project as insert_project
from teamdash.integrations.webhook import WebhookNotifier
from teamdash.logging import bind_project_context, get_logger
from teamdash.orchestrator.aggregator import recompute_project_status, summarize
from teamdash.orchestrator.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PreconditionViolation,
)
from teamdash.orchestrator.kickoff import KickoffOrchestrator, KickoffReport
from teamdash.orchestrator.matching import (
    ChangeImpact,
    RequirementChangeAnalysis,
    StaffingRequirement,
    analyze_requirement_change,
    filter_matching,
    matches,
)
from teamdash.orchestrator.relay import ChangeRelay, ChangeType, assignment_delta, project_delta
from teamdash.orchestrator.state_machine import AssignmentStateMachine, validate_project_action

logger = get_logger(__name__)

# Reads of a slot per requirement edit; a slot can only be accepted once
EDIT_ATTEMPTS = 2


@dataclass
class BookingResult:
    """Outcome of ``request_booking``."""

    assignment: ResourceAssignment
    notified_candidate_ids: list[uuid.UUID] = field(default_factory=list)


@dataclass
class RequirementEditResult:
    """Outcome of ``edit_requirement``.

    ``replacement`` is set when the slot was retired and re-opened.
    """

    analysis: RequirementChangeAnalysis
    assignment: ResourceAssignment
    replacement: ResourceAssignment | None = None
    notified_candidate_ids: list[uuid.UUID] = field(default_factory=list)


@dataclass
class _Changes:
    """Deltas collected inside a transaction, published after commit."""

    assignments: list[ResourceAssignment] = field(default_factory=list)
    project: Project | None = None
    previous_status: ProjectStatus | None = None

    @property
    def status_changed(self) -> bool:
        return self.project is not None and self.project.status != self.previous_status


class StaffingEngine:
    """Implements the staffing and kickoff operations over a shared store.

    Args:
        session_factory: Factory producing AsyncSession instances.
        config: Application configuration (kickoff and relay sections are used).
        relay: Change relay receiving deltas; a private one is created if omitted.
        notifier: Optional webhook notifier for best-effort forwarding.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        config: TeamDashConfig | None = None,
        relay: ChangeRelay | None = None,
        notifier: WebhookNotifier | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.config = config or TeamDashConfig()
        self.relay = relay or ChangeRelay(queue_size=self.config.relay.queue_size)
        self.notifier = notifier
        self.state_machine = AssignmentStateMachine()
        self.kickoff = KickoffOrchestrator(session_factory, self.kickoff_config, notifier)
        self.logger = logger.bind(component="StaffingEngine")

    @property
    def kickoff_config(self) -> KickoffConfig:
        return self.config.kickoff

    # ------------------------------------------------------------------
    # Loading helpers
    # ------------------------------------------------------------------

    async def _load_project(self, session: AsyncSession, project_id: uuid.UUID) -> Project:
        project = await get_project(session, project_id, refresh=True)
        if project is None:
            raise NotFoundError("project", project_id)
        return project

    async def _load_assignment(
        self, session: AsyncSession, assignment_id: uuid.UUID
    ) -> ResourceAssignment:
        assignment = await get_assignment(session, assignment_id, refresh=True)
        if assignment is None:
            raise NotFoundError("assignment", assignment_id)
        return assignment

    async def _load_candidate(
        self, session: AsyncSession, candidate_id: uuid.UUID
    ) -> CandidateProfile:
        candidate = await get_candidate(session, candidate_id)
        if candidate is None:
            raise NotFoundError("candidate", candidate_id)
        return candidate

    @staticmethod
    def _require_active(project: Project) -> None:
        if project.is_terminal:
            raise PreconditionViolation(
                "project_active", f"project is {project.status.value}"
            )

    async def _recompute(
        self, session: AsyncSession, project: Project, changes: _Changes
    ) -> ProjectStatus:
        if changes.project is None:
            changes.project = project
            changes.previous_status = project.status
        return await recompute_project_status(session, project)

    async def _publish(self, changes: _Changes) -> None:
        """Publish collected deltas; the relay never raises on slow consumers."""
        for assignment in changes.assignments:
            await self.relay.publish(
                assignment.project_id, ChangeType.ASSIGNMENT_CHANGED, assignment_delta(assignment)
            )
        if changes.project is not None:
            await self.relay.publish(
                changes.project.id, ChangeType.PROJECT_STATUS, project_delta(changes.project)
            )

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def create_project(
        self,
        owner_id: uuid.UUID,
        title: str,
        start_date: date,
        description: str | None = None,
        due_date: date | None = None,
        client_budget: Decimal | None = None,
    ) -> Project:
        """Create a project owned by a client. New projects start paused.

        Raises:
            NotFoundError: If the owner does not exist.
            PreconditionViolation: If the due date precedes the start date.
        """
        if due_date is not None and due_date < start_date:
            raise PreconditionViolation("valid_dates", "due date precedes start date")

        async with self.session_factory() as session, session.begin():
            if await get_client(session, owner_id) is None:
                raise NotFoundError("client", owner_id)
            project = await insert_project(
                session,
                owner_id=owner_id,
                title=title,
                start_date=start_date,
                description=description,
                due_date=due_date,
                client_budget=client_budget,
            )
        return project

    async def get_project(self, project_id: uuid.UUID) -> Project:
        async with self.session_factory() as session:
            return await self._load_project(session, project_id)

    async def list_projects(
        self,
        owner_id: uuid.UUID | None = None,
        status_filter: ProjectStatus | None = None,
    ) -> list[Project]:
        async with self.session_factory() as session:
            return await list_projects(session, owner_id=owner_id, status_filter=status_filter)

    async def get_assignment(self, assignment_id: uuid.UUID) -> ResourceAssignment:
        async with self.session_factory() as session:
            return await self._load_assignment(session, assignment_id)

    async def list_assignments(
        self, project_id: uuid.UUID, include_retired: bool = True
    ) -> list[ResourceAssignment]:
        async with self.session_factory() as session:
            await self._load_project(session, project_id)
            return await list_assignments(session, project_id, include_retired=include_retired)

    async def project_snapshot(self, project_id: uuid.UUID) -> dict[str, Any]:
        """Return the authoritative state of a project for consumer resync.

        The relay sequence is read before the data, so every delta published
        after the snapshot carries a higher sequence than the snapshot.
        """
        sequence = self.relay.current_sequence(project_id)
        async with self.session_factory() as session:
            project = await self._load_project(session, project_id)
            assignments = await list_assignments(session, project_id)

        readiness = summarize(assignments)
        return {
            "project": {
                "id": str(project.id),
                "title": project.title,
                **project_delta(project),
            },
            "assignments": [assignment_delta(a) for a in assignments],
            "derived_status": project.status.value,
            "readiness": {
                "active": readiness.active,
                "required": readiness.required,
                "accepted": readiness.accepted,
                "team_ready": readiness.team_ready,
            },
            "sequence": sequence,
            "resync_interval_seconds": self.config.relay.resync_interval_seconds,
        }

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    async def configure_requirement(
        self,
        project_id: uuid.UUID,
        requirement: StaffingRequirement,
        is_automated: bool = False,
    ) -> ResourceAssignment:
        """Add a draft staffing slot to a project.

        Raises:
            NotFoundError: If the project does not exist.
            PreconditionViolation: If the project is completed, archived or deleted.
        """
        bind_project_context(str(project_id))
        changes = _Changes()
        async with self.session_factory() as session, session.begin():
            project = await self._load_project(session, project_id)
            self._require_active(project)
            assignment = await create_assignment(
                session,
                project_id=project_id,
                profession=requirement.profession,
                seniority=requirement.seniority,
                languages=requirement.languages,
                expertises=requirement.expertises,
                is_automated=is_automated,
            )
            changes.assignments.append(assignment)
            await self._recompute(session, project, changes)

        await self._publish(changes)
        return assignment

    async def _fan_out(
        self, session: AsyncSession, project: Project, assignment: ResourceAssignment
    ) -> list[uuid.UUID]:
        """Notify every matching candidate not yet told about this slot."""
        requirement = StaffingRequirement.of(assignment)
        candidates = filter_matching(
            requirement,
            await list_candidates(
                session,
                profession=requirement.profession,
                seniority=requirement.seniority,
                exclude_onboarding=True,
            ),
        )

        notified: list[uuid.UUID] = []
        for candidate in candidates:
            existing = await find_notification(
                session,
                candidate_id=candidate.id,
                notification_type=NotificationType.opportunity,
                assignment_id=assignment.id,
            )
            if existing is not None:
                continue
            await create_notification(
                session,
                candidate_id=candidate.id,
                project_id=project.id,
                notification_type=NotificationType.opportunity,
                title=f"New opportunity: {project.title}",
                description=(
                    f"A {assignment.seniority} {assignment.profession} is needed "
                    f"from {project.start_date.isoformat()}."
                ),
                assignment_id=assignment.id,
            )
            notified.append(candidate.id)

        self.logger.info(
            "booking_fan_out",
            assignment_id=str(assignment.id),
            matching=len(candidates),
            notified=len(notified),
        )
        return notified

    async def request_booking(self, assignment_id: uuid.UUID) -> BookingResult:
        """Open a slot to matching candidates.

        Draft (or declined) slots move to searching and every matching
        candidate receives an opportunity. Requesting again on a searching
        slot re-runs the fan-out, which only reaches candidates not notified
        yet. Automated slots are accepted immediately.

        Raises:
            NotFoundError: If the assignment does not exist.
            PreconditionViolation: If the project is closed or the slot is
                accepted or retired.
        """
        changes = _Changes()
        async with self.session_factory() as session, session.begin():
            assignment = await self._load_assignment(session, assignment_id)
            bind_project_context(str(assignment.project_id), str(assignment_id))
            project = await self._load_project(session, assignment.project_id)
            self._require_active(project)

            notified: list[uuid.UUID] = []
            if assignment.is_automated:
                if assignment.booking_status != BookingStatus.accepted:
                    await self.state_machine.transition(
                        assignment, BookingStatus.accepted, session
                    )
            else:
                if assignment.booking_status != BookingStatus.searching:
                    await self.state_machine.transition(
                        assignment, BookingStatus.searching, session
                    )
                notified = await self._fan_out(session, project, assignment)

            changes.assignments.append(assignment)
            await self._recompute(session, project, changes)

        await self._publish(changes)
        if notified and self.notifier is not None:
            await self.notifier.notify_opportunity(
                project.id, assignment.id, notified, assignment.profession, assignment.seniority
            )
        return BookingResult(assignment=assignment, notified_candidate_ids=notified)

    async def accept(self, assignment_id: uuid.UUID, candidate_id: uuid.UUID) -> ResourceAssignment:
        """Accept a searching slot on behalf of a candidate.

        The write is conditional on the slot still searching; of several
        concurrent acceptors exactly one wins. Re-running a successful
        accept for the same candidate is a no-op.

        Raises:
            NotFoundError: If the assignment or candidate does not exist.
            PreconditionViolation: If the slot is still a draft, is automated,
                the project is closed, or the candidate does not qualify.
            ConflictError: If another candidate holds the slot or it was retired.
        """
        changes = _Changes()
        losers: list[uuid.UUID] = []
        async with self.session_factory() as session, session.begin():
            assignment = await self._load_assignment(session, assignment_id)
            bind_project_context(str(assignment.project_id), str(assignment_id))
            candidate = await self._load_candidate(session, candidate_id)
            project = await self._load_project(session, assignment.project_id)
            self._require_active(project)

            if assignment.is_automated:
                raise PreconditionViolation("human_slot", "automated slots cannot be accepted")

            if assignment.booking_status == BookingStatus.accepted:
                if assignment.candidate_id == candidate_id:
                    self.logger.info("accept_replayed", candidate_id=str(candidate_id))
                    return assignment
                raise ConflictError("opportunity just taken", str(assignment_id))

            if assignment.booking_status == BookingStatus.completed:
                raise ConflictError("opportunity no longer available", str(assignment_id))

            if assignment.booking_status != BookingStatus.searching:
                raise InvalidTransitionError(
                    assignment.booking_status, BookingStatus.accepted, str(assignment_id)
                )

            if not matches(StaffingRequirement.of(assignment), candidate):
                raise PreconditionViolation(
                    "candidate_matches", "candidate does not satisfy the requirement"
                )

            if not await claim_assignment(session, assignment_id, candidate_id):
                current = await self._load_assignment(session, assignment_id)
                if (
                    current.booking_status == BookingStatus.accepted
                    and current.candidate_id == candidate_id
                ):
                    return current
                self.logger.info(
                    "accept_conflict",
                    candidate_id=str(candidate_id),
                    current_status=current.booking_status.value,
                )
                raise ConflictError("opportunity just taken", str(assignment_id))

            assignment = await self._load_assignment(session, assignment_id)
            self.logger.info(
                "assignment_accepted",
                candidate_id=str(candidate_id),
                from_status=BookingStatus.searching.value,
                to_status=BookingStatus.accepted.value,
            )

            losers = [
                n.candidate_id
                for n in await list_notifications(
                    session,
                    assignment_id=assignment_id,
                    notification_type=NotificationType.opportunity,
                )
                if n.candidate_id != candidate_id and n.status in OPEN_NOTIFICATION_STATUSES
            ]
            await set_opportunity_status(
                session, assignment_id, NotificationStatus.accepted, candidate_id=candidate_id
            )
            await set_opportunity_status(
                session,
                assignment_id,
                NotificationStatus.expired,
                exclude_candidate_id=candidate_id,
            )

            changes.assignments.append(assignment)
            await self._recompute(session, project, changes)

        await self._publish(changes)

        if losers and self.notifier is not None:
            await self.notifier.notify_opportunity_taken(project.id, assignment_id, losers)

        if changes.status_changed and project.status == ProjectStatus.live:
            # Team complete again after a replacement: bring the newcomer in
            await self._run_enrichment(project, None)

        return assignment

    async def decline(self, assignment_id: uuid.UUID, candidate_id: uuid.UUID) -> ResourceAssignment:
        """Record that a candidate passes on a searching slot.

        The slot stays searching with no candidate; nothing is re-queued.

        Raises:
            NotFoundError: If the assignment or candidate does not exist.
            PreconditionViolation: If the slot is not searching.
        """
        changes = _Changes()
        async with self.session_factory() as session, session.begin():
            assignment = await self._load_assignment(session, assignment_id)
            bind_project_context(str(assignment.project_id), str(assignment_id))
            await self._load_candidate(session, candidate_id)

            if assignment.booking_status != BookingStatus.searching:
                raise InvalidTransitionError(
                    assignment.booking_status, BookingStatus.declined, str(assignment_id)
                )

            assignment.candidate_id = None
            await set_opportunity_status(
                session, assignment_id, NotificationStatus.declined, candidate_id=candidate_id
            )
            await session.flush()
            changes.assignments.append(assignment)

        self.logger.info("assignment_declined", candidate_id=str(candidate_id))
        await self._publish(changes)
        return assignment

    async def analyze_requirement_change(
        self, assignment_id: uuid.UUID, requirement: StaffingRequirement
    ) -> RequirementChangeAnalysis:
        """Preview the effect of a requirement edit without applying it."""
        async with self.session_factory() as session:
            assignment = await self._load_assignment(session, assignment_id)
            candidate = None
            if assignment.candidate_id is not None:
                candidate = await get_candidate(session, assignment.candidate_id)
            return analyze_requirement_change(
                StaffingRequirement.of(assignment), requirement, candidate
            )

    async def edit_requirement(
        self,
        project_id: uuid.UUID,
        assignment_id: uuid.UUID,
        requirement: StaffingRequirement,
    ) -> RequirementEditResult:
        """Change the requirement of a slot.

        Draft and automated slots are updated in place, as are searching and
        accepted slots when the edit does not force a new booking; a searching
        slot is then offered to any candidate the edit newly admits. Otherwise
        the slot is retired with ``requirement_changed``, the displaced
        candidate loses access, and a searching replacement is created and
        fanned out.

        The retire is conditional on the status that was read. If an accept
        lands in between, the slot is reloaded and the edit is judged again
        against the new holder.

        Raises:
            NotFoundError: If the project or assignment does not exist.
            PreconditionViolation: If the slot is retired or belongs to
                another project, or the project is closed.
            ConflictError: If the slot keeps changing under the edit.
        """
        bind_project_context(str(project_id), str(assignment_id))
        changes = _Changes()
        replacement: ResourceAssignment | None = None
        displaced: uuid.UUID | None = None
        notified: list[uuid.UUID] = []

        async with self.session_factory() as session, session.begin():
            project = await self._load_project(session, project_id)
            self._require_active(project)

            for attempt in range(1, EDIT_ATTEMPTS + 1):
                assignment = await self._load_assignment(session, assignment_id)
                if assignment.project_id != project_id:
                    raise PreconditionViolation(
                        "assignment_in_project", "assignment belongs to another project"
                    )
                if assignment.booking_status in (BookingStatus.completed, BookingStatus.declined):
                    raise PreconditionViolation(
                        "editable_assignment",
                        f"cannot edit a {assignment.booking_status.value} assignment",
                    )

                candidate = None
                if assignment.candidate_id is not None:
                    candidate = await get_candidate(session, assignment.candidate_id)
                analysis = analyze_requirement_change(
                    StaffingRequirement.of(assignment), requirement, candidate
                )

                in_place = (
                    analysis.impact == ChangeImpact.NO_IMPACT
                    or assignment.booking_status == BookingStatus.draft
                    or assignment.is_automated
                    or (
                        assignment.booking_status
                        in (BookingStatus.searching, BookingStatus.accepted)
                        and not analysis.requires_rebooking
                    )
                )
                if in_place:
                    break

                try:
                    await self.state_machine.retire(
                        assignment, RetireReason.requirement_changed, session
                    )
                except ConflictError:
                    # The slot moved on since it was read; judge the edit again
                    self.logger.info(
                        "requirement_edit_reloaded",
                        attempt=attempt,
                        expected_status=assignment.booking_status.value,
                    )
                    if attempt == EDIT_ATTEMPTS:
                        raise
                    continue
                displaced = assignment.candidate_id
                break

            if in_place:
                if analysis.impact != ChangeImpact.NO_IMPACT:
                    await update_requirement(
                        session,
                        assignment,
                        requirement.profession,
                        requirement.seniority,
                        requirement.languages,
                        requirement.expertises,
                    )
                    changes.assignments.append(assignment)
                    if assignment.booking_status == BookingStatus.searching:
                        # A relaxed requirement can reach candidates not yet told
                        notified = await self._fan_out(session, project, assignment)
            else:
                await set_opportunity_status(
                    session, assignment.id, NotificationStatus.expired
                )
                if displaced is not None:
                    await create_notification(
                        session,
                        candidate_id=displaced,
                        project_id=project_id,
                        notification_type=NotificationType.access_revoked,
                        title=f"Access removed: {project.title}",
                        description="The requirement of your role changed and the slot was re-opened.",
                        assignment_id=assignment.id,
                    )

                replacement = await create_assignment(
                    session,
                    project_id=project_id,
                    profession=requirement.profession,
                    seniority=requirement.seniority,
                    languages=requirement.languages,
                    expertises=requirement.expertises,
                    booking_status=BookingStatus.searching,
                    replaces_id=assignment.id,
                )
                assignment.replaced_by_id = replacement.id
                await session.flush()
                notified = await self._fan_out(session, project, replacement)
                changes.assignments.extend([assignment, replacement])

                self.logger.info(
                    "assignment_replaced",
                    replacement_id=str(replacement.id),
                    impact=analysis.impact.value,
                    displaced_candidate_id=str(displaced) if displaced else None,
                )

            await self._recompute(session, project, changes)

        await self._publish(changes)

        if self.notifier is not None:
            if displaced is not None:
                await self.notifier.notify_access_revoked(
                    project_id, assignment_id, displaced, RetireReason.requirement_changed.value
                )
            if notified:
                opened = replacement or assignment
                await self.notifier.notify_opportunity(
                    project_id, opened.id, notified, opened.profession, opened.seniority
                )

        return RequirementEditResult(
            analysis=analysis,
            assignment=assignment,
            replacement=replacement,
            notified_candidate_ids=notified,
        )

    # ------------------------------------------------------------------
    # Kickoff and administrative transitions
    # ------------------------------------------------------------------

    async def start_project(
        self, project_id: uuid.UUID, kickoff_at: datetime | None = None
    ) -> KickoffReport:
        """Kick off a fully staffed project.

        The project is flipped to live by a conditional write before any
        side effect, so a concurrent or repeated start is rejected. The
        enrichment steps then run with per-step failure isolation.

        Raises:
            NotFoundError: If the project does not exist.
            PreconditionViolation: If the project is already live, closed, or
                not fully staffed.
        """
        bind_project_context(str(project_id))
        changes = _Changes()
        async with self.session_factory() as session, session.begin():
            project = await self._load_project(session, project_id)
            self._require_active(project)
            if project.status == ProjectStatus.live:
                raise PreconditionViolation("not_live", "project is already live")

            readiness = summarize(await list_assignments(session, project_id))
            if not readiness.team_ready:
                raise PreconditionViolation(
                    "team_ready",
                    f"{readiness.accepted} of {readiness.required} required slots accepted",
                )

            changes.project = project
            changes.previous_status = project.status
            if not await claim_kickoff(session, project_id):
                raise PreconditionViolation("not_live", "project is already live")
            project = await self._load_project(session, project_id)
            changes.project = project

        self.logger.info(
            "project_kickoff_started",
            from_status=changes.previous_status.value,
            to_status=project.status.value,
        )
        await self._publish(changes)

        return await self._run_enrichment(project, kickoff_at)

    async def retry_kickoff(
        self, project_id: uuid.UUID, kickoff_at: datetime | None = None
    ) -> KickoffReport:
        """Re-run the enrichment steps of a project that is already live.

        Used after ``start_project`` reported failed steps or was interrupted
        once the project had gone live. Every step is idempotent, so only the
        missing roster entries, scaffolding, event and invitations are created.

        Raises:
            NotFoundError: If the project does not exist.
            PreconditionViolation: If the project has not been kicked off or
                is not live.
        """
        bind_project_context(str(project_id))
        async with self.session_factory() as session:
            project = await self._load_project(session, project_id)
        if not project.kickoff_confirmed or project.status != ProjectStatus.live:
            raise PreconditionViolation(
                "kicked_off", f"project is {project.status.value} and has not gone live"
            )

        self.logger.info("project_kickoff_retried")
        return await self._run_enrichment(project, kickoff_at)

    async def _run_enrichment(
        self, project: Project, kickoff_at: datetime | None
    ) -> KickoffReport:
        report = await self.kickoff.run(project.id, kickoff_at)

        changes = _Changes()
        async with self.session_factory() as session, session.begin():
            current = await self._load_project(session, project.id)
            await self._recompute(session, current, changes)

        await self.relay.publish(
            project.id,
            ChangeType.KICKOFF_COMPLETED,
            {**project_delta(changes.project), "report": report.to_dict()},
        )
        if self.notifier is not None and changes.project.status == ProjectStatus.live:
            await self.notifier.notify_project_live(project.id, project.title)
        return report

    @staticmethod
    def _check_project_action(action: str, project: Project) -> None:
        if not validate_project_action(action, project.status):
            raise PreconditionViolation(
                f"{action}_allowed", f"cannot {action} a {project.status.value} project"
            )

    async def pause_project(self, project_id: uuid.UUID) -> Project:
        """Pause a project on the client's request.

        Clears the kickoff confirmation: a fresh ``start_project`` is needed
        to go live again.
        """
        bind_project_context(str(project_id))
        changes = _Changes()
        async with self.session_factory() as session, session.begin():
            project = await self._load_project(session, project_id)
            self._check_project_action("pause", project)
            changes.project = project
            changes.previous_status = project.status
            project.manually_paused = True
            project.kickoff_confirmed = False
            await self._recompute(session, project, changes)

        self.logger.info("project_paused", from_status=changes.previous_status.value)
        await self._publish(changes)
        return project

    async def resume_project(self, project_id: uuid.UUID) -> Project:
        """Lift a manual pause and re-derive the project status."""
        bind_project_context(str(project_id))
        changes = _Changes()
        async with self.session_factory() as session, session.begin():
            project = await self._load_project(session, project_id)
            self._check_project_action("resume", project)
            if not project.manually_paused:
                raise PreconditionViolation("manually_paused", "project is not paused by the client")
            changes.project = project
            changes.previous_status = project.status
            project.manually_paused = False
            await self._recompute(session, project, changes)

        self.logger.info("project_resumed", to_status=project.status.value)
        await self._publish(changes)
        return project

    async def _retire_open(
        self, session: AsyncSession, assignment: ResourceAssignment, reason: RetireReason
    ) -> bool:
        """Retire a slot unless it is already retired.

        A conflicting write means the slot moved forward in its lifecycle;
        the slot is reloaded and retired from its new status.
        """
        while assignment.booking_status != BookingStatus.completed:
            try:
                await self.state_machine.retire(assignment, reason, session)
                return True
            except ConflictError:
                assignment = await self._load_assignment(session, assignment.id)
        return False

    async def _close_project(
        self,
        project_id: uuid.UUID,
        action: str,
        target: ProjectStatus,
        reason: RetireReason | None,
    ) -> Project:
        bind_project_context(str(project_id))
        changes = _Changes()
        async with self.session_factory() as session, session.begin():
            project = await self._load_project(session, project_id)
            self._check_project_action(action, project)
            changes.project = project
            changes.previous_status = project.status

            if reason is not None:
                for assignment in await list_assignments(session, project_id):
                    if not await self._retire_open(session, assignment, reason):
                        continue
                    await set_opportunity_status(
                        session, assignment.id, NotificationStatus.expired
                    )
                    changes.assignments.append(assignment)

            project.status = target
            if project.closed_at is None:
                project.closed_at = utcnow()
            await session.flush()

        self.logger.info(
            "project_closed",
            action=action,
            from_status=changes.previous_status.value,
            to_status=target.value,
            retired=len(changes.assignments),
        )
        await self._publish(changes)
        return project

    async def complete_project(self, project_id: uuid.UUID) -> Project:
        """Close a delivered project, retiring its open slots."""
        return await self._close_project(
            project_id, "complete", ProjectStatus.completed, RetireReason.project_completed
        )

    async def archive_project(self, project_id: uuid.UUID) -> Project:
        """Archive a project."""
        return await self._close_project(project_id, "archive", ProjectStatus.archived, None)

    async def delete_project(self, project_id: uuid.UUID) -> Project:
        """Soft-delete a project, cancelling its open slots."""
        return await self._close_project(
            project_id, "delete", ProjectStatus.deleted, RetireReason.project_cancelled
        )
