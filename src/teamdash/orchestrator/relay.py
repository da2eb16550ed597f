"""Change notification relay for TeamDash.

Pushes assignment and project deltas to observers subscribed to a project.
Delivery is best effort and at most once: every subscriber owns a bounded
queue, and an event that does not fit is dropped for that subscriber. Each
project has its own monotonically increasing sequence so that consumers can
discard stale deltas and detect gaps; there is no ordering across projects.

Consumers are expected to refetch a full snapshot (see
``StaffingEngine.project_snapshot``) when they connect, when they detect a
gap, and periodically. The snapshot always wins over any delta, and the
project status is re-derived locally from the assignment set (see
``ProjectView``) rather than trusted from a delta.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from collections import defaultdict
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID

from teamdash.database.models.assignment import BookingStatus, ResourceAssignment
from teamdash.database.models.project import Project, ProjectStatus
from teamdash.logging import get_logger
from teamdash.orchestrator.aggregator import derive_status

logger = get_logger(__name__)


class ChangeType(str, Enum):
    """Types of change events."""

    ASSIGNMENT_CHANGED = "assignment_changed"
    PROJECT_STATUS = "project_status"
    KICKOFF_COMPLETED = "kickoff_completed"


@dataclass
class ChangeEvent:
    """A delta published for one project."""

    change: ChangeType
    project_id: UUID
    sequence: int
    data: dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_sse(self, retry_ms: int | None = None) -> dict[str, Any]:
        """Convert event to dictionary format for SSE transmission."""
        result: dict[str, Any] = {
            "event": self.change.value,
            "id": str(self.sequence),
            "data": json.dumps(
                {
                    "project_id": str(self.project_id),
                    "sequence": self.sequence,
                    "timestamp": self.timestamp.isoformat(),
                    **self.data,
                }
            ),
        }
        if retry_ms is not None:
            result["retry"] = retry_ms
        return result


def assignment_delta(assignment: ResourceAssignment) -> dict[str, Any]:
    """Serialise the parts of an assignment observers care about."""
    return {
        "assignment_id": str(assignment.id),
        "booking_status": assignment.booking_status.value,
        "is_automated": assignment.is_automated,
        "candidate_id": str(assignment.candidate_id) if assignment.candidate_id else None,
        "profession": assignment.profession,
        "seniority": assignment.seniority,
        "retired_reason": assignment.retired_reason.value if assignment.retired_reason else None,
        "replaces_id": str(assignment.replaces_id) if assignment.replaces_id else None,
    }


def project_delta(project: Project) -> dict[str, Any]:
    """Serialise the status fields of a project."""
    return {
        "status": project.status.value,
        "kickoff_confirmed": project.kickoff_confirmed,
        "manually_paused": project.manually_paused,
    }


class ChangeRelay:
    """Per-project fan-out of change events to subscriber queues.

    Attributes:
        queue_size: Capacity of each subscriber queue.
    """

    def __init__(self, queue_size: int = 100) -> None:
        self.queue_size = queue_size
        self._queues: dict[UUID, list[asyncio.Queue[ChangeEvent | None]]] = defaultdict(list)
        self._sequences: dict[UUID, int] = defaultdict(int)
        self._lock = asyncio.Lock()
        self.logger = logger.bind(component="ChangeRelay")

    def current_sequence(self, project_id: UUID) -> int:
        """Return the sequence of the latest event published for a project."""
        return self._sequences.get(project_id, 0)

    def subscriber_count(self, project_id: UUID) -> int:
        return len(self._queues.get(project_id, ()))

    @contextlib.asynccontextmanager
    async def subscription(
        self, project_id: UUID
    ) -> AsyncIterator[asyncio.Queue[ChangeEvent | None]]:
        """Register a subscriber queue for the duration of the context.

        ``None`` on the queue signals relay shutdown.
        """
        queue: asyncio.Queue[ChangeEvent | None] = asyncio.Queue(maxsize=self.queue_size)
        async with self._lock:
            self._queues[project_id].append(queue)
        self.logger.info(
            "relay_subscriber_connected",
            project_id=str(project_id),
            subscribers=self.subscriber_count(project_id),
        )
        try:
            yield queue
        finally:
            async with self._lock:
                self._queues[project_id].remove(queue)
                if not self._queues[project_id]:
                    del self._queues[project_id]
            self.logger.info(
                "relay_subscriber_disconnected",
                project_id=str(project_id),
                subscribers=self.subscriber_count(project_id),
            )

    async def subscribe(self, project_id: UUID) -> AsyncIterator[ChangeEvent]:
        """Subscribe to a project's events, yields events as they arrive."""
        async with self.subscription(project_id) as queue:
            while True:
                event = await queue.get()
                if event is None:  # Shutdown signal
                    break
                yield event

    async def publish(
        self,
        project_id: UUID,
        change: ChangeType,
        data: dict[str, Any],
    ) -> ChangeEvent:
        """Publish a change event to every subscriber of the project.

        Full subscriber queues drop the event; the consumer recovers by
        noticing the sequence gap and refetching a snapshot.

        Args:
            project_id: Project the change belongs to.
            change: Kind of change.
            data: Event payload.

        Returns:
            The published event.
        """
        async with self._lock:
            self._sequences[project_id] += 1
            event = ChangeEvent(
                change=change,
                project_id=project_id,
                sequence=self._sequences[project_id],
                data=data,
            )
            queues = list(self._queues.get(project_id, ()))

        dropped = 0
        for queue in queues:
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                dropped += 1

        if dropped:
            self.logger.warning(
                "relay_event_dropped",
                project_id=str(project_id),
                change=change.value,
                sequence=event.sequence,
                dropped=dropped,
            )
        self.logger.debug(
            "relay_event_published",
            project_id=str(project_id),
            change=change.value,
            sequence=event.sequence,
            subscribers=len(queues),
        )
        return event

    async def close(self) -> None:
        """Signal every subscriber to stop."""
        async with self._lock:
            queues = [queue for group in self._queues.values() for queue in group]
        for queue in queues:
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(None)


@dataclass
class AssignmentView:
    """Consumer-side copy of one assignment."""

    assignment_id: str
    booking_status: BookingStatus
    is_automated: bool
    candidate_id: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> AssignmentView:
        return cls(
            assignment_id=str(payload["assignment_id"]),
            booking_status=BookingStatus(payload["booking_status"]),
            is_automated=bool(payload["is_automated"]),
            candidate_id=payload.get("candidate_id"),
        )


class ProjectView:
    """Consumer-side projection of a project fed by snapshots and deltas.

    Snapshots replace the whole view. Deltas older than the view are ignored,
    and a skipped sequence number flags the view for resynchronisation. The
    status is always re-derived from the assignment set.
    """

    def __init__(self, project_id: UUID) -> None:
        self.project_id = project_id
        self.sequence = 0
        self.stored_status = ProjectStatus.paused
        self.kickoff_confirmed = False
        self.manually_paused = False
        self.assignments: dict[str, AssignmentView] = {}
        self.needs_resync = True

    def apply_snapshot(self, snapshot: dict[str, Any]) -> None:
        """Replace the view with a full snapshot."""
        project = snapshot["project"]
        self.stored_status = ProjectStatus(project["status"])
        self.kickoff_confirmed = bool(project["kickoff_confirmed"])
        self.manually_paused = bool(project["manually_paused"])
        self.assignments = {
            str(item["assignment_id"]): AssignmentView.from_payload(item)
            for item in snapshot["assignments"]
        }
        self.sequence = int(snapshot["sequence"])
        self.needs_resync = False

    def apply(self, event: ChangeEvent) -> bool:
        """Apply a delta.

        Returns:
            True if the delta changed the view, False if it was stale.
        """
        if event.sequence <= self.sequence:
            return False
        if event.sequence > self.sequence + 1:
            self.needs_resync = True

        if event.change == ChangeType.ASSIGNMENT_CHANGED:
            view = AssignmentView.from_payload(event.data)
            self.assignments[view.assignment_id] = view
        elif event.change in (ChangeType.PROJECT_STATUS, ChangeType.KICKOFF_COMPLETED):
            if "status" in event.data:
                self.stored_status = ProjectStatus(event.data["status"])
            self.kickoff_confirmed = bool(
                event.data.get("kickoff_confirmed", self.kickoff_confirmed)
            )
            self.manually_paused = bool(event.data.get("manually_paused", self.manually_paused))

        self.sequence = event.sequence
        return True

    @property
    def status(self) -> ProjectStatus:
        """Project status derived from the current assignment set."""
        return derive_status(
            self.stored_status,
            self.kickoff_confirmed,
            self.manually_paused,
            self.assignments.values(),
        )
