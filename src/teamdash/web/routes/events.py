"""Server-Sent Events endpoint for project change feeds.

``GET /events/projects/{project_id}/stream`` streams the deltas published to
the change relay for one project. Delivery is best effort; the ``retry``
field advertises the resynchronisation interval, and clients refetch
``/projects/{project_id}/snapshot`` on connect and whenever they see a gap
in the event ids.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sse_starlette.sse import EventSourceResponse

from teamdash.logging import get_logger
from teamdash.orchestrator.engine import StaffingEngine
from teamdash.orchestrator.relay import ChangeRelay
from teamdash.web.dependencies import get_relay, get_staffing_engine


logger = get_logger(__name__)


def create_events_router() -> APIRouter:
    """Create the events router with the per-project SSE stream."""
    router = APIRouter(prefix="/events", tags=["events"])

    @router.get("/projects/{project_id}/stream")
    async def stream_project_events(
        project_id: UUID,
        request: Request,
        relay: ChangeRelay = Depends(get_relay),  # noqa: B008
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> EventSourceResponse:
        """Stream a project's change events until the client disconnects.

        Returns 404 for an unknown project.
        """
        await engine.get_project(project_id)
        retry_ms = engine.config.relay.resync_interval_seconds * 1000

        async def event_generator() -> AsyncIterator[dict[str, Any]]:
            async for event in relay.subscribe(project_id):
                if await request.is_disconnected():
                    break
                yield event.to_sse(retry_ms)

        return EventSourceResponse(event_generator())

    return router
