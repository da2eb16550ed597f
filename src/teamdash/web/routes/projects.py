"""Project endpoints for TeamDash.

This module provides REST API endpoints for the project lifecycle:
- Create, list and fetch projects
- Fetch an authoritative snapshot for consumer resynchronisation
- Kick off, pause, resume, complete, archive and (soft) delete

Engine errors are translated into HTTP responses by the handlers in
``teamdash.web.errors``.

Example:
    >>> from fastapi import FastAPI
    >>> from teamdash.web.routes.projects import create_projects_router
    >>>
    >>> app = FastAPI()
    >>> app.include_router(create_projects_router())
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi import status as http_status
from pydantic import BaseModel, Field

from teamdash.database.models.project import ProjectStatus
from teamdash.logging import get_logger
from teamdash.orchestrator.engine import StaffingEngine
from teamdash.web.dependencies import get_staffing_engine


logger = get_logger(__name__)


class ProjectCreate(BaseModel):
    """Request schema for creating a project.

    Attributes:
        owner_id: Client creating the project
        title: Project title (1-255 characters)
        description: Optional description
        start_date: Planned start date
        due_date: Optional planned end date
        client_budget: Optional overall budget
    """

    owner_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    start_date: date
    due_date: date | None = None
    client_budget: Decimal | None = Field(default=None, ge=0)


class KickoffRequest(BaseModel):
    """Request schema for starting a project."""

    kickoff_at: datetime | None = None


class ProjectResponse(BaseModel):
    """Response schema for project data."""

    id: UUID
    owner_id: UUID
    title: str
    description: str | None
    start_date: date
    due_date: date | None
    client_budget: Decimal | None
    status: ProjectStatus
    kickoff_confirmed: bool
    manually_paused: bool
    kicked_off_at: datetime | None
    closed_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class KickoffResponse(BaseModel):
    """Response schema for a kickoff run."""

    project: ProjectResponse
    kickoff: dict[str, Any]


def create_projects_router() -> APIRouter:
    """Create projects router.

    Routes:
        POST /projects/ - Create a project
        GET /projects/ - List projects (owner/status filters)
        GET /projects/{project_id} - Get project
        GET /projects/{project_id}/snapshot - Authoritative state for resync
        POST /projects/{project_id}/start - Kick off the project
        POST /projects/{project_id}/pause - Pause on client request
        POST /projects/{project_id}/resume - Lift a manual pause
        POST /projects/{project_id}/complete - Close as delivered
        POST /projects/{project_id}/archive - Archive
        DELETE /projects/{project_id} - Soft delete
    """
    router = APIRouter(prefix="/projects", tags=["projects"])

    @router.post(
        "/",
        response_model=ProjectResponse,
        status_code=http_status.HTTP_201_CREATED,
    )
    async def create_project(
        payload: ProjectCreate,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> Any:
        """Create a project; it starts paused until booking is requested."""
        return await engine.create_project(
            owner_id=payload.owner_id,
            title=payload.title,
            start_date=payload.start_date,
            description=payload.description,
            due_date=payload.due_date,
            client_budget=payload.client_budget,
        )

    @router.get("/", response_model=list[ProjectResponse])
    async def list_projects(
        owner_id: UUID | None = None,
        status_filter: ProjectStatus | None = Query(default=None, alias="status"),  # noqa: B008
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> Any:
        """List projects, newest first."""
        return await engine.list_projects(owner_id=owner_id, status_filter=status_filter)

    @router.get("/{project_id}", response_model=ProjectResponse)
    async def get_project(
        project_id: UUID,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> Any:
        return await engine.get_project(project_id)

    @router.get("/{project_id}/snapshot")
    async def get_snapshot(
        project_id: UUID,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> dict[str, Any]:
        """Full project state. Consumers must prefer it over any delta."""
        return await engine.project_snapshot(project_id)

    @router.post("/{project_id}/start", response_model=KickoffResponse)
    async def start_project(
        project_id: UUID,
        payload: KickoffRequest | None = None,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> Any:
        """Kick off a fully staffed project.

        Returns 422 when the team is incomplete or the project is already
        live. Failures of individual kickoff steps are reported in
        ``kickoff.warnings`` but do not fail the request.
        """
        kickoff_at = payload.kickoff_at if payload else None
        report = await engine.start_project(project_id, kickoff_at)
        project = await engine.get_project(project_id)
        return {"project": project, "kickoff": report.to_dict()}

    @router.post("/{project_id}/kickoff/retry", response_model=KickoffResponse)
    async def retry_kickoff(
        project_id: UUID,
        payload: KickoffRequest | None = None,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> Any:
        """Re-run the kickoff steps of a live project; 422 if it never went live."""
        kickoff_at = payload.kickoff_at if payload else None
        report = await engine.retry_kickoff(project_id, kickoff_at)
        project = await engine.get_project(project_id)
        return {"project": project, "kickoff": report.to_dict()}

    @router.post("/{project_id}/pause", response_model=ProjectResponse)
    async def pause_project(
        project_id: UUID,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> Any:
        return await engine.pause_project(project_id)

    @router.post("/{project_id}/resume", response_model=ProjectResponse)
    async def resume_project(
        project_id: UUID,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> Any:
        return await engine.resume_project(project_id)

    @router.post("/{project_id}/complete", response_model=ProjectResponse)
    async def complete_project(
        project_id: UUID,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> Any:
        return await engine.complete_project(project_id)

    @router.post("/{project_id}/archive", response_model=ProjectResponse)
    async def archive_project(
        project_id: UUID,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> Any:
        return await engine.archive_project(project_id)

    @router.delete("/{project_id}", response_model=ProjectResponse)
    async def delete_project(
        project_id: UUID,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> Any:
        """Soft delete: the project and its history stay queryable."""
        return await engine.delete_project(project_id)

    return router
