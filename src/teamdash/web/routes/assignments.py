"""Resource assignment endpoints for TeamDash.

Covers slot configuration and the booking lifecycle:
- Configure and list a project's staffing slots
- Request booking (fan-out to matching candidates)
- Accept / decline on behalf of a candidate
- Edit a slot's requirement, or preview the impact of an edit
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi import status as http_status
from pydantic import BaseModel, Field

from teamdash.database.models.assignment import BookingStatus, RetireReason
from teamdash.logging import get_logger
from teamdash.orchestrator.engine import StaffingEngine
from teamdash.orchestrator.matching import StaffingRequirement
from teamdash.web.dependencies import get_staffing_engine


logger = get_logger(__name__)


class RequirementPayload(BaseModel):
    """Staffing requirement of a slot.

    Attributes:
        profession: Profession identifier
        seniority: Seniority tier identifier
        languages: Required languages
        expertises: Required expertises
    """

    profession: str = Field(..., min_length=1)
    seniority: str = Field(..., min_length=1)
    languages: list[str] = Field(default_factory=list)
    expertises: list[str] = Field(default_factory=list)

    def to_requirement(self) -> StaffingRequirement:
        return StaffingRequirement.build(
            self.profession, self.seniority, self.languages, self.expertises
        )


class AssignmentCreate(RequirementPayload):
    """Request schema for configuring a slot."""

    is_automated: bool = False


class CandidateAction(BaseModel):
    """Request schema for accept and decline."""

    candidate_id: UUID


class AssignmentResponse(BaseModel):
    """Response schema for assignment data."""

    id: UUID
    project_id: UUID
    profession: str
    seniority: str
    languages: list[str]
    expertises: list[str]
    is_automated: bool
    booking_status: BookingStatus
    candidate_id: UUID | None
    retired_reason: RetireReason | None
    retired_at: datetime | None
    replaces_id: UUID | None
    replaced_by_id: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    """Response schema for a booking request."""

    assignment: AssignmentResponse
    notified_candidate_ids: list[UUID]


class RequirementEditResponse(BaseModel):
    """Response schema for a requirement edit."""

    analysis: dict[str, Any]
    assignment: AssignmentResponse
    replacement: AssignmentResponse | None


def create_assignments_router() -> APIRouter:
    """Create assignments router.

    Routes:
        POST /projects/{project_id}/assignments - Configure a draft slot
        GET /projects/{project_id}/assignments - List slots
        POST /assignments/{assignment_id}/request-booking - Open slot to candidates
        POST /assignments/{assignment_id}/accept - Accept on behalf of a candidate
        POST /assignments/{assignment_id}/decline - Decline on behalf of a candidate
        PUT /assignments/{assignment_id}/requirement - Edit the requirement
        POST /assignments/{assignment_id}/requirement/analyze - Preview an edit
    """
    router = APIRouter(tags=["assignments"])

    @router.post(
        "/projects/{project_id}/assignments",
        response_model=AssignmentResponse,
        status_code=http_status.HTTP_201_CREATED,
    )
    async def configure_requirement(
        project_id: UUID,
        payload: AssignmentCreate,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> Any:
        """Add a draft slot to a project."""
        return await engine.configure_requirement(
            project_id, payload.to_requirement(), is_automated=payload.is_automated
        )

    @router.get("/projects/{project_id}/assignments", response_model=list[AssignmentResponse])
    async def list_assignments(
        project_id: UUID,
        include_retired: bool = True,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> Any:
        return await engine.list_assignments(project_id, include_retired=include_retired)

    @router.post("/assignments/{assignment_id}/request-booking", response_model=BookingResponse)
    async def request_booking(
        assignment_id: UUID,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> Any:
        """Move a slot to searching and notify matching candidates."""
        result = await engine.request_booking(assignment_id)
        return {
            "assignment": result.assignment,
            "notified_candidate_ids": result.notified_candidate_ids,
        }

    @router.post("/assignments/{assignment_id}/accept", response_model=AssignmentResponse)
    async def accept(
        assignment_id: UUID,
        payload: CandidateAction,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> Any:
        """Accept a searching slot.

        Returns 409 when another candidate accepted first.
        """
        return await engine.accept(assignment_id, payload.candidate_id)

    @router.post("/assignments/{assignment_id}/decline", response_model=AssignmentResponse)
    async def decline(
        assignment_id: UUID,
        payload: CandidateAction,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> Any:
        return await engine.decline(assignment_id, payload.candidate_id)

    @router.put(
        "/assignments/{assignment_id}/requirement", response_model=RequirementEditResponse
    )
    async def edit_requirement(
        assignment_id: UUID,
        payload: RequirementPayload,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> Any:
        """Edit a slot's requirement, re-opening it when the holder no longer qualifies."""
        assignment = await engine.get_assignment(assignment_id)
        result = await engine.edit_requirement(
            assignment.project_id, assignment_id, payload.to_requirement()
        )
        return {
            "analysis": result.analysis.to_dict(),
            "assignment": result.assignment,
            "replacement": result.replacement,
        }

    @router.post("/assignments/{assignment_id}/requirement/analyze")
    async def analyze_requirement(
        assignment_id: UUID,
        payload: RequirementPayload,
        engine: StaffingEngine = Depends(get_staffing_engine),  # noqa: B008
    ) -> dict[str, Any]:
        """Preview the impact of a requirement edit without applying it."""
        analysis = await engine.analyze_requirement_change(
            assignment_id, payload.to_requirement()
        )
        return analysis.to_dict()

    return router
