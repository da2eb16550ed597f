"""FastAPI route definitions for TeamDash.

Routers for health checks, projects, assignments and the SSE change feed.
"""

from __future__ import annotations

from teamdash.web.routes.assignments import (
    AssignmentCreate,
    AssignmentResponse,
    RequirementPayload,
    create_assignments_router,
)
from teamdash.web.routes.events import create_events_router
from teamdash.web.routes.health import HealthResponse, ReadinessResponse, create_health_router
from teamdash.web.routes.projects import (
    ProjectCreate,
    ProjectResponse,
    create_projects_router,
)

__all__ = [
    "create_health_router",
    "HealthResponse",
    "ReadinessResponse",
    "create_projects_router",
    "ProjectCreate",
    "ProjectResponse",
    "create_assignments_router",
    "AssignmentCreate",
    "AssignmentResponse",
    "RequirementPayload",
    "create_events_router",
]
