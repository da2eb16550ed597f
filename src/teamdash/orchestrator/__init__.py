"""Staffing orchestration for TeamDash.

This package contains the matching engine, the assignment state machine,
the project status aggregator, the kickoff orchestrator, the change relay
and the ``StaffingEngine`` service that ties them together.
"""

from teamdash.orchestrator.aggregator import derive_status, recompute_project_status, summarize
from teamdash.orchestrator.engine import BookingResult, RequirementEditResult, StaffingEngine
from teamdash.orchestrator.errors import (
    ConflictError,
    EngineError,
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
    matches,
)
from teamdash.orchestrator.relay import ChangeEvent, ChangeRelay, ChangeType, ProjectView
from teamdash.orchestrator.state_machine import (
    VALID_TRANSITIONS,
    AssignmentStateMachine,
    validate_transition,
)

__all__ = [
    "StaffingEngine",
    "BookingResult",
    "RequirementEditResult",
    "EngineError",
    "NotFoundError",
    "PreconditionViolation",
    "ConflictError",
    "InvalidTransitionError",
    "StaffingRequirement",
    "matches",
    "analyze_requirement_change",
    "ChangeImpact",
    "RequirementChangeAnalysis",
    "AssignmentStateMachine",
    "VALID_TRANSITIONS",
    "validate_transition",
    "derive_status",
    "summarize",
    "recompute_project_status",
    "KickoffOrchestrator",
    "KickoffReport",
    "ChangeRelay",
    "ChangeEvent",
    "ChangeType",
    "ProjectView",
]
