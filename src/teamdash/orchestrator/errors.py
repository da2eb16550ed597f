"""Engine error hierarchy for TeamDash.

Every failure the staffing engine reports to a caller is an ``EngineError``.
The web layer maps the subclasses onto HTTP responses:

- ``NotFoundError`` -> 404
- ``PreconditionViolation`` (and ``InvalidTransitionError``) -> 422
- ``ConflictError`` -> 409

Store outages are not wrapped: SQLAlchemy's ``OperationalError`` and
``InterfaceError`` propagate and are reported as retryable 503 responses.
"""

from __future__ import annotations

import enum


class EngineError(Exception):
    """Base class for staffing engine errors."""


class NotFoundError(EngineError):
    """Raised when a referenced entity does not exist.

    Attributes:
        entity: Kind of entity (``project``, ``assignment``, ...).
        entity_id: Identifier that was looked up.
    """

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = str(entity_id)
        super().__init__(f"{entity} {entity_id} not found")


class PreconditionViolation(EngineError):
    """Raised when an operation is invoked in a state that does not allow it.

    Precondition violations are caller errors and are never retried.

    Attributes:
        invariant: Short machine-readable name of the violated rule.
        message: Human-readable explanation.
    """

    def __init__(self, invariant: str, message: str):
        self.invariant = invariant
        self.message = message
        super().__init__(f"{invariant}: {message}")


class InvalidTransitionError(PreconditionViolation):
    """Raised when a state transition is not allowed by the state machine.

    Attributes:
        current: The current status.
        target: The attempted target status.
        entity_id: Identifier of the assignment or project.
    """

    def __init__(self, current: enum.Enum, target: enum.Enum, entity_id: str | None = None):
        self.current = current
        self.target = target
        self.entity_id = entity_id
        msg = f"Invalid transition from {current.value} to {target.value}"
        if entity_id:
            msg += f" for {entity_id}"
        super().__init__("valid_transition", msg)


class ConflictError(EngineError):
    """Raised when a concurrent writer won a compare-and-swap.

    Attributes:
        assignment_id: Slot that was contested.
    """

    def __init__(self, message: str, assignment_id: str | None = None):
        self.assignment_id = assignment_id
        self.message = message
        super().__init__(message)
