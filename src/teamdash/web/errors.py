"""Exception handlers mapping engine errors onto HTTP responses.

- NotFoundError -> 404
- PreconditionViolation -> 422 naming the violated invariant
- ConflictError -> 409
- store connectivity errors -> 503 with Retry-After
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

from teamdash.logging import get_logger
from teamdash.orchestrator.errors import ConflictError, NotFoundError, PreconditionViolation

logger = get_logger(__name__)

STORE_RETRY_AFTER_SECONDS = 2


async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"error": "not_found", "entity": exc.entity, "detail": str(exc)},
    )


async def handle_precondition(request: Request, exc: PreconditionViolation) -> JSONResponse:
    logger.info(
        "precondition_violation",
        path=request.url.path,
        invariant=exc.invariant,
        detail=exc.message,
    )
    return JSONResponse(
        status_code=422,
        content={
            "error": "precondition_violation",
            "invariant": exc.invariant,
            "detail": exc.message,
        },
    )


async def handle_conflict(request: Request, exc: ConflictError) -> JSONResponse:
    logger.info("conflict", path=request.url.path, assignment_id=exc.assignment_id)
    return JSONResponse(
        status_code=409,
        content={
            "error": "conflict",
            "detail": exc.message,
            "assignment_id": exc.assignment_id,
        },
    )


async def handle_store_unavailable(request: Request, exc: Exception) -> JSONResponse:
    logger.error("store_unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=503,
        content={"error": "store_unavailable", "detail": "data store unavailable, retry later"},
        headers={"Retry-After": str(STORE_RETRY_AFTER_SECONDS)},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the engine exception handlers on an application."""
    app.add_exception_handler(NotFoundError, handle_not_found)  # type: ignore[arg-type]
    app.add_exception_handler(PreconditionViolation, handle_precondition)  # type: ignore[arg-type]
    app.add_exception_handler(ConflictError, handle_conflict)  # type: ignore[arg-type]
    app.add_exception_handler(OperationalError, handle_store_unavailable)
    app.add_exception_handler(InterfaceError, handle_store_unavailable)
