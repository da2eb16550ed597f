"""FastAPI dependencies for TeamDash routes.

Everything is read from ``app.state``, populated by the application
lifespan (or directly by tests).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from teamdash.orchestrator.engine import StaffingEngine
    from teamdash.orchestrator.relay import ChangeRelay


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Dependency that retrieves session factory from app state."""
    return request.app.state.session_factory  # type: ignore[return-value]


def get_staffing_engine(request: Request) -> StaffingEngine:
    """Dependency that retrieves the staffing engine from app state."""
    return request.app.state.staffing_engine  # type: ignore[return-value]


def get_relay(request: Request) -> ChangeRelay:
    """Dependency that retrieves the change relay from app state."""
    return request.app.state.relay  # type: ignore[return-value]
