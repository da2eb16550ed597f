"""FastAPI application factory for TeamDash.

This module provides the main application factory function that creates
and configures a FastAPI application with:
- CORS middleware for cross-origin requests
- Request logging middleware with correlation IDs
- Engine error to HTTP status mapping
- Database, relay and notifier lifecycle management

Example usage:
    >>> from teamdash.config import TeamDashConfig
    >>> from teamdash.web.app import create_app
    >>>
    >>> app = create_app(TeamDashConfig())
    >>>
    >>> import uvicorn
    >>> uvicorn.run(app, host="0.0.0.0", port=8000)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from teamdash import __version__
from teamdash.config import TeamDashConfig
from teamdash.database.connection import get_engine, get_session_factory
from teamdash.integrations.webhook import WebhookNotifier
from teamdash.logging import get_logger
from teamdash.orchestrator.engine import StaffingEngine
from teamdash.orchestrator.relay import ChangeRelay
from teamdash.web.errors import register_error_handlers
from teamdash.web.middleware import RequestLoggingMiddleware
from teamdash.web.routes.assignments import create_assignments_router
from teamdash.web.routes.events import create_events_router
from teamdash.web.routes.health import create_health_router
from teamdash.web.routes.projects import create_projects_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


def attach_services(
    app: FastAPI,
    session_factory: async_sessionmaker[AsyncSession],
    notifier: WebhookNotifier | None = None,
) -> StaffingEngine:
    """Store the session factory, relay and staffing engine in ``app.state``.

    Args:
        app: Application created by ``create_app``.
        session_factory: Session factory bound to the store.
        notifier: Optional webhook notifier.

    Returns:
        The StaffingEngine the routes will use.
    """
    config: TeamDashConfig = app.state.config
    relay = ChangeRelay(queue_size=config.relay.queue_size)
    staffing_engine = StaffingEngine(session_factory, config, relay=relay, notifier=notifier)

    app.state.session_factory = session_factory
    app.state.relay = relay
    app.state.staffing_engine = staffing_engine
    return staffing_engine


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    Creates the database engine, session factory, change relay, webhook
    notifier and staffing engine on startup, and tears them down on
    shutdown (subscribers are told to disconnect first).

    Args:
        app: FastAPI application instance

    Yields:
        None after startup, cleans up on context exit
    """
    config: TeamDashConfig = app.state.config

    logger.info("app_startup_begin", host=config.web.host, port=config.web.port)

    engine = get_engine(config.database)
    app.state.engine = engine
    notifier = WebhookNotifier(config.notifications)
    attach_services(app, get_session_factory(engine), notifier=notifier)

    logger.info(
        "database_pool_initialized",
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
        webhook_enabled=notifier.active,
    )

    yield

    logger.info("app_shutdown_begin")
    await app.state.relay.close()
    await notifier.close()
    await engine.dispose()
    logger.info("database_pool_disposed")


def create_app(config: TeamDashConfig | None = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Args:
        config: Optional TeamDashConfig. If None, creates default config.

    Returns:
        Configured FastAPI application instance.
    """
    if config is None:
        config = TeamDashConfig()

    app = FastAPI(
        title="TeamDash Staffing Engine",
        version=__version__,
        description="Resource assignment lifecycle and project kickoff orchestration",
        lifespan=lifespan,
    )

    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    register_error_handlers(app)

    app.include_router(create_health_router())
    app.include_router(create_projects_router())
    app.include_router(create_assignments_router())
    app.include_router(create_events_router())

    logger.info(
        "app_created",
        cors_origins=config.web.cors_origins,
        version=__version__,
    )

    return app
