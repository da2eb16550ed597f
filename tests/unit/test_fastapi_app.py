"""Unit tests for FastAPI application setup.

Tests cover:
- Application factory creates FastAPI instance
- CORS and request logging middleware are configured
- Health endpoints with a mocked session factory
- Engine errors mapped onto HTTP responses
- Correlation ID echo
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import InterfaceError, OperationalError

from teamdash.config import TeamDashConfig, WebConfig
from teamdash.database.models.assignment import BookingStatus
from teamdash.orchestrator.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PreconditionViolation,
)
from teamdash.web.app import create_app
from teamdash.web.errors import register_error_handlers
from teamdash.web.middleware import RequestLoggingMiddleware


def open_client(app: FastAPI) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestCreateApp:
    """Test application factory function."""

    def test_returns_fastapi_instance(self) -> None:
        app = create_app()
        assert isinstance(app, FastAPI)
        assert app.title == "TeamDash Staffing Engine"
        assert app.version == "0.1.0"

    def test_app_stores_config_in_state(self) -> None:
        config = TeamDashConfig()
        app = create_app(config)
        assert app.state.config is config

    def test_cors_uses_config_origins(self) -> None:
        origins = ["https://app.example.com", "https://admin.example.com"]
        app = create_app(TeamDashConfig(web=WebConfig(cors_origins=origins)))

        cors = [m for m in app.user_middleware if m.cls == CORSMiddleware]
        assert len(cors) == 1
        assert cors[0].kwargs["allow_origins"] == origins
        assert cors[0].kwargs["allow_credentials"] is True

    def test_logging_middleware_is_registered(self) -> None:
        app = create_app()
        assert any(m.cls == RequestLoggingMiddleware for m in app.user_middleware)

    def test_routes_registered(self) -> None:
        routes = set(create_app().openapi()["paths"])

        assert {
            "/health/",
            "/health/ready",
            "/projects/",
            "/projects/{project_id}/start",
            "/projects/{project_id}/kickoff/retry",
            "/projects/{project_id}/snapshot",
            "/assignments/{assignment_id}/accept",
            "/events/projects/{project_id}/stream",
        } <= routes


class TestHealthEndpoints:
    """Test health checks with a mocked session factory."""

    @pytest.fixture
    def healthy_app(self) -> FastAPI:
        app = create_app()
        mock_session = AsyncMock()
        mock_session.execute = AsyncMock(return_value=MagicMock())
        session_factory = MagicMock()
        session_factory.return_value.__aenter__ = AsyncMock(return_value=mock_session)
        session_factory.return_value.__aexit__ = AsyncMock(return_value=None)
        app.state.session_factory = session_factory
        return app

    @pytest.fixture
    def unhealthy_app(self) -> FastAPI:
        app = create_app()
        session_factory = MagicMock()
        session_factory.return_value.__aenter__ = AsyncMock(
            side_effect=OperationalError("SELECT 1", {}, Exception("connection refused"))
        )
        session_factory.return_value.__aexit__ = AsyncMock(return_value=None)
        app.state.session_factory = session_factory
        return app

    async def test_liveness(self, healthy_app: FastAPI) -> None:
        async with open_client(healthy_app) as client:
            response = await client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    async def test_readiness_when_db_healthy(self, healthy_app: FastAPI) -> None:
        async with open_client(healthy_app) as client:
            response = await client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "database": "connected"}

    async def test_readiness_when_db_fails(self, unhealthy_app: FastAPI) -> None:
        async with open_client(unhealthy_app) as client:
            response = await client.get("/health/ready")

        assert response.status_code == 503
        assert response.json() == {"status": "unhealthy", "database": "disconnected"}


class TestCorrelationId:
    """Test correlation ID handling in middleware."""

    async def test_generated_when_missing(self) -> None:
        async with open_client(create_app()) as client:
            response = await client.get("/health/")

        assert response.headers["X-Correlation-ID"]

    async def test_echoes_provided_id(self) -> None:
        async with open_client(create_app()) as client:
            response = await client.get("/health/", headers={"X-Correlation-ID": "corr-42"})

        assert response.headers["X-Correlation-ID"] == "corr-42"


@pytest.fixture
def failing_app() -> FastAPI:
    """Application whose routes raise each engine error."""
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/missing")
    async def missing() -> None:
        raise NotFoundError("assignment", "a-1")

    @app.get("/precondition")
    async def precondition() -> None:
        raise PreconditionViolation("team_ready", "2 of 3 required slots accepted")

    @app.get("/transition")
    async def transition() -> None:
        raise InvalidTransitionError(BookingStatus.draft, BookingStatus.accepted, "a-1")

    @app.get("/conflict")
    async def conflict() -> None:
        raise ConflictError("opportunity just taken", assignment_id="a-1")

    @app.get("/store")
    async def store() -> None:
        raise OperationalError("SELECT 1", {}, Exception("down"))

    @app.get("/interface")
    async def interface() -> None:
        raise InterfaceError("SELECT 1", {}, Exception("closed"))

    return app


class TestErrorHandlers:
    """Test the engine error to HTTP mapping."""

    @pytest.fixture
    async def client(self, failing_app: FastAPI) -> AsyncIterator[AsyncClient]:
        async with open_client(failing_app) as ac:
            yield ac

    async def test_not_found(self, client: AsyncClient) -> None:
        response = await client.get("/missing")

        assert response.status_code == 404
        assert response.json() == {
            "error": "not_found",
            "entity": "assignment",
            "detail": "assignment a-1 not found",
        }

    async def test_precondition_violation(self, client: AsyncClient) -> None:
        response = await client.get("/precondition")

        assert response.status_code == 422
        assert response.json() == {
            "error": "precondition_violation",
            "invariant": "team_ready",
            "detail": "2 of 3 required slots accepted",
        }

    async def test_invalid_transition(self, client: AsyncClient) -> None:
        response = await client.get("/transition")

        assert response.status_code == 422
        assert response.json()["invariant"] == "valid_transition"
        assert response.json()["detail"] == "Invalid transition from draft to accepted for a-1"

    async def test_conflict(self, client: AsyncClient) -> None:
        response = await client.get("/conflict")

        assert response.status_code == 409
        assert response.json() == {
            "error": "conflict",
            "detail": "opportunity just taken",
            "assignment_id": "a-1",
        }

    @pytest.mark.parametrize("path", ["/store", "/interface"])
    async def test_store_unavailable(self, client: AsyncClient, path: str) -> None:
        response = await client.get(path)

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "2"
        assert response.json()["error"] == "store_unavailable"
