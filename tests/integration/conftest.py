"""Pytest fixtures for integration tests.

The engine runs against a file-backed SQLite database (aiosqlite) so that
concurrent transactions behave like separate connections to a shared
store. Production uses PostgreSQL; the schema is portable between both.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import AsyncGenerator
from uuid import UUID

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from teamdash.config import TeamDashConfig
from teamdash.database.connection import get_session_factory
from teamdash.database.models.assignment import ResourceAssignment
from teamdash.database.models.base import Base
from teamdash.database.models.candidate import AvailabilityStatus, CandidateProfile
from teamdash.database.models.client import ClientProfile
from teamdash.database.models.project import Project
from teamdash.database.queries import create_candidate, create_client
from teamdash.orchestrator.engine import StaffingEngine
from teamdash.orchestrator.matching import StaffingRequirement


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio as the async backend for pytest-asyncio."""
    return "asyncio"


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a file-backed SQLite async engine with every table created.

    Yields:
        Configured AsyncEngine instance.
    """
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db", echo=False)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the test engine."""
    return get_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a session for direct queries; rolled back after the test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def config() -> TeamDashConfig:
    """Default configuration with the webhook switched off."""
    return TeamDashConfig(notifications={"enabled": False})


@pytest.fixture
def staffing(
    session_factory: async_sessionmaker[AsyncSession], config: TeamDashConfig
) -> StaffingEngine:
    """StaffingEngine bound to the test database."""
    return StaffingEngine(session_factory, config)


class Seeder:
    """Creates directory data and common project setups."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        staffing: StaffingEngine,
    ) -> None:
        self.session_factory = session_factory
        self.staffing = staffing
        self._counter = 0

    def _email(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}{self._counter}@example.com"

    @staticmethod
    def requirement(
        profession: str = "developer",
        seniority: str = "senior",
        languages: tuple[str, ...] = ("en",),
        expertises: tuple[str, ...] = ("python",),
    ) -> StaffingRequirement:
        """Build a requirement with test defaults."""
        return StaffingRequirement.build(profession, seniority, languages, expertises)

    async def client(self, first_name: str = "Claire", last_name: str = "Client") -> ClientProfile:
        async with self.session_factory() as session, session.begin():
            return await create_client(
                session,
                email=self._email("client"),
                first_name=first_name,
                last_name=last_name,
                company_name="Acme",
            )

    async def candidate(
        self,
        profession: str = "developer",
        seniority: str = "senior",
        languages: tuple[str, ...] = ("en",),
        expertises: tuple[str, ...] = ("python",),
        availability_status: AvailabilityStatus = AvailabilityStatus.available,
        first_name: str = "Casey",
    ) -> CandidateProfile:
        async with self.session_factory() as session, session.begin():
            return await create_candidate(
                session,
                email=self._email(profession),
                profession=profession,
                seniority=seniority,
                first_name=first_name,
                last_name="Candidate",
                availability_status=availability_status,
                languages=languages,
                expertises=expertises,
            )

    async def project(self, owner: ClientProfile | None = None, title: str = "Website Redesign") -> Project:
        owner = owner or await self.client()
        return await self.staffing.create_project(
            owner_id=owner.id,
            title=title,
            start_date=date(2026, 11, 2),
            description="Rebuild the marketing site",
            due_date=date(2027, 2, 26),
            client_budget=Decimal("48000.00"),
        )

    async def staffed_slot(
        self,
        project_id: UUID,
        candidate_id: UUID,
        requirement: StaffingRequirement | None = None,
    ) -> ResourceAssignment:
        """Configure a slot, open it and accept it for the candidate."""
        slot = await self.staffing.configure_requirement(
            project_id, requirement or self.requirement()
        )
        await self.staffing.request_booking(slot.id)
        return await self.staffing.accept(slot.id, candidate_id)


@pytest.fixture
def seed(
    session_factory: async_sessionmaker[AsyncSession], staffing: StaffingEngine
) -> Seeder:
    """Helper creating clients, candidates, projects and staffed slots."""
    return Seeder(session_factory, staffing)
