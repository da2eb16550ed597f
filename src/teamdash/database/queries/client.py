"""Client query functions for TeamDash."""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from teamdash.database.models.client import ClientProfile

logger = structlog.get_logger(__name__)


async def create_client(
    session: AsyncSession,
    email: str,
    first_name: str = "",
    last_name: str = "",
    company_name: str | None = None,
) -> ClientProfile:
    """Create a client account."""
    client = ClientProfile(
        email=email,
        first_name=first_name,
        last_name=last_name,
        company_name=company_name,
    )
    session.add(client)
    await session.flush()

    logger.info("client_created", client_id=str(client.id), email=email)
    return client


async def get_client(session: AsyncSession, client_id: UUID) -> ClientProfile | None:
    """Retrieve a client by ID."""
    result = await session.execute(select(ClientProfile).where(ClientProfile.id == client_id))
    return result.scalar_one_or_none()
