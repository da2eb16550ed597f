"""Candidate directory query functions for TeamDash.

The engine only reads candidates. ``create_candidate`` exists for the
onboarding tooling and for seeding test data.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from teamdash.database.models.candidate import AvailabilityStatus, CandidateProfile

logger = structlog.get_logger(__name__)


async def create_candidate(
    session: AsyncSession,
    email: str,
    profession: str,
    seniority: str,
    first_name: str = "",
    last_name: str = "",
    availability_status: AvailabilityStatus = AvailabilityStatus.onboarding,
    languages: Iterable[str] = (),
    expertises: Iterable[str] = (),
) -> CandidateProfile:
    """Create a candidate profile."""
    candidate = CandidateProfile(
        email=email,
        first_name=first_name,
        last_name=last_name,
        profession=profession,
        seniority=seniority,
        availability_status=availability_status,
        languages=sorted(set(languages)),
        expertises=sorted(set(expertises)),
    )
    session.add(candidate)
    await session.flush()

    logger.info(
        "candidate_created",
        candidate_id=str(candidate.id),
        profession=profession,
        seniority=seniority,
        availability_status=availability_status.value,
    )

    return candidate


async def get_candidate(session: AsyncSession, candidate_id: UUID) -> CandidateProfile | None:
    """Retrieve a candidate by ID."""
    result = await session.execute(
        select(CandidateProfile).where(CandidateProfile.id == candidate_id)
    )
    return result.scalar_one_or_none()


async def get_candidates(
    session: AsyncSession,
    candidate_ids: Iterable[UUID],
) -> dict[UUID, CandidateProfile]:
    """Load several candidates at once, keyed by ID."""
    ids = list(candidate_ids)
    if not ids:
        return {}
    result = await session.execute(
        select(CandidateProfile).where(CandidateProfile.id.in_(ids))
    )
    return {candidate.id: candidate for candidate in result.scalars().all()}


async def list_candidates(
    session: AsyncSession,
    profession: str | None = None,
    seniority: str | None = None,
    exclude_onboarding: bool = False,
) -> list[CandidateProfile]:
    """List candidates narrowed by the equality parts of a requirement.

    Language and expertise subset checks are left to the matching engine.

    Args:
        session: Active async database session.
        profession: Optional profession filter.
        seniority: Optional seniority filter.
        exclude_onboarding: Skip candidates still in onboarding.

    Returns:
        Candidates ordered by email.
    """
    stmt = select(CandidateProfile)

    if profession is not None:
        stmt = stmt.where(CandidateProfile.profession == profession)
    if seniority is not None:
        stmt = stmt.where(CandidateProfile.seniority == seniority)
    if exclude_onboarding:
        stmt = stmt.where(
            CandidateProfile.availability_status != AvailabilityStatus.onboarding
        )

    result = await session.execute(stmt.order_by(CandidateProfile.email.asc()))
    return list(result.scalars().all())
