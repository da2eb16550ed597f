"""Matching engine for TeamDash.

Decides whether a candidate qualifies for a staffing requirement. The
decision is a plain boolean: there is no scoring and no winner selection,
every qualifying candidate is notified and the first to accept wins.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from teamdash.database.models.candidate import AvailabilityStatus


@dataclass(frozen=True)
class StaffingRequirement:
    """The competencies a slot requires.

    Attributes:
        profession: Profession identifier.
        seniority: Seniority tier identifier.
        languages: Languages every candidate must speak.
        expertises: Expertises every candidate must hold.
    """

    profession: str
    seniority: str
    languages: frozenset[str] = field(default_factory=frozenset)
    expertises: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        profession: str,
        seniority: str,
        languages: Iterable[str] = (),
        expertises: Iterable[str] = (),
    ) -> StaffingRequirement:
        """Build a requirement from arbitrary iterables."""
        return cls(
            profession=profession,
            seniority=seniority,
            languages=frozenset(languages),
            expertises=frozenset(expertises),
        )

    @classmethod
    def of(cls, assignment: RequirementLike) -> StaffingRequirement:
        """Extract the requirement embedded in an assignment row."""
        return cls.build(
            assignment.profession,
            assignment.seniority,
            assignment.languages or (),
            assignment.expertises or (),
        )


class RequirementLike(Protocol):
    profession: str
    seniority: str
    languages: list[str]
    expertises: list[str]


class CandidateLike(Protocol):
    profession: str
    seniority: str
    availability_status: AvailabilityStatus
    languages: list[str]
    expertises: list[str]


def matches(requirement: StaffingRequirement, candidate: CandidateLike) -> bool:
    """Return True if the candidate qualifies for the requirement.

    All of the following must hold:

    1. same profession
    2. same seniority tier
    3. the candidate has finished onboarding
    4. the candidate speaks every required language
    5. the candidate holds every required expertise

    Args:
        requirement: Requirement to satisfy.
        candidate: Candidate profile to evaluate.

    Returns:
        True when every rule holds.
    """
    if candidate.profession != requirement.profession:
        return False
    if candidate.seniority != requirement.seniority:
        return False
    if candidate.availability_status == AvailabilityStatus.onboarding:
        return False
    if not requirement.languages <= set(candidate.languages or ()):
        return False
    return requirement.expertises <= set(candidate.expertises or ())


def filter_matching(
    requirement: StaffingRequirement,
    candidates: Sequence[CandidateLike],
) -> list[CandidateLike]:
    """Return the candidates that qualify for the requirement, in input order."""
    return [candidate for candidate in candidates if matches(requirement, candidate)]


class ChangeImpact(str, Enum):
    """Effect of a requirement edit on the candidate holding the slot."""

    PROFESSION_CHANGE = "profession_change"
    SENIORITY_CHANGE = "seniority_change"
    SKILL_UPDATE = "skill_update"
    NO_IMPACT = "no_impact"


@dataclass(frozen=True)
class RequirementChangeAnalysis:
    """Outcome of comparing a slot's requirement with a proposed one.

    Attributes:
        impact: Most significant kind of change.
        requires_rebooking: The slot must be retired and searched for again.
        missing_languages: New languages the current candidate lacks.
        missing_expertises: New expertises the current candidate lacks.
    """

    impact: ChangeImpact
    requires_rebooking: bool
    missing_languages: frozenset[str] = field(default_factory=frozenset)
    missing_expertises: frozenset[str] = field(default_factory=frozenset)

    def to_dict(self) -> dict[str, object]:
        return {
            "impact": self.impact.value,
            "requires_rebooking": self.requires_rebooking,
            "missing_languages": sorted(self.missing_languages),
            "missing_expertises": sorted(self.missing_expertises),
        }


def analyze_requirement_change(
    current: StaffingRequirement,
    proposed: StaffingRequirement,
    candidate: CandidateLike | None = None,
) -> RequirementChangeAnalysis:
    """Classify a requirement edit and decide whether it forces a re-booking.

    Profession and seniority changes always force a re-booking. Language and
    expertise changes force one only when the current candidate no longer
    qualifies; without a candidate, any added competency does.

    Args:
        current: Requirement stored on the slot.
        proposed: Requirement the client wants.
        candidate: Candidate holding the slot, if any.

    Returns:
        The analysis.
    """
    if proposed.profession != current.profession:
        return RequirementChangeAnalysis(ChangeImpact.PROFESSION_CHANGE, True)
    if proposed.seniority != current.seniority:
        return RequirementChangeAnalysis(ChangeImpact.SENIORITY_CHANGE, True)
    if proposed == current:
        return RequirementChangeAnalysis(ChangeImpact.NO_IMPACT, False)

    if candidate is not None:
        missing_languages = proposed.languages - set(candidate.languages or ())
        missing_expertises = proposed.expertises - set(candidate.expertises or ())
    else:
        missing_languages = proposed.languages - current.languages
        missing_expertises = proposed.expertises - current.expertises

    return RequirementChangeAnalysis(
        ChangeImpact.SKILL_UPDATE,
        bool(missing_languages or missing_expertises),
        frozenset(missing_languages),
        frozenset(missing_expertises),
    )
