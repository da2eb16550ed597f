"""Unit tests for the matching engine.

Tests cover:
- Each eligibility rule in isolation
- Subset semantics for languages and expertises
- Classification of requirement edits
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from teamdash.database.models.candidate import AvailabilityStatus
from teamdash.orchestrator.matching import (
    ChangeImpact,
    StaffingRequirement,
    analyze_requirement_change,
    filter_matching,
    matches,
)


def make_candidate(**overrides) -> SimpleNamespace:
    fields = {
        "profession": "developer",
        "seniority": "senior",
        "availability_status": AvailabilityStatus.available,
        "languages": ["en", "fr"],
        "expertises": ["python", "postgres"],
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


REQUIREMENT = StaffingRequirement.build("developer", "senior", ["en"], ["python"])


class TestMatches:
    """Test the eligibility rules."""

    def test_qualified_candidate_matches(self) -> None:
        assert matches(REQUIREMENT, make_candidate())

    @pytest.mark.parametrize(
        "overrides",
        [
            {"profession": "designer"},
            {"seniority": "junior"},
            {"availability_status": AvailabilityStatus.onboarding},
            {"languages": ["fr"]},
            {"expertises": ["postgres"]},
        ],
    )
    def test_each_rule_can_reject(self, overrides: dict) -> None:
        assert not matches(REQUIREMENT, make_candidate(**overrides))

    def test_unavailable_but_onboarded_candidate_matches(self) -> None:
        candidate = make_candidate(availability_status=AvailabilityStatus.unavailable)
        assert matches(REQUIREMENT, candidate)

    def test_empty_requirement_sets_match_anyone_of_the_tier(self) -> None:
        requirement = StaffingRequirement.build("developer", "senior")
        assert matches(requirement, make_candidate(languages=[], expertises=[]))

    def test_every_required_language_needed(self) -> None:
        requirement = StaffingRequirement.build("developer", "senior", ["en", "de"])
        assert not matches(requirement, make_candidate(languages=["en"]))
        assert matches(requirement, make_candidate(languages=["de", "en", "it"]))

    def test_filter_keeps_input_order(self) -> None:
        a = make_candidate(languages=["en"])
        b = make_candidate(seniority="lead")
        c = make_candidate(languages=["en", "es"])

        assert filter_matching(REQUIREMENT, [a, b, c]) == [a, c]

    def test_requirement_of_assignment(self) -> None:
        assignment = SimpleNamespace(
            profession="developer",
            seniority="senior",
            languages=["en", "en"],
            expertises=None,
        )
        requirement = StaffingRequirement.of(assignment)

        assert requirement.languages == frozenset({"en"})
        assert requirement.expertises == frozenset()


class TestAnalyzeRequirementChange:
    """Test requirement edit classification."""

    def test_profession_change_forces_rebooking(self) -> None:
        proposed = StaffingRequirement.build("designer", "senior", ["en"], ["python"])
        analysis = analyze_requirement_change(REQUIREMENT, proposed, make_candidate())

        assert analysis.impact == ChangeImpact.PROFESSION_CHANGE
        assert analysis.requires_rebooking is True

    def test_seniority_change_forces_rebooking(self) -> None:
        proposed = StaffingRequirement.build("developer", "lead", ["en"], ["python"])
        analysis = analyze_requirement_change(REQUIREMENT, proposed, make_candidate())

        assert analysis.impact == ChangeImpact.SENIORITY_CHANGE
        assert analysis.requires_rebooking is True

    def test_identical_requirement_has_no_impact(self) -> None:
        analysis = analyze_requirement_change(REQUIREMENT, REQUIREMENT, make_candidate())

        assert analysis.impact == ChangeImpact.NO_IMPACT
        assert analysis.requires_rebooking is False

    def test_skill_held_by_candidate_keeps_booking(self) -> None:
        proposed = StaffingRequirement.build("developer", "senior", ["en", "fr"], ["python"])
        analysis = analyze_requirement_change(REQUIREMENT, proposed, make_candidate())

        assert analysis.impact == ChangeImpact.SKILL_UPDATE
        assert analysis.requires_rebooking is False

    def test_skill_missing_from_candidate_forces_rebooking(self) -> None:
        proposed = StaffingRequirement.build(
            "developer", "senior", ["en", "de"], ["python", "rust"]
        )
        analysis = analyze_requirement_change(REQUIREMENT, proposed, make_candidate())

        assert analysis.requires_rebooking is True
        assert analysis.missing_languages == frozenset({"de"})
        assert analysis.missing_expertises == frozenset({"rust"})
        assert analysis.to_dict() == {
            "impact": "skill_update",
            "requires_rebooking": True,
            "missing_languages": ["de"],
            "missing_expertises": ["rust"],
        }

    def test_removing_a_skill_never_forces_rebooking(self) -> None:
        proposed = StaffingRequirement.build("developer", "senior", [], ["python"])
        analysis = analyze_requirement_change(REQUIREMENT, proposed)

        assert analysis.impact == ChangeImpact.SKILL_UPDATE
        assert analysis.requires_rebooking is False

    def test_without_candidate_added_skill_forces_rebooking(self) -> None:
        proposed = StaffingRequirement.build("developer", "senior", ["en"], ["python", "go"])
        analysis = analyze_requirement_change(REQUIREMENT, proposed)

        assert analysis.requires_rebooking is True
        assert analysis.missing_expertises == frozenset({"go"})
