"""Tests for trait scoring, dominant-trait resolution and domain aggregation."""

from __future__ import annotations

import logging

import pytest

from typescope.errors import ConfigurationError, InputValidationError
from typescope.scoring.catalog import (
    DEFAULT_TRAIT_MAPPINGS,
    DOMAINS,
    RESPONSE_LENGTH,
    TRAITS,
    iter_triads,
)
from typescope.scoring.models import validate_responses
from typescope.scoring.traits import (
    TIE_TOLERANCE,
    aggregate_domain_scores,
    calculate_trait_scores,
    determine_dominant_traits,
    resolve_dominant_trait,
    resolve_trait_mappings,
)

TRIAD = ("First", "Middle", "Last")


class TestCatalog:
    """Tests for the fixed trait catalog and default mapping."""

    def test_catalog_has_36_distinct_traits(self) -> None:
        """Four domains of three triads of three traits, no repeats."""
        assert len(TRAITS) == 36
        assert len(set(TRAITS)) == 36
        assert len(DOMAINS) == 4
        assert all(len(triads) == 3 for triads in DOMAINS.values())

    def test_every_trait_has_six_questions_in_range(self) -> None:
        """Each default mapping uses six 1-based indices inside the instrument."""
        assert set(DEFAULT_TRAIT_MAPPINGS) == set(TRAITS)
        for indices in DEFAULT_TRAIT_MAPPINGS.values():
            assert len(indices) == 6
            assert all(1 <= i <= RESPONSE_LENGTH for i in indices)

    def test_external_internal_traits_step_by_three(self) -> None:
        """Trait k of triad t uses 18t + k + 1 + 3j."""
        first_half = [
            trait
            for domain in ("External", "Internal")
            for triad in DOMAINS[domain].values()
            for trait in triad
        ]
        for position, trait in enumerate(first_half):
            t, k = divmod(position, 3)
            expected = tuple(18 * t + k + 1 + 3 * j for j in range(6))
            assert DEFAULT_TRAIT_MAPPINGS[trait] == expected

    def test_interpersonal_traits_step_by_six(self) -> None:
        """Interpersonal and processing traits take every sixth question."""
        assert DEFAULT_TRAIT_MAPPINGS["Independent Navigate"] == (1, 7, 13, 19, 25, 31)
        assert DEFAULT_TRAIT_MAPPINGS["Intuitive"] == (42, 48, 54, 60, 66, 72)

    def test_iter_triads_preserves_catalog_order(self) -> None:
        """Triads come out in domain order."""
        triads = iter_triads()
        assert len(triads) == 12
        assert triads[0] == ("External", "Control", ("Structured", "Ambivalent", "Independent"))
        assert triads[-1] == ("Processing", "Reality", ("Physical", "Social", "Universal"))


class TestValidateResponses:
    """Tests for response vector validation."""

    def test_valid_vector_returns_tuple(self, neutral_responses: list[int]) -> None:
        """A valid vector comes back as a tuple."""
        values = validate_responses(neutral_responses)
        assert values == tuple(neutral_responses)

    def test_wrong_length_is_rejected(self) -> None:
        """Length errors report expected and actual lengths."""
        with pytest.raises(InputValidationError) as exc_info:
            validate_responses([5] * 107)
        assert exc_info.value.details == {"expected_length": 108, "actual_length": 107}

    @pytest.mark.parametrize("bad_value", [0, 11, -3])
    def test_out_of_range_value_is_rejected(self, bad_value: int) -> None:
        """Out-of-range answers report the 1-based question."""
        responses = [5] * 108
        responses[9] = bad_value
        with pytest.raises(InputValidationError) as exc_info:
            validate_responses(responses)
        assert exc_info.value.details == {"question": 10, "value": bad_value}

    @pytest.mark.parametrize("bad_value", [True, 5.0, "5", None])
    def test_non_integer_value_is_rejected(self, bad_value: object) -> None:
        """Only plain integers count as answers."""
        responses: list[object] = [5] * 108
        responses[0] = bad_value
        with pytest.raises(InputValidationError):
            validate_responses(responses)  # type: ignore[arg-type]

    def test_string_is_not_a_sequence_of_responses(self) -> None:
        """A string of digits is not a response vector."""
        with pytest.raises(InputValidationError):
            validate_responses("5" * 108)  # type: ignore[arg-type]


class TestTraitScores:
    """Tests for calculate_trait_scores and mapping overrides."""

    def test_neutral_responses_score_five_everywhere(self, neutral_responses: list[int]) -> None:
        """All-neutral answers give 5.0 for every trait."""
        scores = calculate_trait_scores(neutral_responses, DEFAULT_TRAIT_MAPPINGS)
        assert set(scores) == set(TRAITS)
        assert all(score == 5.0 for score in scores.values())

    def test_score_is_mean_of_mapped_responses(self, neutral_responses: list[int]) -> None:
        """Question 1 feeds Structured and Independent Navigate only."""
        responses = list(neutral_responses)
        responses[0] = 10
        scores = calculate_trait_scores(responses, DEFAULT_TRAIT_MAPPINGS)

        assert scores["Structured"] == pytest.approx(35 / 6)
        assert scores["Independent Navigate"] == pytest.approx(35 / 6)
        assert scores["Ambivalent"] == 5.0

    def test_empty_mapping_raises_configuration_error(self, neutral_responses: list[int]) -> None:
        """A trait with no questions names itself in the error."""
        mappings = resolve_trait_mappings({"Structured": []})
        with pytest.raises(ConfigurationError, match="Structured"):
            calculate_trait_scores(neutral_responses, mappings)

    def test_out_of_range_index_raises_configuration_error(
        self, neutral_responses: list[int]
    ) -> None:
        """Mapped indices past the vector are reported."""
        mappings = resolve_trait_mappings({"Lawful": [1, 109]})
        with pytest.raises(ConfigurationError, match="109"):
            calculate_trait_scores(neutral_responses, mappings)

    def test_override_replaces_only_named_traits(self) -> None:
        """Unnamed traits keep their default questions."""
        mappings = resolve_trait_mappings({"Structured": [2, 3]})
        assert mappings["Structured"] == (2, 3)
        assert mappings["Ambivalent"] == DEFAULT_TRAIT_MAPPINGS["Ambivalent"]

    def test_override_with_unknown_trait_is_rejected(self) -> None:
        """Overrides for unknown traits are rejected."""
        with pytest.raises(ConfigurationError, match="Bogus"):
            resolve_trait_mappings({"Bogus": [1]})

    def test_scoring_is_deterministic(self) -> None:
        """The same vector scores the same twice."""
        responses = [(i * 7) % 10 + 1 for i in range(108)]
        first = calculate_trait_scores(responses, DEFAULT_TRAIT_MAPPINGS)
        second = calculate_trait_scores(responses, DEFAULT_TRAIT_MAPPINGS)
        assert first == second


class TestDominantTrait:
    """Tests for the triad tie-break rule."""

    def test_all_three_tied_picks_middle(self) -> None:
        """A full tie goes to the middle trait."""
        assert resolve_dominant_trait(TRIAD, {"First": 5, "Middle": 5, "Last": 5}) == "Middle"

    def test_first_and_last_tied_above_middle_picks_middle(self) -> None:
        """Tied ends resolve to the middle even when it scores lower."""
        assert resolve_dominant_trait(TRIAD, {"First": 7, "Middle": 3, "Last": 7}) == "Middle"

    def test_first_and_middle_tied_picks_first(self) -> None:
        """A tie between first and middle goes to first."""
        assert resolve_dominant_trait(TRIAD, {"First": 7, "Middle": 7, "Last": 3}) == "First"

    def test_middle_and_last_tied_picks_middle(self) -> None:
        """A tie between middle and last goes to middle."""
        assert resolve_dominant_trait(TRIAD, {"First": 3, "Middle": 7, "Last": 7}) == "Middle"

    def test_clear_winner_is_returned(self) -> None:
        """Without a tie the highest score wins."""
        assert resolve_dominant_trait(TRIAD, {"First": 3, "Middle": 4, "Last": 9}) == "Last"

    def test_scores_within_tolerance_count_as_tied(self) -> None:
        """Differences inside TIE_TOLERANCE are ties."""
        scores = {"First": 7 + TIE_TOLERANCE / 2, "Middle": 3, "Last": 7}
        assert resolve_dominant_trait(TRIAD, scores) == "Middle"

    def test_scores_beyond_tolerance_are_not_tied(self) -> None:
        """A gap of 0.02 is a real difference."""
        scores = {"First": 7.02, "Middle": 3, "Last": 7}
        assert resolve_dominant_trait(TRIAD, scores) == "First"

    def test_missing_traits_count_as_zero(self) -> None:
        """Absent traits score zero."""
        assert resolve_dominant_trait(TRIAD, {"Last": 2}) == "Last"

    def test_neutral_profile_picks_every_middle_trait(self, neutral_responses: list[int]) -> None:
        """A neutral profile is dominated by middle traits."""
        scores = calculate_trait_scores(neutral_responses, DEFAULT_TRAIT_MAPPINGS)
        dominant = determine_dominant_traits(scores)

        assert len(dominant) == 12
        for domain, name, triad in iter_triads():
            assert dominant[f"{domain}-{name}"] == triad[1]


class TestDomainScores:
    """Tests for aggregate_domain_scores."""

    def test_domain_score_is_mean_of_nine_traits(self) -> None:
        """Each domain averages its nine traits."""
        scores = {trait: float(index % 10 + 1) for index, trait in enumerate(TRAITS)}
        domains = aggregate_domain_scores(scores)

        for domain, triads in DOMAINS.items():
            traits = [t for triad in triads.values() for t in triad]
            expected = sum(scores[t] for t in traits) / 9
            assert abs(domains[domain] - expected) < 1e-9

    def test_neutral_profile_domains_are_five(self, neutral_responses: list[int]) -> None:
        """Neutral answers give 5.0 in every domain."""
        scores = calculate_trait_scores(neutral_responses, DEFAULT_TRAIT_MAPPINGS)
        assert aggregate_domain_scores(scores) == {
            "External": 5.0,
            "Internal": 5.0,
            "Interpersonal": 5.0,
            "Processing": 5.0,
        }

    def test_missing_trait_counts_as_zero_and_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        """A missing trait lowers its domain and is logged."""
        scores = dict.fromkeys(TRAITS, 9.0)
        del scores["Structured"]

        with caplog.at_level(logging.WARNING, logger="typescope.scoring.traits"):
            domains = aggregate_domain_scores(scores)

        assert domains["External"] == pytest.approx(8 * 9.0 / 9)
        assert domains["Internal"] == 9.0
        assert "Structured" in caplog.text
