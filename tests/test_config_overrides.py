"""Tests for scoring override models, merging and user override values."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from typescope.config.overrides import (
    MbtiOverride,
    ScoringOverrides,
    UserOverrideRecord,
    apply_user_overrides,
    effective_value,
    mapping_weights,
    merge_overrides,
    validate_overrides,
    validate_user_value,
)
from typescope.errors import ConfigurationError
from typescope.scoring.catalog import RESPONSE_LENGTH
from typescope.scoring.engine import score_profile
from typescope.scoring.models import Framework

EI_TABLE = {"EI": {"traits": {"Communal Navigate": 0.5, "Dynamic": 0.5}, "threshold": 5.5}}
SN_TABLE = {"SN": {"traits": {"Intuitive": 1.0}}}


def _user_record(**overrides: object) -> UserOverrideRecord:
    now = datetime.now(UTC)
    return UserOverrideRecord(
        user_id="user-1",
        overrides=dict(overrides),
        reason="coach review",
        created_by="admin",
        created_at=now,
        updated_at=now,
    )


class TestScoringOverrides:
    """Tests for the override document model."""

    def test_accepts_both_trait_mapping_spellings(self) -> None:
        """traitMappings and trait_mappings parse to the same model."""
        by_alias = ScoringOverrides.model_validate({"traitMappings": {"Structured": [1, 2]}})
        by_name = ScoringOverrides.model_validate({"trait_mappings": {"Structured": [1, 2]}})
        assert by_alias == by_name

    def test_to_document_uses_alias_and_drops_empty_sections(self) -> None:
        """Stored documents use camelCase and omit unset sections."""
        overrides = ScoringOverrides.model_validate(
            {"traitMappings": {"Structured": [1, 2]}, "mbti": EI_TABLE}
        )
        document = overrides.to_document()

        assert set(document) == {"traitMappings", "mbti"}
        assert document["mbti"]["EI"]["threshold"] == 5.5

    def test_from_document_round_trip(self) -> None:
        """A stored document loads back to an equal model."""
        overrides = ScoringOverrides.model_validate({"mbti": EI_TABLE})
        assert ScoringOverrides.from_document(overrides.to_document()) == overrides

    def test_from_document_wraps_validation_errors(self) -> None:
        """Malformed stored documents raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Malformed"):
            ScoringOverrides.from_document({"tarot": {}})

    def test_from_document_none_is_empty(self) -> None:
        """A missing document loads as empty overrides."""
        assert ScoringOverrides.from_document(None).is_empty()

    def test_is_empty(self) -> None:
        """Empty framework tables still count as empty."""
        assert ScoringOverrides().is_empty()
        assert ScoringOverrides.model_validate({"mbti": {}}).is_empty()
        assert not ScoringOverrides.model_validate({"mbti": EI_TABLE}).is_empty()

    def test_model_is_frozen(self) -> None:
        """Override documents are immutable."""
        overrides = ScoringOverrides()
        with pytest.raises(ValidationError):
            overrides.mbti = {}  # type: ignore[misc]


class TestValidateOverrides:
    """Tests for store-boundary validation."""

    def test_valid_document_passes(self) -> None:
        """Validation returns the document it was given."""
        overrides = ScoringOverrides.model_validate(
            {"traitMappings": {"Structured": [1, 2]}, "mbti": EI_TABLE}
        )
        assert validate_overrides(overrides) is overrides

    def test_unknown_trait_mapping(self) -> None:
        """Mappings for traits outside the catalog are rejected."""
        overrides = ScoringOverrides.model_validate({"traitMappings": {"Bogus": [1]}})
        with pytest.raises(ConfigurationError, match="Bogus"):
            validate_overrides(overrides)

    def test_empty_trait_mapping(self) -> None:
        """A trait must keep at least one question."""
        overrides = ScoringOverrides.model_validate({"traitMappings": {"Structured": []}})
        with pytest.raises(ConfigurationError, match="no mapped questions"):
            validate_overrides(overrides)

    def test_index_below_one(self) -> None:
        """Question indices are 1-based."""
        overrides = ScoringOverrides.model_validate({"traitMappings": {"Structured": [0]}})
        with pytest.raises(ConfigurationError, match="below 1"):
            validate_overrides(overrides)

    def test_index_past_response_length(self) -> None:
        """Indices beyond the last question are rejected with the valid range."""
        overrides = ScoringOverrides.model_validate(
            {"traitMappings": {"Structured": [1, RESPONSE_LENGTH + 1]}}
        )
        with pytest.raises(ConfigurationError, match=f"outside 1..{RESPONSE_LENGTH}"):
            validate_overrides(overrides)

    def test_last_question_index_accepted(self) -> None:
        """The final question index is a valid mapping."""
        validate_overrides(
            ScoringOverrides.model_validate({"traitMappings": {"Structured": [RESPONSE_LENGTH]}})
        )

    def test_bad_framework_table_names_framework(self) -> None:
        """Weight table errors carry the framework name."""
        overrides = ScoringOverrides.model_validate({"mbti": {"EI": {"traits": {"Dynamic": 0.3}}}})
        with pytest.raises(ConfigurationError) as exc_info:
            validate_overrides(overrides)
        assert exc_info.value.framework == "mbti"

    def test_typed_framework_override_model(self) -> None:
        """MBTI overrides accept only the four dimension keys."""
        MbtiOverride.model_validate(EI_TABLE)
        with pytest.raises(ValidationError):
            MbtiOverride.model_validate({"XY": {"traits": {"Dynamic": 1.0}}})


class TestMergeOverrides:
    """Tests for partial-document merging."""

    def test_merge_into_nothing_returns_partial(self) -> None:
        """With no stored document the partial is used as is."""
        partial = ScoringOverrides.model_validate({"mbti": EI_TABLE})
        assert merge_overrides(None, partial) is partial

    def test_framework_tables_merge_per_dimension(self) -> None:
        """New dimensions are added next to stored ones."""
        base = ScoringOverrides.model_validate({"mbti": EI_TABLE})
        partial = ScoringOverrides.model_validate({"mbti": SN_TABLE})

        merged = merge_overrides(base, partial)
        assert merged.mbti is not None
        assert set(merged.mbti) == {"EI", "SN"}

    def test_same_dimension_is_replaced(self) -> None:
        """A dimension in the partial replaces the stored one whole."""
        base = ScoringOverrides.model_validate({"mbti": EI_TABLE})
        partial = ScoringOverrides.model_validate(
            {"mbti": {"EI": {"traits": {"Dynamic": 1.0}}}}
        )
        merged = merge_overrides(base, partial)

        assert merged.mbti is not None
        assert merged.mbti["EI"].traits == {"Dynamic": 1.0}
        assert merged.mbti["EI"].threshold is None

    def test_trait_mappings_merge_per_trait(self) -> None:
        """Trait mappings merge by trait and other sections are kept."""
        base = ScoringOverrides.model_validate(
            {"traitMappings": {"Structured": [1], "Lawful": [2]}, "mbti": EI_TABLE}
        )
        partial = ScoringOverrides.model_validate({"traitMappings": {"Lawful": [3, 4]}})

        merged = merge_overrides(base, partial)
        assert merged.trait_mappings == {"Structured": [1], "Lawful": [3, 4]}
        assert merged.mbti == base.mbti

    def test_mapping_weights_view(self) -> None:
        """The weights view flattens tables to trait weights."""
        overrides = ScoringOverrides.model_validate({"mbti": EI_TABLE})
        assert mapping_weights(overrides) == {
            "mbti": {"EI": {"Communal Navigate": 0.5, "Dynamic": 0.5}}
        }
        assert mapping_weights(None) == {}


class TestUserOverrideValues:
    """Tests for per-framework user value validation."""

    @pytest.mark.parametrize(
        ("framework", "value"),
        [
            ("mbti", "INTJ"),
            ("enneagram", 7),
            ("holland", "RIA"),
            ("alignment", "Chaotic Good"),
            ("socionics", "INTp"),
            ("integral", "teal"),
            ("attachment", "secure"),
            (
                "bigfive",
                {
                    "Openness": 8.0,
                    "Conscientiousness": 5.0,
                    "Extraversion": 3.0,
                    "Agreeableness": 6.0,
                    "Neuroticism": 2.0,
                },
            ),
        ],
    )
    def test_valid_values(self, framework: str, value: object) -> None:
        """Well-formed values pass through unchanged."""
        assert validate_user_value(framework, value) == value

    @pytest.mark.parametrize(
        ("framework", "value"),
        [
            ("mbti", "XNTJ"),
            ("mbti", "intj"),
            ("enneagram", 0),
            ("enneagram", 10),
            ("holland", "RR"),
            ("holland", "RIASE"),
            ("alignment", "Lawful Awesome"),
            ("socionics", "ABCD"),
            ("integral", "ultraviolet"),
            ("attachment", "clingy"),
            ("bigfive", {"Openness": 8.0}),
            ("bigfive", {"Openness": 11.0, "Conscientiousness": 5.0, "Extraversion": 3.0,
                         "Agreeableness": 6.0, "Neuroticism": 2.0}),
        ],
    )
    def test_invalid_values(self, framework: str, value: object) -> None:
        """Malformed values raise with the framework named."""
        with pytest.raises(ConfigurationError) as exc_info:
            validate_user_value(framework, value)
        assert exc_info.value.framework == framework

    def test_unknown_framework(self) -> None:
        """Values for an unknown framework are rejected."""
        with pytest.raises(ConfigurationError, match="Unknown framework"):
            validate_user_value("astrology", "Leo")


class TestApplyUserOverrides:
    """User overrides replace display values only."""

    def test_effective_value_prefers_override(self) -> None:
        """An override wins only for the framework it names."""
        record = _user_record(mbti="INTJ")
        assert effective_value(Framework.MBTI, "ISFP", record) == "INTJ"
        assert effective_value(Framework.ENNEAGRAM, 1, record) == 1
        assert effective_value(Framework.MBTI, "ISFP", None) == "ISFP"

    def test_display_value_replaced_details_kept(self, neutral_responses: list[int]) -> None:
        """Display values change while computed details stay."""
        profile = score_profile(neutral_responses)
        updated = apply_user_overrides(profile, _user_record(mbti="INTJ", enneagram=5))

        assert updated.mappings.mbti == "INTJ"
        assert updated.mappings.enneagram == 5
        assert updated.mappings.mbti_details == profile.mappings.mbti_details
        assert updated.mappings.mbti_details is not None
        assert updated.mappings.mbti_details.type == "ISFP"
        assert updated.overridden_frameworks == ["mbti", "enneagram"]
        assert updated.trait_scores == profile.trait_scores

    def test_no_record_returns_profile_unchanged(self, neutral_responses: list[int]) -> None:
        """Without overrides the same profile object comes back."""
        profile = score_profile(neutral_responses)
        assert apply_user_overrides(profile, None) is profile
        assert apply_user_overrides(profile, _user_record()) is profile
