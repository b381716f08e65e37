"""Scoring override models.

- ScoringOverrides: the global override document (trait mappings plus one
  optional weight table per framework)
- FrameworkOverride subclasses: typed, fully validated per-framework tables
  used at the store boundary
- UserOverrideRecord: per-user final-label overrides
- merge_overrides / mapping_weights / apply_user_overrides helpers

ScoringOverrides itself only checks shape. Semantic checks (known traits,
MBTI weight sums) run in validate_overrides() before anything is persisted,
and again per framework inside the engine so one bad table cannot break the
others.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, ClassVar, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    model_validator,
)

from typescope.errors import ConfigurationError
from typescope.integral.levels import LEVEL_KEYS
from typescope.scoring.catalog import RESPONSE_LENGTH, TRAIT_SET
from typescope.scoring.frameworks.attachment import ATTACHMENT_STYLES
from typescope.scoring.frameworks.socionics import SOCIONICS_TYPES
from typescope.scoring.models import DimensionWeights, Framework, PersonalityProfile
from typescope.scoring.weight_packs import check_weight_table

WeightTable = dict[str, DimensionWeights]


class ScoringOverrides(BaseModel):
    """Global scoring override document.

    Trait mappings are serialized under the `traitMappings` key; the model
    accepts either spelling on input.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    trait_mappings: dict[str, list[int]] | None = Field(default=None, alias="traitMappings")
    mbti: WeightTable | None = None
    bigfive: WeightTable | None = None
    enneagram: WeightTable | None = None
    alignment: WeightTable | None = None
    holland: WeightTable | None = None
    socionics: WeightTable | None = None
    integral: WeightTable | None = None
    attachment: WeightTable | None = None

    def framework_table(self, framework: Framework) -> WeightTable | None:
        table: WeightTable | None = getattr(self, framework.value)
        return table

    def is_empty(self) -> bool:
        return not self.trait_mappings and all(
            not self.framework_table(framework) for framework in Framework
        )

    def to_document(self) -> dict[str, Any]:
        """JSON-ready dict, using the `traitMappings` spelling."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_document(cls, document: dict[str, Any] | None) -> ScoringOverrides:
        """Parse a stored document.

        Raises:
            ConfigurationError: If the document does not match the model.
        """
        try:
            return cls.model_validate(document or {})
        except ValidationError as e:
            raise ConfigurationError(f"Malformed scoring overrides: {e.errors()[0]['msg']}") from e


class FrameworkOverride(RootModel[WeightTable]):
    """Partial weight table for one framework, checked against its rules."""

    framework: ClassVar[Framework]

    @model_validator(mode="after")
    def _check_table(self) -> FrameworkOverride:
        problems = check_weight_table(self.framework, self.root, require_all=False)
        if problems:
            raise ValueError("; ".join(problems))
        return self


class MbtiOverride(FrameworkOverride):
    framework: ClassVar[Framework] = Framework.MBTI


class BigFiveOverride(FrameworkOverride):
    framework: ClassVar[Framework] = Framework.BIGFIVE


class EnneagramOverride(FrameworkOverride):
    framework: ClassVar[Framework] = Framework.ENNEAGRAM


class AlignmentOverride(FrameworkOverride):
    framework: ClassVar[Framework] = Framework.ALIGNMENT


class HollandOverride(FrameworkOverride):
    framework: ClassVar[Framework] = Framework.HOLLAND


class SocionicsOverride(FrameworkOverride):
    framework: ClassVar[Framework] = Framework.SOCIONICS


class IntegralOverride(FrameworkOverride):
    framework: ClassVar[Framework] = Framework.INTEGRAL


class AttachmentOverride(FrameworkOverride):
    framework: ClassVar[Framework] = Framework.ATTACHMENT


FRAMEWORK_OVERRIDE_MODELS: dict[Framework, type[FrameworkOverride]] = {
    model.framework: model
    for model in (
        MbtiOverride,
        BigFiveOverride,
        EnneagramOverride,
        AlignmentOverride,
        HollandOverride,
        SocionicsOverride,
        IntegralOverride,
        AttachmentOverride,
    )
}


def validate_overrides(overrides: ScoringOverrides) -> ScoringOverrides:
    """Fully validate an override document before it is stored.

    Raises:
        ConfigurationError: On unknown traits, empty or out-of-range trait
            mappings, or any framework table that breaks its rules.
    """
    if overrides.trait_mappings:
        unknown = sorted(set(overrides.trait_mappings) - TRAIT_SET)
        if unknown:
            raise ConfigurationError(f"Trait mapping override names unknown traits: {unknown}")
        for trait, indices in overrides.trait_mappings.items():
            if not indices:
                raise ConfigurationError(f"Trait '{trait}' has no mapped questions")
            if any(index < 1 for index in indices):
                raise ConfigurationError(f"Trait '{trait}' has a question index below 1")
            beyond = sorted(index for index in indices if index > RESPONSE_LENGTH)
            if beyond:
                raise ConfigurationError(
                    f"Trait '{trait}' maps to questions {beyond}, outside 1..{RESPONSE_LENGTH}"
                )

    for framework, model in FRAMEWORK_OVERRIDE_MODELS.items():
        table = overrides.framework_table(framework)
        if table is None:
            continue
        try:
            model.model_validate(table)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid {framework.value} override: {e.errors()[0]['msg']}",
                framework=framework.value,
            ) from e
    return overrides


def merge_overrides(
    base: ScoringOverrides | None, partial: ScoringOverrides
) -> ScoringOverrides:
    """Merge a partial document into the current one.

    Framework tables merge per dimension and trait mappings merge per trait;
    anything the partial omits is kept from `base`.
    """
    if base is None:
        return partial
    update: dict[str, Any] = {}
    if partial.trait_mappings is not None:
        update["trait_mappings"] = {**(base.trait_mappings or {}), **partial.trait_mappings}
    for framework in Framework:
        table = partial.framework_table(framework)
        if table is not None:
            update[framework.value] = {**(base.framework_table(framework) or {}), **table}
    return base.model_copy(update=update)


def mapping_weights(overrides: ScoringOverrides | None) -> dict[str, dict[str, dict[str, float]]]:
    """Read-only framework -> dimension -> trait -> weight view of the overrides."""
    if overrides is None:
        return {}
    view: dict[str, dict[str, dict[str, float]]] = {}
    for framework in Framework:
        table = overrides.framework_table(framework)
        if table:
            view[framework.value] = {dim: dict(w.traits) for dim, w in table.items()}
    return view


class ScoringConfigRecord(BaseModel):
    """Latest stored version of the global overrides."""

    model_config = ConfigDict(frozen=True)

    version: int = Field(..., ge=1)
    overrides: ScoringOverrides
    updated_by: str
    updated_at: datetime


# --- user overrides ---------------------------------------------------------

BIGFIVE_FACTORS = ("Openness", "Conscientiousness", "Extraversion", "Agreeableness", "Neuroticism")
ALIGNMENT_LABELS = (
    "Lawful Good",
    "Neutral Good",
    "Chaotic Good",
    "Lawful Neutral",
    "True Neutral",
    "Chaotic Neutral",
    "Lawful Evil",
    "Neutral Evil",
    "Chaotic Evil",
)


def _member_of(allowed: frozenset[str] | tuple[str, ...], label: str) -> Any:
    def check(value: str) -> str:
        if value not in allowed:
            raise ValueError(f"{value!r} is not a valid {label}")
        return value

    return AfterValidator(check)


def _distinct_letters(value: str) -> str:
    if len(set(value)) != len(value):
        raise ValueError("Holland code letters must not repeat")
    return value


def _all_factors(value: dict[str, float]) -> dict[str, float]:
    missing = [factor for factor in BIGFIVE_FACTORS if factor not in value]
    if missing:
        raise ValueError(f"Big Five override is missing factors: {missing}")
    return value


_USER_VALUE_ADAPTERS: dict[Framework, TypeAdapter[Any]] = {
    Framework.MBTI: TypeAdapter(Annotated[str, StringConstraints(pattern=r"^[EI][SN][TF][JP]$")]),
    Framework.ENNEAGRAM: TypeAdapter(Annotated[int, Field(ge=1, le=9)]),
    Framework.BIGFIVE: TypeAdapter(
        Annotated[
            dict[
                Literal[
                    "Openness", "Conscientiousness", "Extraversion", "Agreeableness", "Neuroticism"
                ],
                Annotated[float, Field(ge=1.0, le=10.0)],
            ],
            AfterValidator(_all_factors),
        ]
    ),
    Framework.HOLLAND: TypeAdapter(
        Annotated[
            str, StringConstraints(pattern=r"^[RIASEC]{1,3}$"), AfterValidator(_distinct_letters)
        ]
    ),
    Framework.ALIGNMENT: TypeAdapter(Annotated[str, _member_of(ALIGNMENT_LABELS, "alignment")]),
    Framework.SOCIONICS: TypeAdapter(
        Annotated[str, _member_of(SOCIONICS_TYPES, "Socionics type")]
    ),
    Framework.INTEGRAL: TypeAdapter(Annotated[str, _member_of(LEVEL_KEYS, "Integral level")]),
    Framework.ATTACHMENT: TypeAdapter(
        Annotated[str, _member_of(ATTACHMENT_STYLES, "attachment style")]
    ),
}

# framework -> FrameworkMappings display field
DISPLAY_FIELDS: dict[Framework, str] = {
    Framework.MBTI: "mbti",
    Framework.ENNEAGRAM: "enneagram",
    Framework.BIGFIVE: "big_five",
    Framework.ALIGNMENT: "dnd_alignment",
    Framework.SOCIONICS: "socionics",
    Framework.HOLLAND: "holland_code",
    Framework.ATTACHMENT: "attachment_style",
    Framework.INTEGRAL: "integral_level",
}


def validate_user_value(framework: Framework | str, value: Any) -> Any:
    """Validate and normalise a final-label override for one framework.

    Raises:
        ConfigurationError: If the framework is unknown or the value has the
            wrong shape.
    """
    try:
        fw = Framework(framework)
    except ValueError as e:
        raise ConfigurationError(f"Unknown framework: {framework}") from e
    try:
        return _USER_VALUE_ADAPTERS[fw].validate_python(value)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid {fw.value} override value: {e.errors()[0]['msg']}", framework=fw.value
        ) from e


class UserOverrideRecord(BaseModel):
    """Per-user final-label overrides."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    overrides: dict[str, Any] = Field(default_factory=dict, description="Framework -> value")
    reason: str | None = None
    created_by: str
    created_at: datetime
    updated_at: datetime


def effective_value(
    framework: Framework, computed: Any, record: UserOverrideRecord | None
) -> Any:
    """User override wins over the computed value."""
    if record is not None and framework.value in record.overrides:
        return record.overrides[framework.value]
    return computed


def apply_user_overrides(
    profile: PersonalityProfile, record: UserOverrideRecord | None
) -> PersonalityProfile:
    """Replace display values with a user's overrides.

    Detail fields keep the computed results; only the display fields change
    and the replaced frameworks are listed in `overridden_frameworks`.
    """
    if record is None or not record.overrides:
        return profile
    update: dict[str, Any] = {}
    overridden: list[str] = []
    for framework, field_name in DISPLAY_FIELDS.items():
        if framework.value in record.overrides:
            update[field_name] = effective_value(framework, None, record)
            overridden.append(framework.value)
    if not update:
        return profile
    return profile.model_copy(
        update={
            "mappings": profile.mappings.model_copy(update=update),
            "overridden_frameworks": overridden,
        }
    )
