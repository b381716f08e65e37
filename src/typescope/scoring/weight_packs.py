"""Built-in per-framework weight packs.

Every framework is expressed in one shape: classification dimension ->
DimensionWeights(traits: trait -> weight, threshold?). A dimension's value
is always the weighted mean of its traits, so tiered source tables
(primary/secondary, strong/moderate) are folded into the weights.

Packs are validated on construction (fail closed): unknown traits, empty
dimensions, or an MBTI dimension whose weights do not sum to 1 reject the
pack. The same checks run on overrides via validate_weight_table().
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from typescope.errors import ConfigurationError
from typescope.scoring.catalog import TRAIT_SET
from typescope.scoring.models import DimensionWeights, Framework

MBTI_WEIGHT_SUM_TOLERANCE = 0.1
MBTI_THRESHOLD_RANGE = (1.0, 10.0)
DEFAULT_MBTI_THRESHOLD = 5.0
DEFAULT_ALIGNMENT_MARGIN = 1.0

FRAMEWORK_DIMENSIONS: dict[Framework, tuple[str, ...]] = {
    Framework.MBTI: ("EI", "SN", "TF", "JP"),
    Framework.BIGFIVE: (
        "Openness",
        "Conscientiousness",
        "Extraversion",
        "Agreeableness",
        "Neuroticism",
    ),
    Framework.ENNEAGRAM: tuple(str(n) for n in range(1, 10)),
    Framework.HOLLAND: ("R", "I", "A", "S", "E", "C"),
    Framework.ALIGNMENT: (
        "lawful",
        "neutral_ethical",
        "chaotic",
        "good",
        "neutral_moral",
        "evil",
    ),
    Framework.SOCIONICS: ("Ne", "Se", "Te", "Fe", "Ni", "Si", "Ti", "Fi"),
    Framework.INTEGRAL: ("red", "amber", "orange", "green", "teal", "turquoise"),
    Framework.ATTACHMENT: (
        "secure",
        "anxious-preoccupied",
        "dismissive-avoidant",
        "fearful-avoidant",
    ),
}


def check_weight_table(
    framework: Framework,
    dimensions: Mapping[str, DimensionWeights],
    *,
    require_all: bool,
) -> list[str]:
    """Collect every problem with a framework weight table.

    Args:
        framework: Framework the table belongs to.
        dimensions: Dimension -> weights.
        require_all: If True, every known dimension must be present.

    Returns:
        Human-readable problem descriptions; empty when the table is valid.
    """
    problems: list[str] = []
    known = FRAMEWORK_DIMENSIONS[framework]

    unknown = sorted(set(dimensions) - set(known))
    if unknown:
        problems.append(f"Unknown {framework.value} dimensions: {unknown}")
    if require_all:
        missing = [d for d in known if d not in dimensions]
        if missing:
            problems.append(f"Missing {framework.value} dimensions: {missing}")

    for dim, weights in dimensions.items():
        if not weights.traits:
            problems.append(f"{framework.value}.{dim} has no traits")
            continue
        unknown_traits = sorted(set(weights.traits) - TRAIT_SET)
        if unknown_traits:
            problems.append(f"{framework.value}.{dim} references unknown traits: {unknown_traits}")
        total = sum(weights.traits.values())
        if total <= 0:
            problems.append(f"{framework.value}.{dim} total weight must be positive")

        if framework is Framework.MBTI:
            if abs(total - 1.0) > MBTI_WEIGHT_SUM_TOLERANCE:
                problems.append(f"mbti.{dim} weights must sum to 1.0 (got {total:.3f})")
            for trait, weight in weights.traits.items():
                if weight > 1.0:
                    problems.append(f"mbti.{dim}.{trait} weight must be within [0, 1]")
            low, high = MBTI_THRESHOLD_RANGE
            if weights.threshold is not None and not low <= weights.threshold <= high:
                problems.append(f"mbti.{dim} threshold must be within [{low}, {high}]")
        elif weights.threshold is not None and weights.threshold < 0:
            problems.append(f"{framework.value}.{dim} threshold must be non-negative")

    return problems


def validate_weight_table(
    framework: Framework,
    raw: Mapping[str, Any],
    *,
    require_all: bool = False,
) -> dict[str, DimensionWeights]:
    """Parse and validate a weight table.

    Args:
        framework: Framework the table belongs to.
        raw: Dimension -> DimensionWeights or equivalent dict.
        require_all: If True, every known dimension must be present.

    Returns:
        Parsed dimension -> DimensionWeights.

    Raises:
        ConfigurationError: If the table is malformed.
    """
    try:
        parsed = {
            str(dim): w if isinstance(w, DimensionWeights) else DimensionWeights.model_validate(w)
            for dim, w in raw.items()
        }
    except ValidationError as e:
        raise ConfigurationError(
            f"Malformed {framework.value} weight table: {e.errors()[0]['msg']}",
            framework=framework.value,
        ) from e

    problems = check_weight_table(framework, parsed, require_all=require_all)
    if problems:
        raise ConfigurationError("; ".join(problems), framework=framework.value)
    return parsed


class FrameworkWeightPack(BaseModel):
    """Complete, validated weight table for one framework."""

    model_config = ConfigDict(frozen=True)

    framework: Framework = Field(..., description="Framework this pack applies to")
    dimensions: dict[str, DimensionWeights] = Field(
        ..., description="Every dimension of the framework"
    )

    @model_validator(mode="after")
    def _validate_dimensions(self) -> FrameworkWeightPack:
        """Fail closed: defaults must be complete and internally consistent."""
        problems = check_weight_table(self.framework, self.dimensions, require_all=True)
        if problems:
            raise ValueError("; ".join(problems))
        return self


def _tiered(*tiers: tuple[float, list[str]]) -> dict[str, float]:
    """Fold (weight, traits) tiers into one trait -> weight dict."""
    weights: dict[str, float] = {}
    for weight, traits in tiers:
        for trait in traits:
            weights[trait] = weights.get(trait, 0.0) + weight
    return weights


def _split(primary: list[str], secondary: list[str]) -> dict[str, float]:
    """0.7 * mean(primary) + 0.3 * mean(secondary), as per-trait weights."""
    return _tiered((0.7 / len(primary), primary), (0.3 / len(secondary), secondary))


def _indicators(strong: list[str], moderate: list[str]) -> dict[str, float]:
    """Strong indicators weigh 1.5, moderate 1.0."""
    return _tiered((1.5, strong), (1.0, moderate))


def _pack(
    framework: Framework,
    tables: dict[str, dict[str, float]],
    thresholds: dict[str, float] | None = None,
) -> FrameworkWeightPack:
    thresholds = thresholds or {}
    return FrameworkWeightPack(
        framework=framework,
        dimensions={
            dim: DimensionWeights(traits=traits, threshold=thresholds.get(dim))
            for dim, traits in tables.items()
        },
    )


_MBTI_PACK = _pack(
    Framework.MBTI,
    {
        "EI": {"Communal Navigate": 0.35, "Dynamic": 0.35, "Assertive": 0.15, "Direct": 0.15},
        "SN": {"Intuitive": 0.40, "Universal": 0.30, "Varied": 0.15, "Self-Aware": 0.15},
        "TF": {"Analytical": 0.35, "Stoic": 0.25, "Direct": 0.20, "Pragmatic": 0.20},
        "JP": {"Structured": 0.35, "Lawful": 0.25, "Self-Mastery": 0.20, "Assertive": 0.20},
    },
    thresholds={dim: DEFAULT_MBTI_THRESHOLD for dim in ("EI", "SN", "TF", "JP")},
)

_BIGFIVE_PACK = _pack(
    Framework.BIGFIVE,
    {
        "Openness": dict.fromkeys(["Intuitive", "Universal", "Self-Aware"], 1.0),
        "Conscientiousness": dict.fromkeys(["Structured", "Self-Mastery", "Lawful"], 1.0),
        "Extraversion": dict.fromkeys(["Assertive", "Dynamic", "Communal Navigate"], 1.0),
        "Agreeableness": dict.fromkeys(["Diplomatic", "Passive", "Responsive"], 1.0),
        "Neuroticism": dict.fromkeys(["Turbulent", "Pessimistic", "Self-Indulgent"], 1.0),
    },
)

_ENNEAGRAM_PACK = _pack(
    Framework.ENNEAGRAM,
    {
        "1": _tiered(
            (3.0, ["Self-Mastery", "Lawful", "Structured"]),
            (2.0, ["Analytical", "Stoic", "Direct"]),
            (1.0, ["Realistic", "Physical"]),
        ),
        "2": _tiered(
            (3.0, ["Communal Navigate", "Diplomatic", "Responsive"]),
            (2.0, ["Social", "Passive", "Extrinsic"]),
            (1.0, ["Optimistic", "Dynamic"]),
        ),
        "3": _tiered(
            (3.0, ["Extrinsic", "Assertive", "Pragmatic"]),
            (2.0, ["Dynamic", "Optimistic", "Social"]),
            (1.0, ["Varied", "Responsive"]),
        ),
        "4": _tiered(
            (3.0, ["Self-Aware", "Intuitive", "Turbulent"]),
            (2.0, ["Self-Principled", "Universal", "Independent"]),
            (1.0, ["Pessimistic", "Dynamic"]),
        ),
        "5": _tiered(
            (3.0, ["Analytical", "Independent Navigate", "Intrinsic"]),
            (2.0, ["Stoic", "Physical", "Independent"]),
            (1.0, ["Universal", "Self-Mastery"]),
        ),
        "6": _tiered(
            (3.0, ["Ambivalent", "Pessimistic", "Lawful"]),
            (2.0, ["Responsive Regulation", "Mixed Navigate", "Social"]),
            (1.0, ["Structured", "Analytical"]),
        ),
        "7": _tiered(
            (3.0, ["Dynamic", "Optimistic", "Self-Indulgent"]),
            (2.0, ["Varied", "Independent", "Intuitive"]),
            (1.0, ["Extrinsic", "Social"]),
        ),
        "8": _tiered(
            (3.0, ["Assertive", "Direct", "Independent"]),
            (2.0, ["Physical", "Self-Principled", "Stoic"]),
            (1.0, ["Pragmatic", "Dynamic"]),
        ),
        "9": _tiered(
            (3.0, ["Passive", "Ambivalent", "Optimistic"]),
            (2.0, ["Mixed Navigate", "Responsive", "Social"]),
            (1.0, ["Modular", "Diplomatic"]),
        ),
    },
)

_HOLLAND_PACK = _pack(
    Framework.HOLLAND,
    {
        "R": _split(
            ["Physical", "Pragmatic", "Independent Navigate", "Stoic"],
            ["Structured", "Analytical", "Static", "Self-Mastery"],
        ),
        "I": _split(
            ["Analytical", "Intrinsic", "Independent", "Universal"],
            ["Self-Aware", "Intuitive", "Stoic", "Self-Mastery"],
        ),
        "A": _split(
            ["Intuitive", "Self-Aware", "Self-Principled", "Dynamic"],
            ["Turbulent", "Universal", "Independent", "Varied"],
        ),
        "S": _split(
            ["Communal Navigate", "Social", "Diplomatic", "Responsive"],
            ["Optimistic", "Dynamic", "Passive", "Mixed Communication"],
        ),
        "E": _split(
            ["Assertive", "Extrinsic", "Direct", "Optimistic"],
            ["Dynamic", "Pragmatic", "Social", "Varied"],
        ),
        "C": _split(
            ["Structured", "Lawful", "Passive", "Realistic"],
            ["Analytical", "Static", "Physical", "Stoic"],
        ),
    },
)

_ALIGNMENT_PACK = _pack(
    Framework.ALIGNMENT,
    {
        "lawful": _indicators(
            ["Lawful", "Structured", "Self-Mastery"], ["Diplomatic", "Analytical", "Stoic"]
        ),
        "neutral_ethical": dict.fromkeys(["Pragmatic", "Ambivalent", "Responsive", "Varied"], 1.0),
        "chaotic": _indicators(
            ["Self-Principled", "Independent", "Dynamic"], ["Intuitive", "Varied", "Self-Indulgent"]
        ),
        "good": _indicators(
            ["Communal Navigate", "Diplomatic", "Optimistic"], ["Responsive", "Social", "Passive"]
        ),
        "neutral_moral": dict.fromkeys(["Realistic", "Mixed Navigate", "Pragmatic", "Stoic"], 1.0),
        "evil": _indicators(
            ["Self-Indulgent", "Assertive", "Independent Navigate"],
            ["Pessimistic", "Direct", "Physical"],
        ),
    },
    thresholds=dict.fromkeys(["lawful", "chaotic", "good", "evil"], DEFAULT_ALIGNMENT_MARGIN),
)

_SOCIONICS_PACK = _pack(
    Framework.SOCIONICS,
    {
        "Ne": _split(["Intuitive", "Dynamic", "Varied"], ["Optimistic", "Extrinsic", "Social"]),
        "Se": _split(["Physical", "Assertive", "Dynamic"], ["Direct", "Pragmatic", "Extrinsic"]),
        "Te": _split(["Analytical", "Pragmatic", "Direct"], ["Assertive", "Extrinsic", "Structured"]),
        "Fe": _split(
            ["Social", "Diplomatic", "Responsive"], ["Communal Navigate", "Extrinsic", "Dynamic"]
        ),
        "Ni": _split(
            ["Intuitive", "Universal", "Self-Aware"], ["Self-Mastery", "Intrinsic", "Static"]
        ),
        "Si": _split(["Physical", "Structured", "Static"], ["Pessimistic", "Intrinsic", "Self-Aware"]),
        "Ti": _split(
            ["Analytical", "Independent", "Stoic"], ["Intrinsic", "Self-Mastery", "Universal"]
        ),
        "Fi": _split(
            ["Self-Aware", "Self-Principled", "Intrinsic"],
            ["Independent Navigate", "Intuitive", "Turbulent"],
        ),
    },
)

_INTEGRAL_PACK = _pack(
    Framework.INTEGRAL,
    {
        "red": _indicators(
            ["Self-Indulgent", "Assertive", "Physical", "Dynamic"],
            ["Direct", "Independent", "Turbulent"],
        ),
        "amber": _indicators(
            ["Lawful", "Structured", "Passive", "Pessimistic"],
            ["Communal Navigate", "Stoic", "Responsive"],
        ),
        "orange": _indicators(
            ["Analytical", "Extrinsic", "Pragmatic", "Realistic"],
            ["Assertive", "Self-Mastery", "Direct", "Independent"],
        ),
        "green": _indicators(
            ["Social", "Diplomatic", "Responsive", "Mixed Navigate"],
            ["Communal Navigate", "Mixed Communication", "Optimistic"],
        ),
        "teal": _indicators(
            ["Universal", "Self-Aware", "Varied", "Intrinsic"],
            ["Self-Principled", "Intuitive", "Ambivalent"],
        ),
        "turquoise": _indicators(
            ["Universal", "Self-Mastery", "Intuitive", "Stoic"],
            ["Self-Aware", "Intrinsic", "Independent Navigate"],
        ),
    },
)

_ATTACHMENT_PACK = _pack(
    Framework.ATTACHMENT,
    {
        "secure": _split(
            ["Mixed Navigate", "Responsive", "Diplomatic", "Optimistic"],
            ["Self-Aware", "Realistic", "Modular"],
        ),
        "anxious-preoccupied": _split(
            ["Communal Navigate", "Turbulent", "Passive", "Social"],
            ["Pessimistic", "Extrinsic", "Responsive"],
        ),
        "dismissive-avoidant": _split(
            ["Independent Navigate", "Stoic", "Self-Mastery", "Physical"],
            ["Assertive", "Analytical", "Static"],
        ),
        "fearful-avoidant": _split(
            ["Independent Navigate", "Turbulent", "Pessimistic", "Ambivalent"],
            ["Self-Aware", "Passive", "Universal"],
        ),
    },
)

_DEFAULT_PACKS: dict[Framework, FrameworkWeightPack] = {
    pack.framework: pack
    for pack in (
        _MBTI_PACK,
        _BIGFIVE_PACK,
        _ENNEAGRAM_PACK,
        _HOLLAND_PACK,
        _ALIGNMENT_PACK,
        _SOCIONICS_PACK,
        _INTEGRAL_PACK,
        _ATTACHMENT_PACK,
    )
}


def get_default_pack(framework: Framework) -> FrameworkWeightPack:
    """Return the built-in pack for a framework.

    Raises:
        ConfigurationError: If no pack exists (fail closed).
    """
    pack = _DEFAULT_PACKS.get(framework)
    if pack is None:
        raise ConfigurationError(f"No default weight pack for {framework}", framework=str(framework))
    return pack


def get_default_weights(framework: Framework) -> dict[str, DimensionWeights]:
    """Return a copy of the built-in dimension table for a framework."""
    return dict(get_default_pack(framework).dimensions)


def resolve_weights(
    framework: Framework,
    override: Mapping[str, Any] | None = None,
) -> dict[str, DimensionWeights]:
    """Overlay an override table on the built-in defaults.

    An overridden dimension replaces the default trait weights entirely; a
    missing override threshold inherits the default threshold.

    Args:
        framework: Framework to resolve.
        override: Optional dimension -> weights override.

    Returns:
        Complete, validated dimension table.

    Raises:
        ConfigurationError: If the override is malformed.
    """
    effective = get_default_weights(framework)
    if not override:
        return effective

    parsed = validate_weight_table(framework, override)
    for dim, weights in parsed.items():
        threshold = weights.threshold
        if threshold is None and dim in effective:
            threshold = effective[dim].threshold
        effective[dim] = DimensionWeights(traits=dict(weights.traits), threshold=threshold)
    return effective
