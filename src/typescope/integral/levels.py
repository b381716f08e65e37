"""Developmental level catalog.

Six levels in developmental order. The order is significant: ties between
level scores resolve to the earlier level, and the developmental edge
compares positions in LEVEL_ORDER.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class IntegralLevel:
    """Static description of one developmental level."""

    key: str
    number: int
    color: str
    name: str
    worldview: str
    thinking_pattern: str
    growth_edge: tuple[str, ...]
    typical_concerns: tuple[str, ...]
    complexity: float
    triad: str


INTEGRAL_LEVELS: dict[str, IntegralLevel] = {
    "red": IntegralLevel(
        key="red",
        number=2,
        color="Red",
        name="Power/Control",
        worldview="Egocentric, immediate gratification",
        thinking_pattern="Impulsive, power-based, here-and-now",
        growth_edge=(
            "Develop impulse control",
            "Learn rule-following",
            "Consider others' needs",
            "Build basic structure",
        ),
        typical_concerns=("Survival", "Power", "Respect", "Freedom from constraint"),
        complexity=2.0,
        triad="physical",
    ),
    "amber": IntegralLevel(
        key="amber",
        number=3,
        color="Amber",
        name="Order/Belong",
        worldview="Ethnocentric, rule-based order",
        thinking_pattern="Rule-based, hierarchical, conformist",
        growth_edge=(
            "Question rigid rules when appropriate",
            "Develop critical thinking",
            "Consider multiple perspectives",
            "Balance tradition with innovation",
        ),
        typical_concerns=("Order", "Tradition", "Belonging", "Moral righteousness"),
        complexity=3.0,
        triad="physical",
    ),
    "orange": IntegralLevel(
        key="orange",
        number=4,
        color="Orange",
        name="Achieve",
        worldview="World-centric, rational, achievement-focused",
        thinking_pattern="Strategic, analytical, goal-oriented",
        growth_edge=(
            "Integrate emotional intelligence",
            "Consider community impact",
            "Balance competition with cooperation",
            "Develop systems thinking",
        ),
        typical_concerns=("Success", "Achievement", "Rational progress", "Individual excellence"),
        complexity=5.0,
        triad="social",
    ),
    "green": IntegralLevel(
        key="green",
        number=5,
        color="Green",
        name="Understand",
        worldview="World-centric, pluralistic, community-focused",
        thinking_pattern="Relativistic, consensus-seeking, inclusive",
        growth_edge=(
            "Integrate healthy hierarchy",
            "Develop discernment skills",
            "Balance relativism with truth",
            "Move beyond group-think",
        ),
        typical_concerns=("Equality", "Community", "Relationships", "Cultural sensitivity"),
        complexity=6.0,
        triad="social",
    ),
    "teal": IntegralLevel(
        key="teal",
        number=6,
        color="Teal",
        name="Harmonize",
        worldview="Integral, systematic, holistic",
        thinking_pattern="Integrative, systematic, paradox-comfortable",
        growth_edge=(
            "Deepen spiritual understanding",
            "Expand cosmic perspective",
            "Integrate body-mind-spirit",
            "Develop global consciousness",
        ),
        typical_concerns=(
            "Integration",
            "Systems health",
            "Global sustainability",
            "Evolutionary development",
        ),
        complexity=8.0,
        triad="universal",
    ),
    "turquoise": IntegralLevel(
        key="turquoise",
        number=7,
        color="Turquoise",
        name="Sanctify",
        worldview="Kosmo-centric, holistic, transpersonal",
        thinking_pattern="Holistic, transpersonal, cosmic",
        growth_edge=(
            "Deepen cosmic consciousness",
            "Integrate higher spiritual states",
            "Expand trans-rational awareness",
            "Embody universal compassion",
        ),
        typical_concerns=(
            "Cosmic harmony",
            "Universal consciousness",
            "Ecological wholeness",
            "Transpersonal evolution",
        ),
        complexity=10.0,
        triad="universal",
    ),
}

LEVEL_ORDER: tuple[str, ...] = tuple(INTEGRAL_LEVELS)
LEVEL_KEYS: frozenset[str] = frozenset(LEVEL_ORDER)


def get_level(key: str) -> IntegralLevel:
    """Look up a level by key.

    Raises:
        KeyError: If the key is not a known level.
    """
    return INTEGRAL_LEVELS[key]


def level_position(key: str) -> int:
    """Zero-based position of a level in developmental order."""
    return LEVEL_ORDER.index(key)


def is_extreme_level(key: str) -> bool:
    """True for the first and last levels of the range."""
    return key in (LEVEL_ORDER[0], LEVEL_ORDER[-1])
