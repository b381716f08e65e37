"""Fixed trait catalog for the default 108-question instrument.

Defines the 36 traits, the domain -> triad -> trait structure (order is
significant: tie-breaking depends on first/middle/last position), and the
default trait -> question-index mapping (1-based indices).

Every question feeds two traits: one from the External/Internal half
(indices stepped by 3) and one from the Interpersonal/Processing half
(indices stepped by 6).
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Final

RESPONSE_LENGTH: Final = 108
RESPONSE_MIN: Final = 1
RESPONSE_MAX: Final = 10
QUESTIONS_PER_TRAIT: Final = 6

Triad = tuple[str, str, str]

DOMAINS: Final[MappingProxyType[str, MappingProxyType[str, Triad]]] = MappingProxyType(
    {
        "External": MappingProxyType(
            {
                "Control": ("Structured", "Ambivalent", "Independent"),
                "Will": ("Passive", "Diplomatic", "Assertive"),
                "Design": ("Lawful", "Pragmatic", "Self-Principled"),
            }
        ),
        "Internal": MappingProxyType(
            {
                "Self-Focus": ("Self-Indulgent", "Self-Aware", "Self-Mastery"),
                "Motivation": ("Intrinsic", "Responsive", "Extrinsic"),
                "Behavior": ("Pessimistic", "Realistic", "Optimistic"),
            }
        ),
        "Interpersonal": MappingProxyType(
            {
                "Navigate": ("Independent Navigate", "Mixed Navigate", "Communal Navigate"),
                "Communication": ("Direct", "Mixed Communication", "Passive Communication"),
                "Stimulation": ("Dynamic", "Modular", "Static"),
            }
        ),
        "Processing": MappingProxyType(
            {
                "Cognitive": ("Analytical", "Varied", "Intuitive"),
                "Regulation": ("Turbulent", "Responsive Regulation", "Stoic"),
                "Reality": ("Physical", "Social", "Universal"),
            }
        ),
    }
)

TRAITS: Final[tuple[str, ...]] = tuple(
    trait for triads in DOMAINS.values() for triad in triads.values() for trait in triad
)
TRAIT_SET: Final[frozenset[str]] = frozenset(TRAITS)


def _stepped(start: int, step: int) -> tuple[int, ...]:
    return tuple(start + step * j for j in range(QUESTIONS_PER_TRAIT))


DEFAULT_TRAIT_MAPPINGS: Final[MappingProxyType[str, tuple[int, ...]]] = MappingProxyType(
    {
        # External
        "Structured": _stepped(1, 3),
        "Ambivalent": _stepped(2, 3),
        "Independent": _stepped(3, 3),
        "Passive": _stepped(19, 3),
        "Diplomatic": _stepped(20, 3),
        "Assertive": _stepped(21, 3),
        "Lawful": _stepped(37, 3),
        "Pragmatic": _stepped(38, 3),
        "Self-Principled": _stepped(39, 3),
        # Internal
        "Self-Indulgent": _stepped(55, 3),
        "Self-Aware": _stepped(56, 3),
        "Self-Mastery": _stepped(57, 3),
        "Intrinsic": _stepped(73, 3),
        "Responsive": _stepped(74, 3),
        "Extrinsic": _stepped(75, 3),
        "Pessimistic": _stepped(91, 3),
        "Realistic": _stepped(92, 3),
        "Optimistic": _stepped(93, 3),
        # Interpersonal
        "Independent Navigate": _stepped(1, 6),
        "Mixed Navigate": _stepped(2, 6),
        "Communal Navigate": _stepped(3, 6),
        "Direct": _stepped(4, 6),
        "Mixed Communication": _stepped(5, 6),
        "Passive Communication": _stepped(6, 6),
        "Dynamic": _stepped(37, 6),
        "Modular": _stepped(38, 6),
        "Static": _stepped(39, 6),
        # Processing
        "Analytical": _stepped(40, 6),
        "Varied": _stepped(41, 6),
        "Intuitive": _stepped(42, 6),
        "Turbulent": _stepped(73, 6),
        "Responsive Regulation": _stepped(74, 6),
        "Stoic": _stepped(75, 6),
        "Physical": _stepped(76, 6),
        "Social": _stepped(77, 6),
        "Universal": _stepped(78, 6),
    }
)


def iter_triads() -> list[tuple[str, str, Triad]]:
    """Return (domain, triad_name, triad) tuples in catalog order."""
    return [
        (domain, name, triad) for domain, triads in DOMAINS.items() for name, triad in triads.items()
    ]


def dominant_key(domain: str, triad_name: str) -> str:
    """Build the DominantTraitMap key for a triad, e.g. "External-Control"."""
    return f"{domain}-{triad_name}"
