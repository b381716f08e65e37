"""Structural diff and risk rating for scoring override documents."""

from __future__ import annotations

import logging

from typescope.audit.models import ImpactAssessment
from typescope.config.overrides import ScoringOverrides, WeightTable
from typescope.scoring.models import DimensionWeights, Framework
from typescope.scoring.weight_packs import check_weight_table

logger = logging.getLogger(__name__)

WEIGHT_CHANGE_EPSILON = 0.001

FRAMEWORK_LABELS: dict[Framework, str] = {
    Framework.MBTI: "MBTI",
    Framework.BIGFIVE: "Big Five",
    Framework.ENNEAGRAM: "Enneagram",
    Framework.ALIGNMENT: "Alignment",
    Framework.HOLLAND: "Holland",
    Framework.SOCIONICS: "Socionics",
    Framework.INTEGRAL: "Integral",
    Framework.ATTACHMENT: "Attachment",
}


def _format_threshold(value: float | None) -> str:
    return "default" if value is None else f"{value:g}"


def _diff_dimension(
    label: str, dim: str, old: DimensionWeights, new: DimensionWeights
) -> list[str]:
    changes: list[str] = []
    for trait, weight in new.traits.items():
        old_weight = old.traits.get(trait)
        if old_weight is None:
            changes.append(f"{label} {dim}: added {trait} ({weight:.3f})")
        elif abs(old_weight - weight) > WEIGHT_CHANGE_EPSILON:
            changes.append(f"{label} {dim}.{trait}: {old_weight:.3f} → {weight:.3f}")
    for trait in old.traits:
        if trait not in new.traits:
            changes.append(f"{label} {dim}: removed {trait}")
    if old.threshold != new.threshold:
        changes.append(
            f"{label} {dim} threshold: "
            f"{_format_threshold(old.threshold)} → {_format_threshold(new.threshold)}"
        )
    return changes


def _diff_table(label: str, old: WeightTable, new: WeightTable) -> list[str]:
    changes: list[str] = []
    for dim, weights in new.items():
        if dim not in old:
            changes.append(f"{label} {dim}: override added")
        else:
            changes.extend(_diff_dimension(label, dim, old[dim], weights))
    for dim in old:
        if dim not in new:
            changes.append(f"{label} {dim}: override removed")
    return changes


def _diff_mappings(old: dict[str, list[int]], new: dict[str, list[int]]) -> list[str]:
    changes: list[str] = []
    for trait in [*new, *(t for t in old if t not in new)]:
        new_questions = new.get(trait, [])
        old_questions = old.get(trait, [])
        added = [q for q in new_questions if q not in old_questions]
        removed = [q for q in old_questions if q not in new_questions]
        if added:
            changes.append(f"{trait}: Added questions {', '.join(map(str, added))}")
        if removed:
            changes.append(f"{trait}: Removed questions {', '.join(map(str, removed))}")
    return changes


def generate_changes_summary(
    old: ScoringOverrides | None, new: ScoringOverrides
) -> list[str]:
    """Human-readable list of differences between two override documents.

    Args:
        old: Previous overrides, or None when there was no configuration.
        new: Proposed or current overrides.

    Returns:
        One line per weight, threshold or trait mapping difference.
    """
    if old is None:
        return ["Initial configuration created"]

    changes: list[str] = []
    for framework in Framework:
        label = FRAMEWORK_LABELS[framework]
        changes.extend(
            _diff_table(
                label,
                old.framework_table(framework) or {},
                new.framework_table(framework) or {},
            )
        )
    changes.extend(_diff_mappings(old.trait_mappings or {}, new.trait_mappings or {}))
    return changes


def get_impact_assessment(changes: ScoringOverrides) -> ImpactAssessment:
    """Rate the risk of applying a set of override changes.

    MBTI weight changes are medium risk (MBTI drives Socionics too). Traits
    left without questions or weight tables that break their framework's
    rules are high risk. Anything else is low.
    """
    risk = "low"
    factors: list[str] = []
    affected: list[str] = []

    def raise_to(level: str) -> None:
        nonlocal risk
        order = ("low", "medium", "high")
        if order.index(level) > order.index(risk):
            risk = level

    for framework in Framework:
        table = changes.framework_table(framework)
        if not table:
            continue
        label = FRAMEWORK_LABELS[framework]
        affected.append(framework.value)
        factors.append(f"{label} weights modified")
        if framework is Framework.MBTI:
            raise_to("medium")
            affected.append(Framework.SOCIONICS.value)
        problems = check_weight_table(framework, table, require_all=False)
        if problems:
            raise_to("high")
            factors.extend(problems)

    if changes.trait_mappings:
        factors.append(f"{len(changes.trait_mappings)} trait mappings modified")
        affected = [fw.value for fw in Framework]
        empty = [trait for trait, questions in changes.trait_mappings.items() if not questions]
        if empty:
            raise_to("high")
            factors.append(f"{len(empty)} traits have no questions mapped")

    return ImpactAssessment(
        risk_level=risk,
        factors=factors,
        affected_frameworks=list(dict.fromkeys(affected)),
    )
