"""Profile scoring entry point.

score_profile() runs the whole pipeline for one response vector:

    validate -> trait scores -> dominant traits / domain scores
             -> every framework classifier, each isolated from the others

Invalid responses and unusable trait mappings are fatal. A broken weight
table only disables its own framework: the framework's output is None and
the error message is recorded in `profile.errors`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from typescope.errors import ConfigurationError
from typescope.observability.tracing import traced_span
from typescope.scoring.frameworks import (
    classify_alignment,
    classify_attachment,
    classify_bigfive,
    classify_enneagram,
    classify_holland,
    classify_integral,
    classify_mbti,
    classify_socionics,
)
from typescope.scoring.models import (
    DimensionWeights,
    Framework,
    FrameworkMappings,
    PersonalityProfile,
    validate_responses,
)
from typescope.scoring.traits import (
    aggregate_domain_scores,
    calculate_trait_scores,
    determine_dominant_traits,
    resolve_trait_mappings,
)
from typescope.scoring.weight_packs import resolve_weights

if TYPE_CHECKING:
    from typescope.config.overrides import ScoringOverrides

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _isolated(
    framework: Framework,
    errors: dict[str, str],
    compute: Callable[[], T],
) -> T | None:
    try:
        return compute()
    except ConfigurationError as e:
        logger.warning("Framework %s disabled by configuration error: %s", framework, e)
        errors[framework.value] = str(e)
        return None


def _weights(
    framework: Framework, overrides: ScoringOverrides | None
) -> dict[str, DimensionWeights]:
    table = overrides.framework_table(framework) if overrides is not None else None
    return resolve_weights(framework, table)


def score_profile(
    responses: Sequence[int],
    overrides: ScoringOverrides | None = None,
) -> PersonalityProfile:
    """Score a response vector into a full personality profile.

    Args:
        responses: 108 Likert responses, each an integer in 1..10.
        overrides: Optional global scoring overrides (trait mappings and
            per-framework weight tables).

    Returns:
        PersonalityProfile with trait, dominant, domain and framework output.

    Raises:
        InputValidationError: If the response vector is malformed.
        ConfigurationError: If the trait mapping is unusable (every
            framework depends on trait scores).
    """
    with traced_span("typescope.score_profile", overridden=overrides is not None) as span:
        values = validate_responses(responses)
        trait_mappings = resolve_trait_mappings(
            overrides.trait_mappings if overrides is not None else None
        )
        scores = calculate_trait_scores(values, trait_mappings)
        dominant = determine_dominant_traits(scores)
        domains = aggregate_domain_scores(scores)

        errors: dict[str, str] = {}
        results: dict[str, Any] = {}

        mbti = _isolated(
            Framework.MBTI,
            errors,
            lambda: classify_mbti(scores, _weights(Framework.MBTI, overrides)),
        )
        enneagram = _isolated(
            Framework.ENNEAGRAM,
            errors,
            lambda: classify_enneagram(scores, _weights(Framework.ENNEAGRAM, overrides)),
        )
        bigfive = _isolated(
            Framework.BIGFIVE,
            errors,
            lambda: classify_bigfive(scores, _weights(Framework.BIGFIVE, overrides)),
        )
        alignment = _isolated(
            Framework.ALIGNMENT,
            errors,
            lambda: classify_alignment(scores, _weights(Framework.ALIGNMENT, overrides)),
        )
        holland = _isolated(
            Framework.HOLLAND,
            errors,
            lambda: classify_holland(scores, _weights(Framework.HOLLAND, overrides)),
        )
        attachment = _isolated(
            Framework.ATTACHMENT,
            errors,
            lambda: classify_attachment(scores, _weights(Framework.ATTACHMENT, overrides)),
        )
        integral = _isolated(
            Framework.INTEGRAL,
            errors,
            lambda: classify_integral(scores, _weights(Framework.INTEGRAL, overrides)),
        )
        socionics = None
        if mbti is not None:
            socionics = _isolated(
                Framework.SOCIONICS,
                errors,
                lambda: classify_socionics(
                    mbti.type, scores, _weights(Framework.SOCIONICS, overrides)
                ),
            )

        if mbti is not None:
            results.update(mbti=mbti.type, mbti_details=mbti)
        if enneagram is not None:
            results.update(enneagram=enneagram.type, enneagram_details=enneagram)
        if bigfive is not None:
            results.update(big_five=bigfive.scores, big_five_details=bigfive)
        if alignment is not None:
            results.update(dnd_alignment=alignment.alignment, alignment_details=alignment)
        if holland is not None:
            results.update(holland_code=holland.code, holland_details=holland)
        if attachment is not None:
            results.update(attachment_style=attachment.style, attachment_details=attachment)
        if integral is not None:
            results.update(integral_level=integral.primary_level.key, integral_details=integral)
        if socionics is not None:
            results.update(socionics=socionics.type, socionics_details=socionics)

        if errors:
            span.set_attribute("typescope.failed_frameworks", ",".join(sorted(errors)))

        return PersonalityProfile(
            trait_scores=scores,
            dominant_traits=dominant,
            domain_scores=domains,
            mappings=FrameworkMappings(**results),
            errors=errors,
        )
