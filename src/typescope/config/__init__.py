"""Runtime scoring configuration: override models, cache and store.

Only the models are re-exported here; import the store from
`typescope.config.store`.
"""

from typescope.config.overrides import (
    ScoringConfigRecord,
    ScoringOverrides,
    UserOverrideRecord,
    apply_user_overrides,
    merge_overrides,
    validate_overrides,
    validate_user_value,
)

__all__ = [
    "ScoringConfigRecord",
    "ScoringOverrides",
    "UserOverrideRecord",
    "apply_user_overrides",
    "merge_overrides",
    "validate_overrides",
    "validate_user_value",
]
