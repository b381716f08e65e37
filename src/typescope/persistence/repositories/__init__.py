"""Configuration store repositories.

Each repository has a SQL implementation bound to a connection inside a
transaction, and an in-memory fallback for development and testing.
"""

from typescope.persistence.repositories.audit_log import (
    AuditLogRepo,
    InMemoryAuditLogRepository,
    SqlAuditLogRepository,
    clear_audit_log_store,
)
from typescope.persistence.repositories.scoring_config import (
    GLOBAL_CONFIG_KEY,
    InMemoryScoringConfigRepository,
    ScoringConfigRepo,
    SqlScoringConfigRepository,
    clear_scoring_config_store,
)
from typescope.persistence.repositories.snapshots import (
    InMemorySnapshotsRepository,
    SnapshotsRepo,
    SqlSnapshotsRepository,
    clear_snapshots_store,
)
from typescope.persistence.repositories.user_overrides import (
    InMemoryUserOverridesRepository,
    SqlUserOverridesRepository,
    UserOverridesRepo,
    clear_user_overrides_store,
)


def clear_all_config_stores() -> None:
    """Clear every in-memory store. For testing only."""
    clear_scoring_config_store()
    clear_user_overrides_store()
    clear_audit_log_store()
    clear_snapshots_store()


__all__ = [
    "GLOBAL_CONFIG_KEY",
    "AuditLogRepo",
    "InMemoryAuditLogRepository",
    "InMemoryScoringConfigRepository",
    "InMemorySnapshotsRepository",
    "InMemoryUserOverridesRepository",
    "ScoringConfigRepo",
    "SnapshotsRepo",
    "SqlAuditLogRepository",
    "SqlScoringConfigRepository",
    "SqlSnapshotsRepository",
    "SqlUserOverridesRepository",
    "UserOverridesRepo",
    "clear_all_config_stores",
    "clear_audit_log_store",
    "clear_scoring_config_store",
    "clear_snapshots_store",
    "clear_user_overrides_store",
]
