"""Transactional access to the configuration store repositories.

A backend opens one transaction and hands out the four repositories bound to
it, so a config write and its audit entry commit or roll back together.

- SqlConfigBackend: one database transaction via begin_app_conn()
- InMemoryConfigBackend: a process-wide lock; if the block raises, the two
  keyed stores are restored from a copy and the append-only audit log and
  snapshot lists are truncated back to their starting length
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from typescope.persistence.db import begin_app_conn, is_database_configured
from typescope.persistence.repositories import audit_log, scoring_config, snapshots, user_overrides

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigRepositories:
    """Repositories bound to one open transaction."""

    config: scoring_config.ScoringConfigRepo
    user_overrides: user_overrides.UserOverridesRepo
    audit: audit_log.AuditLogRepo
    snapshots: snapshots.SnapshotsRepo


@runtime_checkable
class ConfigBackend(Protocol):
    """Opens transactions over the configuration store."""

    def transaction(self) -> Any:
        """Context manager yielding ConfigRepositories."""
        ...


class SqlConfigBackend:
    """Backend over a SQL database.

    Args:
        engine: Engine to use; defaults to the application engine.
    """

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine

    @contextmanager
    def transaction(self) -> Generator[ConfigRepositories, None, None]:
        with begin_app_conn(self._engine) as conn:
            yield ConfigRepositories(
                config=scoring_config.SqlScoringConfigRepository(conn),
                user_overrides=user_overrides.SqlUserOverridesRepository(conn),
                audit=audit_log.SqlAuditLogRepository(conn),
                snapshots=snapshots.SqlSnapshotsRepository(conn),
            )


_memory_lock = threading.RLock()


class InMemoryConfigBackend:
    """Backend over the module-level in-memory stores (single process)."""

    @contextmanager
    def transaction(self) -> Generator[ConfigRepositories, None, None]:
        with _memory_lock:
            saved = _copy_stores()
            try:
                yield ConfigRepositories(
                    config=scoring_config.InMemoryScoringConfigRepository(),
                    user_overrides=user_overrides.InMemoryUserOverridesRepository(),
                    audit=audit_log.InMemoryAuditLogRepository(),
                    snapshots=snapshots.InMemorySnapshotsRepository(),
                )
            except BaseException:
                _restore_stores(saved)
                raise


def _copy_stores() -> tuple[Any, ...]:
    return (
        copy.deepcopy(scoring_config._scoring_config_store),
        copy.deepcopy(user_overrides._user_overrides_store),
        len(audit_log._audit_log_store),
        len(snapshots._snapshots_store),
    )


def _restore_stores(saved: tuple[Any, ...]) -> None:
    config_data, user_data, audit_length, snapshot_length = saved
    scoring_config._scoring_config_store.clear()
    scoring_config._scoring_config_store.update(config_data)
    user_overrides._user_overrides_store.clear()
    user_overrides._user_overrides_store.update(user_data)
    # audit and snapshot stores are append-only
    del audit_log._audit_log_store[audit_length:]
    del snapshots._snapshots_store[snapshot_length:]
    logger.debug("In-memory config transaction rolled back")


def get_config_backend() -> ConfigBackend:
    """Return the SQL backend when a database is configured, else in-memory."""
    if is_database_configured():
        return SqlConfigBackend()
    return InMemoryConfigBackend()
