"""Tests for the SQL repositories and backend selection, on SQLite."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from sqlalchemy import text
from sqlalchemy.engine import Engine

from typescope.audit.models import AuditAction, AuditLogEntry, AuditTarget, ConfigSnapshot
from typescope.config.overrides import ScoringOverrides, UserOverrideRecord
from typescope.config.store import ConfigOverrideStore
from typescope.errors import ConcurrentModificationError, ConfigurationError
from typescope.persistence.db import (
    DatabaseConfigError,
    begin_app_conn,
    get_database_url,
    is_database_configured,
)
from typescope.persistence.migrate import (
    VERSION_TABLE,
    get_alembic_config,
    get_current_revision,
    get_head_revision,
)
from typescope.persistence.repositories import (
    SqlAuditLogRepository,
    SqlScoringConfigRepository,
    SqlSnapshotsRepository,
    SqlUserOverridesRepository,
)
from typescope.persistence.unit_of_work import (
    InMemoryConfigBackend,
    SqlConfigBackend,
    get_config_backend,
)

EI_TABLE = {"EI": {"traits": {"Communal Navigate": 0.5, "Dynamic": 0.5}, "threshold": 5.5}}


def _overrides(document: dict) -> ScoringOverrides:
    return ScoringOverrides.model_validate(document)


def _entry(description: str) -> AuditLogEntry:
    return AuditLogEntry(
        user_id="admin",
        action=AuditAction.UPDATE,
        target=AuditTarget.GLOBAL_CONFIG,
        framework="mbti",
        change_description=description,
        old_values={"a": 1},
        metadata={"n": description},
    )


class TestSqlScoringConfigRepository:
    """Tests for the versioned global config table."""

    def test_write_and_read(self, sqlite_engine: Engine) -> None:
        """A written record reads back equal in a new transaction."""
        with begin_app_conn(sqlite_engine) as conn:
            repo = SqlScoringConfigRepository(conn)
            assert repo.get_latest() is None
            written = repo.write(_overrides({"mbti": EI_TABLE}), "admin")

        with begin_app_conn(sqlite_engine) as conn:
            latest = SqlScoringConfigRepository(conn).get_latest()

        assert latest == written
        assert latest.version == 1
        assert latest.overrides.mbti is not None

    def test_versions_increment(self, sqlite_engine: Engine) -> None:
        """Writes bump the version on a single row."""
        with begin_app_conn(sqlite_engine) as conn:
            repo = SqlScoringConfigRepository(conn)
            repo.write(_overrides({"mbti": EI_TABLE}), "admin")
            second = repo.write(
                _overrides({"traitMappings": {"Structured": [1]}}), "admin", expected_version=1
            )

        assert second.version == 2
        with sqlite_engine.connect() as conn:
            count = conn.execute(text("SELECT COUNT(*) FROM scoring_config")).scalar_one()
        assert count == 1

    def test_stale_version(self, sqlite_engine: Engine) -> None:
        """A stale expected_version raises on SQL too."""
        with begin_app_conn(sqlite_engine) as conn:
            SqlScoringConfigRepository(conn).write(_overrides({"mbti": EI_TABLE}), "admin")

        with pytest.raises(ConcurrentModificationError), begin_app_conn(sqlite_engine) as conn:
            SqlScoringConfigRepository(conn).write(ScoringOverrides(), "admin", expected_version=0)

    def test_failed_transaction_is_rolled_back(self, sqlite_engine: Engine) -> None:
        """An exception inside the transaction discards the write."""
        with pytest.raises(RuntimeError), begin_app_conn(sqlite_engine) as conn:
            SqlScoringConfigRepository(conn).write(_overrides({"mbti": EI_TABLE}), "admin")
            raise RuntimeError("abort")

        with begin_app_conn(sqlite_engine) as conn:
            assert SqlScoringConfigRepository(conn).get_latest() is None


class TestSqlUserOverridesRepository:
    def test_upsert_get_delete(self, sqlite_engine: Engine) -> None:
        """Upserts replace overrides but keep created_at."""
        now = datetime.now(UTC)
        record = UserOverrideRecord(
            user_id="user-1",
            overrides={"mbti": "INTJ"},
            reason="retest",
            created_by="admin",
            created_at=now,
            updated_at=now,
        )

        with begin_app_conn(sqlite_engine) as conn:
            repo = SqlUserOverridesRepository(conn)
            repo.upsert(record)
            repo.upsert(record.model_copy(update={"overrides": {"mbti": "INTJ", "enneagram": 5}}))
            stored = repo.get("user-1")

            assert stored is not None
            assert stored.overrides == {"mbti": "INTJ", "enneagram": 5}
            assert stored.created_at == now
            assert repo.delete("user-1") is True
            assert repo.delete("user-1") is False
            assert repo.get("user-1") is None


class TestSqlAuditAndSnapshots:
    """Tests for the append-only tables."""

    def test_audit_entries_newest_first(self, sqlite_engine: Engine) -> None:
        """Audit rows list newest first with JSON columns decoded."""
        with begin_app_conn(sqlite_engine) as conn:
            repo = SqlAuditLogRepository(conn)
            first = repo.append(_entry("first"))
            second = repo.append(_entry("second"))

        with begin_app_conn(sqlite_engine) as conn:
            entries = SqlAuditLogRepository(conn).list_recent(10)
            limited = SqlAuditLogRepository(conn).list_recent(1)

        assert entries == [second, first]
        assert limited == [second]
        assert entries[0].new_values is None
        assert entries[0].metadata == {"n": "second"}

    def test_snapshot_insert_get_list(self, sqlite_engine: Engine) -> None:
        """Snapshots load by id and list newest first."""
        snapshot = ConfigSnapshot(
            user_id="admin",
            description="baseline",
            config_data=_overrides({"traitMappings": {"Structured": [1, 2]}}),
            changes_summary=["Structured: Added questions 2"],
        )
        later = ConfigSnapshot(user_id="admin", description="later", config_data=ScoringOverrides())

        with begin_app_conn(sqlite_engine) as conn:
            repo = SqlSnapshotsRepository(conn)
            repo.insert(snapshot)
            repo.insert(later)

        with begin_app_conn(sqlite_engine) as conn:
            repo = SqlSnapshotsRepository(conn)
            assert repo.get(snapshot.id) == snapshot
            assert repo.get("missing") is None
            assert [s.id for s in repo.list_recent(5)] == [later.id, snapshot.id]


class TestStoreOverSql:
    """The config store behaves the same on the SQL backend."""

    def test_save_merge_and_audit(self, sql_config_store: ConfigOverrideStore) -> None:
        """Merged saves and their audit entries commit together."""
        sql_config_store.save_scoring_overrides(_overrides({"mbti": EI_TABLE}), "admin")
        record = sql_config_store.save_scoring_overrides(
            _overrides({"traitMappings": {"Structured": [1, 2]}}), "admin", expected_version=1
        )

        assert record.version == 2
        assert sql_config_store.load_record() == record
        assert [e.action for e in sql_config_store.audit.get_audit_log()] == [
            AuditAction.UPDATE,
            AuditAction.CREATE,
        ]

    def test_invalid_document_leaves_no_trace(
        self, sql_config_store: ConfigOverrideStore
    ) -> None:
        """Rejected documents write neither config nor audit rows."""
        with pytest.raises(ConfigurationError):
            sql_config_store.save_scoring_overrides(
                _overrides({"traitMappings": {"Unknown": [1]}}), "admin"
            )
        assert sql_config_store.load_record() is None
        assert sql_config_store.audit.get_audit_log() == []

    def test_snapshot_rollback(self, sql_config_store: ConfigOverrideStore) -> None:
        """A snapshot restores the config after a reset."""
        audit = sql_config_store.audit
        sql_config_store.save_scoring_overrides(_overrides({"mbti": EI_TABLE}), "admin")
        baseline = sql_config_store.load_scoring_overrides()
        assert baseline is not None
        snapshot_id = audit.create_snapshot("admin", "baseline", baseline, [])

        sql_config_store.reset_scoring_overrides("admin")
        assert sql_config_store.load_scoring_overrides() is None

        assert audit.rollback_to_snapshot(snapshot_id, "admin") == baseline
        assert sql_config_store.load_scoring_overrides() == baseline

    def test_user_overrides(self, sql_config_store: ConfigOverrideStore) -> None:
        """User overrides round-trip through SQL."""
        sql_config_store.save_user_override("user-1", "alignment", "Chaotic Good", created_by="a")
        assert sql_config_store.effective("alignment", "True Neutral", "user-1") == "Chaotic Good"
        assert sql_config_store.delete_user_override("user-1", deleted_by="a")
        assert sql_config_store.load_user_override("user-1") is None


class TestBackendSelection:
    def test_in_memory_without_database_url(self) -> None:
        """Without TYPESCOPE_DATABASE_URL the in-memory backend is used."""
        assert not is_database_configured()
        assert isinstance(get_config_backend(), InMemoryConfigBackend)
        with pytest.raises(DatabaseConfigError):
            get_database_url()

    def test_sql_with_database_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A postgres:// URL selects SQL and is normalised."""
        monkeypatch.setenv("TYPESCOPE_DATABASE_URL", "postgres://app@db/typescope")

        assert isinstance(get_config_backend(), SqlConfigBackend)
        assert get_database_url() == "postgresql://app@db/typescope"


class TestMigrations:
    def test_head_revision(self) -> None:
        """The migration head is 0001."""
        assert get_head_revision() == "0001"

    def test_unmigrated_database_has_no_revision(self, sqlite_engine: Engine) -> None:
        """A fresh database reports no revision."""
        assert get_current_revision(sqlite_engine) is None

    def test_revisions_use_their_own_version_table(self) -> None:
        """Revisions are not tracked in alembic_version."""
        config = get_alembic_config()
        assert config.get_main_option("version_table") == VERSION_TABLE
        assert VERSION_TABLE != "alembic_version"
