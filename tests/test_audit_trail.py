"""Tests for the audit trail: entries, snapshots, rollback, sinks and diffs."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from typescope.audit.diff import generate_changes_summary, get_impact_assessment
from typescope.audit.models import AuditAction, AuditLogEntry, AuditTarget
from typescope.audit.service import AuditTrailService
from typescope.audit.sink import (
    AuditSinkError,
    InMemoryAuditSink,
    JsonlFileAuditSink,
    get_audit_sink,
)
from typescope.config.cache import ConfigCache
from typescope.config.overrides import ScoringOverrides
from typescope.config.store import ConfigOverrideStore
from typescope.errors import AuditWriteFailure
from typescope.persistence.unit_of_work import ConfigRepositories, InMemoryConfigBackend

EI_TABLE = {"EI": {"traits": {"Communal Navigate": 0.5, "Dynamic": 0.5}, "threshold": 5.5}}


def _overrides(document: dict[str, Any]) -> ScoringOverrides:
    return ScoringOverrides.model_validate(document)


class FailingSink:
    def emit(self, event: dict[str, Any]) -> None:
        raise AuditSinkError("disk full")


class RejectingAuditRepo:
    """Audit repository whose inserts violate a constraint."""

    def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        raise IntegrityError("INSERT INTO config_audit_log", {}, Exception("duplicate key"))

    def list_recent(self, limit: int) -> list[AuditLogEntry]:
        return []


class RejectingAuditBackend:
    """In-memory backend with a broken audit repository."""

    def __init__(self) -> None:
        self._delegate = InMemoryConfigBackend()

    @contextmanager
    def transaction(self) -> Generator[ConfigRepositories, None, None]:
        with self._delegate.transaction() as repos:
            yield dataclasses.replace(repos, audit=RejectingAuditRepo())


class DownBackend:
    @contextmanager
    def transaction(self) -> Generator[ConfigRepositories, None, None]:
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))
        yield  # pragma: no cover


class TestSnapshotsAndRollback:
    """Tests for snapshot creation, listing and rollback."""

    def test_create_snapshot_logs_entry(
        self, config_store: ConfigOverrideStore, audit_service: AuditTrailService
    ) -> None:
        """Snapshot creation is recorded with its id and change count."""
        snapshot_id = audit_service.create_snapshot(
            "admin", "Before tuning", _overrides({"mbti": EI_TABLE}), ["a", "b"]
        )

        [snapshot] = audit_service.get_snapshots()
        assert snapshot.id == snapshot_id
        assert snapshot.description == "Before tuning"
        assert snapshot.changes_summary == ["a", "b"]

        [entry] = audit_service.get_audit_log()
        assert entry.change_description == "Snapshot created: Before tuning"
        assert entry.metadata == {"snapshot_id": snapshot_id, "change_count": 2}

    def test_rollback_restores_snapshot_as_new_version(
        self, config_store: ConfigOverrideStore, audit_service: AuditTrailService
    ) -> None:
        """Rollback writes the snapshot as version 3 and logs the prior state."""
        config_store.save_scoring_overrides(_overrides({"mbti": EI_TABLE}), "admin")
        state_a = config_store.load_scoring_overrides()
        assert state_a is not None
        id_a = audit_service.create_snapshot("admin", "A", state_a, [])

        config_store.save_scoring_overrides(
            _overrides({"traitMappings": {"Structured": [2, 3]}}), "admin"
        )
        state_b = config_store.load_scoring_overrides()
        assert state_b is not None
        id_b = audit_service.create_snapshot("admin", "B", state_b, [])

        restored = audit_service.rollback_to_snapshot(id_a, "admin")

        assert restored == state_a
        assert config_store.load_scoring_overrides() == state_a
        record = config_store.load_record()
        assert record is not None
        assert record.version == 3

        assert [s.id for s in audit_service.get_snapshots()] == [id_b, id_a]
        assert audit_service.get_snapshots()[0].config_data == state_b

        latest = audit_service.get_audit_log()[0]
        assert latest.action is AuditAction.ROLLBACK
        assert latest.change_description == "Rolled back to snapshot: A"
        assert latest.metadata["snapshot_id"] == id_a
        assert latest.metadata["version"] == 3
        assert latest.old_values == state_b.to_document()

    def test_rollback_invalidates_cached_config(
        self, config_store: ConfigOverrideStore, audit_service: AuditTrailService
    ) -> None:
        """A cached empty config is dropped after rollback."""
        snapshot_id = audit_service.create_snapshot(
            "admin", "Preset", _overrides({"mbti": EI_TABLE}), []
        )
        assert config_store.load_record() is None  # cached as "no config"

        audit_service.rollback_to_snapshot(snapshot_id, "admin")
        assert config_store.load_scoring_overrides() == _overrides({"mbti": EI_TABLE})

    def test_unknown_snapshot(self, audit_service: AuditTrailService) -> None:
        """Rolling back to a missing snapshot returns None and logs nothing."""
        assert audit_service.rollback_to_snapshot("missing", "admin") is None
        assert audit_service.get_audit_log() == []

    def test_listing_limits(self, audit_service: AuditTrailService) -> None:
        """Snapshot and audit listings honour their limit, newest first."""
        for n in range(3):
            audit_service.create_snapshot("admin", f"S{n}", ScoringOverrides(), [])

        assert [s.description for s in audit_service.get_snapshots(limit=2)] == ["S2", "S1"]
        assert len(audit_service.get_audit_log(limit=1)) == 1


class TestAuditFailures:
    """Audit failures are always surfaced."""

    def test_sink_failure_after_commit(self) -> None:
        """A sink failure is raised as committed once the store has the entry."""
        audit = AuditTrailService(backend=InMemoryConfigBackend(), sink=FailingSink())
        store = ConfigOverrideStore(audit=audit, cache=ConfigCache(ttl_seconds=0))

        with pytest.raises(AuditWriteFailure) as exc_info:
            store.save_scoring_overrides(_overrides({"mbti": EI_TABLE}), "admin")

        assert exc_info.value.committed is True
        assert store.load_record() is not None
        [stored] = audit.get_audit_log()
        assert exc_info.value.entry.id == stored.id

    def test_emit_can_be_retried(self) -> None:
        """A stored entry can be re-sent to the sink."""
        entry = AuditLogEntry(
            user_id="admin",
            action=AuditAction.UPDATE,
            target=AuditTarget.GLOBAL_CONFIG,
            change_description="manual",
        )
        sink = InMemoryAuditSink()
        AuditTrailService(backend=InMemoryConfigBackend(), sink=sink).emit(entry)
        assert sink.events[0]["id"] == entry.id

    def test_repository_failure_rolls_back_the_change(self) -> None:
        """An audit insert failure undoes the config write."""
        audit = AuditTrailService(backend=RejectingAuditBackend(), sink=InMemoryAuditSink())
        store = ConfigOverrideStore(audit=audit, cache=ConfigCache(ttl_seconds=0))

        with pytest.raises(AuditWriteFailure) as exc_info:
            store.save_scoring_overrides(_overrides({"mbti": EI_TABLE}), "admin")

        assert exc_info.value.committed is False
        assert store.load_record() is None

    def test_failed_transaction_keeps_earlier_entries(self) -> None:
        """Rollback drops only what the failed block appended."""
        backend = InMemoryConfigBackend()
        first = AuditLogEntry(
            user_id="admin",
            action=AuditAction.UPDATE,
            target=AuditTarget.GLOBAL_CONFIG,
            change_description="first",
        )
        with backend.transaction() as repos:
            repos.audit.append(first)
            repos.config.write(_overrides({"mbti": EI_TABLE}), "admin")

        with pytest.raises(RuntimeError), backend.transaction() as repos:
            repos.config.write(_overrides({}), "admin")
            repos.audit.append(first.model_copy(update={"change_description": "second"}))
            raise RuntimeError("abort")

        with backend.transaction() as repos:
            [kept] = repos.audit.list_recent(10)
            latest = repos.config.get_latest()
        assert kept.change_description == "first"
        assert latest is not None
        assert latest.version == 1

    def test_unreachable_store_on_standalone_entry(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Standalone entries fail uncommitted when the store is down."""
        monkeypatch.setenv("TYPESCOPE_STORE_MAX_RETRIES", "0")
        audit = AuditTrailService(backend=DownBackend(), sink=InMemoryAuditSink())

        with pytest.raises(AuditWriteFailure) as exc_info:
            audit.log_weight_change("admin", "mbti", "EI", "Dynamic", 0.35, 0.4)
        assert exc_info.value.committed is False


class TestStandaloneEntries:
    def test_log_weight_change(
        self, audit_service: AuditTrailService, audit_sink: InMemoryAuditSink
    ) -> None:
        """Weight changes record old and new values for the one trait."""
        entry = audit_service.log_weight_change("admin", "mbti", "EI", "Dynamic", 0.35, 0.4)

        assert entry.framework == "mbti"
        assert entry.old_values == {"Dynamic": 0.35}
        assert entry.new_values == {"Dynamic": 0.4}
        assert entry.metadata == {"dimension": "EI", "trait": "Dynamic"}
        assert audit_service.get_audit_log() == [entry]
        assert audit_sink.events[0]["action"] == "update"

    def test_log_mapping_change(self, audit_service: AuditTrailService) -> None:
        """Mapping changes record which questions were added and removed."""
        entry = audit_service.log_mapping_change("admin", "Structured", [1, 4, 7], [1, 4, 10])

        assert entry.target is AuditTarget.TRAIT_MAPPING
        assert entry.metadata == {
            "trait": "Structured",
            "added": [10],
            "removed": [7],
            "added_count": 1,
            "removed_count": 1,
        }


class TestSinks:
    """Tests for the audit mirror sinks."""

    def test_jsonl_sink_appends_sorted_lines(self, tmp_path: Path) -> None:
        """Each event becomes one compact line with sorted keys."""
        path = tmp_path / "nested" / "audit.jsonl"
        sink = JsonlFileAuditSink(path)

        sink.emit({"b": 1, "a": "x"})
        sink.emit({"c": None})

        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines == ['{"a":"x","b":1}', '{"c":null}']

    def test_jsonl_sink_unserializable_event(self, tmp_path: Path) -> None:
        """Events that cannot be encoded raise AuditSinkError."""
        sink = JsonlFileAuditSink(tmp_path / "audit.jsonl")
        with pytest.raises(AuditSinkError, match="serialize"):
            sink.emit({"value": object()})

    def test_jsonl_sink_io_failure(self, tmp_path: Path) -> None:
        """Writing to a directory path raises AuditSinkError."""
        sink = JsonlFileAuditSink(tmp_path)
        with pytest.raises(AuditSinkError):
            sink.emit({"a": 1})

    def test_get_audit_sink_reads_environment(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """The file sink is enabled only when TYPESCOPE_AUDIT_LOG_PATH is set."""
        assert get_audit_sink() is None

        monkeypatch.setenv("TYPESCOPE_AUDIT_LOG_PATH", str(tmp_path / "audit.jsonl"))
        sink = get_audit_sink()
        assert isinstance(sink, JsonlFileAuditSink)
        assert sink.file_path == tmp_path / "audit.jsonl"

    def test_in_memory_sink_round_trips_json(self) -> None:
        """Events are stored as their JSON round trip."""
        sink = InMemoryAuditSink()
        sink.emit({"a": (1, 2)})
        assert sink.events == [{"a": [1, 2]}]
        sink.clear()
        assert sink.events == []

    def test_file_sink_receives_store_entries(self, tmp_path: Path) -> None:
        """User override writes reach the file sink."""
        path = tmp_path / "audit.jsonl"
        audit = AuditTrailService(backend=InMemoryConfigBackend(), sink=JsonlFileAuditSink(path))
        store = ConfigOverrideStore(audit=audit, cache=ConfigCache(ttl_seconds=0))

        store.save_user_override("user-1", "mbti", "INTJ", created_by="admin")

        [line] = path.read_text(encoding="utf-8").splitlines()
        event = json.loads(line)
        assert event["target"] == "user_override"
        assert event["metadata"]["target_user_id"] == "user-1"


class TestChangesSummary:
    """Tests for generate_changes_summary."""

    def test_initial_configuration(self) -> None:
        """With no previous config the summary says so."""
        assert generate_changes_summary(None, _overrides({"mbti": EI_TABLE})) == [
            "Initial configuration created"
        ]

    def test_weight_and_threshold_changes(self) -> None:
        """Weight deltas print to three places and a dropped threshold shows default."""
        old = _overrides({"mbti": EI_TABLE})
        new = _overrides({"mbti": {"EI": {"traits": {"Communal Navigate": 0.4, "Dynamic": 0.6}}}})

        assert generate_changes_summary(old, new) == [
            "MBTI EI.Communal Navigate: 0.500 → 0.400",
            "MBTI EI.Dynamic: 0.500 → 0.600",
            "MBTI EI threshold: 5.5 → default",
        ]

    def test_added_and_removed_traits(self) -> None:
        """New and dropped traits are reported with their weights."""
        old = _overrides({"mbti": EI_TABLE})
        new = _overrides({"mbti": {"EI": {"traits": {"Dynamic": 0.6, "Structured": 0.4},
                                          "threshold": 5.5}}})

        assert generate_changes_summary(old, new) == [
            "MBTI EI.Dynamic: 0.500 → 0.600",
            "MBTI EI: added Structured (0.400)",
            "MBTI EI: removed Communal Navigate",
        ]

    def test_tiny_weight_changes_are_ignored(self) -> None:
        """Deltas under 0.001 are not reported."""
        old = _overrides({"mbti": EI_TABLE})
        new = _overrides(
            {"mbti": {"EI": {"traits": {"Communal Navigate": 0.5004, "Dynamic": 0.4996},
                             "threshold": 5.5}}}
        )
        assert generate_changes_summary(old, new) == []

    def test_dimension_overrides_added_and_removed(self) -> None:
        """Whole dimension tables appearing or vanishing are reported once each."""
        old = _overrides({"mbti": EI_TABLE})
        new = _overrides({"bigfive": {"Openness": {"traits": {"Intuitive": 1.0}}}})

        assert generate_changes_summary(old, new) == [
            "MBTI EI: override removed",
            "Big Five Openness: override added",
        ]

    def test_trait_mapping_changes(self) -> None:
        """Added and removed questions are listed per trait."""
        old = _overrides({"traitMappings": {"Structured": [1, 2]}})
        new = _overrides({"traitMappings": {"Structured": [2, 3], "Lawful": [5]}})

        assert generate_changes_summary(old, new) == [
            "Structured: Added questions 3",
            "Structured: Removed questions 1",
            "Lawful: Added questions 5",
        ]


class TestImpactAssessment:
    """Tests for get_impact_assessment."""

    def test_no_changes_is_low(self) -> None:
        """An empty document carries no risk."""
        impact = get_impact_assessment(ScoringOverrides())
        assert impact.risk_level == "low"
        assert impact.factors == []
        assert impact.affected_frameworks == []

    def test_non_mbti_weights_are_low(self) -> None:
        """Weights for a single non-MBTI framework are low risk."""
        impact = get_impact_assessment(
            _overrides({"holland": {"R": {"traits": {"Physical": 1.0}}}})
        )
        assert impact.risk_level == "low"
        assert impact.factors == ["Holland weights modified"]
        assert impact.affected_frameworks == ["holland"]

    def test_mbti_weights_are_medium_and_reach_socionics(self) -> None:
        """MBTI weights also feed Socionics, so both are affected."""
        impact = get_impact_assessment(_overrides({"mbti": EI_TABLE}))
        assert impact.risk_level == "medium"
        assert impact.factors == ["MBTI weights modified"]
        assert impact.affected_frameworks == ["mbti", "socionics"]

    def test_invalid_table_is_high(self) -> None:
        """A table that fails validation is high risk with the reason listed."""
        impact = get_impact_assessment(_overrides({"mbti": {"EI": {"traits": {"Dynamic": 0.2}}}}))
        assert impact.risk_level == "high"
        assert any("must sum to 1.0" in factor for factor in impact.factors)

    def test_unmapped_traits_are_high_and_affect_everything(self) -> None:
        """A trait with no questions touches every framework."""
        impact = get_impact_assessment(
            _overrides({"traitMappings": {"Structured": [], "Lawful": [1]}})
        )
        assert impact.risk_level == "high"
        assert "2 trait mappings modified" in impact.factors
        assert "1 traits have no questions mapped" in impact.factors
        assert len(impact.affected_frameworks) == 8
