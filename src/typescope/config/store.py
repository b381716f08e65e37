"""Configuration override store.

Resolves the effective configuration for scoring:

    effective(framework, user) = user override ?? global override ?? built-in default

The global overrides live in a single versioned record. Writes merge a
partial document into the latest version, validate the result, write it
with a version check and append the audit entry in the same transaction.
Reads go through a short-TTL cache that every write invalidates.

When the backing store stays unreachable after retries, reads log a warning
and fall back to the built-in defaults; writes raise OverrideStoreUnavailable.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

from typescope.audit.diff import generate_changes_summary
from typescope.audit.models import AuditAction, AuditLogEntry, AuditTarget
from typescope.audit.service import AuditTrailService, get_audit_service
from typescope.config.cache import ConfigCache, get_config_cache
from typescope.config.overrides import (
    ScoringConfigRecord,
    ScoringOverrides,
    UserOverrideRecord,
    apply_user_overrides,
    effective_value,
    mapping_weights,
    merge_overrides,
    validate_overrides,
    validate_user_value,
)
from typescope.errors import ConfigurationError, OverrideStoreUnavailable
from typescope.observability.tracing import traced_span
from typescope.persistence.retry import TRANSIENT_ERRORS, run_with_retry
from typescope.scoring.models import Framework, PersonalityProfile

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _changed_frameworks(partial: ScoringOverrides) -> list[str]:
    return [fw.value for fw in Framework if partial.framework_table(fw) is not None]


class ConfigOverrideStore:
    """Read/write access to global and per-user scoring overrides.

    Args:
        audit: Audit service sharing this store's backend; defaults to
            get_audit_service().
        cache: Read cache; defaults to the process-wide cache.
    """

    def __init__(
        self,
        audit: AuditTrailService | None = None,
        cache: ConfigCache | None = None,
    ) -> None:
        self._audit = audit if audit is not None else get_audit_service()
        self._backend = self._audit.backend
        self._cache = cache if cache is not None else get_config_cache()
        self._audit.add_restore_listener(self._on_restore)

    @property
    def audit(self) -> AuditTrailService:
        return self._audit

    # -- global overrides ----------------------------------------------------

    def load_record(self) -> ScoringConfigRecord | None:
        """Latest global config record, or None when none exists or the store is down."""
        cached = self._cache.get()
        if cached is not None:
            return cached.record

        def read() -> ScoringConfigRecord | None:
            with self._backend.transaction() as repos:
                return repos.config.get_latest()

        with traced_span("typescope.config.load"):
            try:
                record = self._run(read, "config load")
            except OverrideStoreUnavailable as e:
                logger.warning("Using built-in scoring defaults: %s", e)
                return None
        self._cache.put(record)
        return record

    def load_scoring_overrides(self) -> ScoringOverrides | None:
        """Latest global overrides, or None when there are none."""
        record = self.load_record()
        if record is None or record.overrides.is_empty():
            return None
        return record.overrides

    def mapping_weights(self) -> dict[str, dict[str, dict[str, float]]]:
        """Derived framework -> dimension -> trait -> weight view of the overrides."""
        return mapping_weights(self.load_scoring_overrides())

    def save_scoring_overrides(
        self,
        partial: ScoringOverrides,
        user_id: str,
        expected_version: int | None = None,
    ) -> ScoringConfigRecord:
        """Merge a partial override document into the latest version.

        Args:
            partial: Overrides to merge (per dimension, per trait).
            user_id: Who is making the change.
            expected_version: Version the caller based the change on; a
                mismatch is rejected.

        Returns:
            The newly written record.

        Raises:
            ConfigurationError: If the merged document is invalid.
            ConcurrentModificationError: If `expected_version` is stale.
            OverrideStoreUnavailable: If the store stays unreachable.
            AuditWriteFailure: If the audit entry cannot be stored or mirrored.
        """

        def write() -> tuple[ScoringConfigRecord, AuditLogEntry]:
            with self._backend.transaction() as repos:
                current = repos.config.get_latest()
                base = current.overrides if current and not current.overrides.is_empty() else None
                merged = validate_overrides(merge_overrides(base, partial))
                record = repos.config.write(merged, user_id, expected_version)
                changes = generate_changes_summary(base, merged)
                frameworks = _changed_frameworks(partial)
                target = (
                    AuditTarget.TRAIT_MAPPING
                    if partial.trait_mappings and not frameworks
                    else AuditTarget.GLOBAL_CONFIG
                )
                entry = self._audit.record(
                    repos,
                    AuditLogEntry(
                        user_id=user_id,
                        action=AuditAction.CREATE if base is None else AuditAction.UPDATE,
                        target=target,
                        framework=frameworks[0] if len(frameworks) == 1 else None,
                        change_description=(
                            f"Scoring overrides saved (version {record.version}, "
                            f"{len(changes)} changes)"
                        ),
                        old_values=base.to_document() if base is not None else None,
                        new_values=merged.to_document(),
                        metadata={"version": record.version, "changes": changes},
                    ),
                )
                return record, entry

        with traced_span("typescope.config.save", user_id=user_id):
            record, entry = self._run(write, "config save")
        self._cache.invalidate()
        logger.info("Scoring overrides version %d saved by %s", record.version, user_id)
        self._audit.emit(entry)
        return record

    def reset_scoring_overrides(
        self, user_id: str, expected_version: int | None = None
    ) -> ScoringConfigRecord | None:
        """Clear the global overrides so scoring uses the built-in defaults.

        The cleared state is written as a new (empty) version.

        Returns:
            The new record, or None if there was nothing to clear.

        Raises:
            ConcurrentModificationError: If `expected_version` is stale.
            OverrideStoreUnavailable: If the store stays unreachable.
            AuditWriteFailure: If the audit entry cannot be stored or mirrored.
        """

        def write() -> tuple[ScoringConfigRecord, AuditLogEntry] | None:
            with self._backend.transaction() as repos:
                current = repos.config.get_latest()
                if current is None or current.overrides.is_empty():
                    return None
                record = repos.config.write(ScoringOverrides(), user_id, expected_version)
                entry = self._audit.record(
                    repos,
                    AuditLogEntry(
                        user_id=user_id,
                        action=AuditAction.DELETE,
                        target=AuditTarget.GLOBAL_CONFIG,
                        change_description="Scoring overrides reset to defaults",
                        old_values=current.overrides.to_document(),
                        new_values=None,
                        metadata={"version": record.version},
                    ),
                )
                return record, entry

        with traced_span("typescope.config.reset", user_id=user_id):
            result = self._run(write, "config reset")
        if result is None:
            return None
        record, entry = result
        self._cache.invalidate()
        logger.info("Scoring overrides reset by %s", user_id)
        self._audit.emit(entry)
        return record

    # -- user overrides ------------------------------------------------------

    def load_user_override(self, user_id: str) -> UserOverrideRecord | None:
        """A user's overrides, or None when there are none or the store is down."""

        def read() -> UserOverrideRecord | None:
            with self._backend.transaction() as repos:
                return repos.user_overrides.get(user_id)

        try:
            return self._run(read, "user override load")
        except OverrideStoreUnavailable as e:
            logger.warning("Ignoring overrides for user %s: %s", user_id, e)
            return None

    def save_user_override(
        self,
        user_id: str,
        framework: Framework | str,
        value: Any,
        *,
        created_by: str,
        reason: str | None = None,
    ) -> UserOverrideRecord:
        """Set one framework's final label for a user.

        Raises:
            ConfigurationError: If the framework or value shape is invalid.
            OverrideStoreUnavailable: If the store stays unreachable.
            AuditWriteFailure: If the audit entry cannot be stored or mirrored.
        """
        fw = Framework(validate_framework(framework))
        normalized = validate_user_value(fw, value)

        def write() -> tuple[UserOverrideRecord, AuditLogEntry]:
            with self._backend.transaction() as repos:
                existing = repos.user_overrides.get(user_id)
                now = datetime.now(UTC)
                previous = dict(existing.overrides) if existing else {}
                old_value = previous.get(fw.value)
                overrides = {**previous, fw.value: normalized}
                record = repos.user_overrides.upsert(
                    UserOverrideRecord(
                        user_id=user_id,
                        overrides=overrides,
                        reason=reason,
                        created_by=created_by,
                        created_at=existing.created_at if existing else now,
                        updated_at=now,
                    )
                )
                entry = self._audit.record(
                    repos,
                    AuditLogEntry(
                        user_id=created_by,
                        action=AuditAction.UPDATE if fw.value in previous else AuditAction.CREATE,
                        target=AuditTarget.USER_OVERRIDE,
                        framework=fw.value,
                        change_description=f"User override set for {user_id}: {fw.value}",
                        old_values={fw.value: old_value} if old_value is not None else None,
                        new_values={fw.value: normalized},
                        metadata={"target_user_id": user_id, "reason": reason},
                    ),
                )
                return record, entry

        with traced_span("typescope.config.save_user_override", user_id=user_id):
            record, entry = self._run(write, "user override save")
        self._audit.emit(entry)
        return record

    def delete_user_override(
        self,
        user_id: str,
        framework: Framework | str | None = None,
        *,
        deleted_by: str,
    ) -> bool:
        """Remove one framework's override, or all of a user's overrides.

        Returns:
            True if something was removed.

        Raises:
            ConfigurationError: If the framework is unknown.
            OverrideStoreUnavailable: If the store stays unreachable.
            AuditWriteFailure: If the audit entry cannot be stored or mirrored.
        """
        fw = Framework(validate_framework(framework)) if framework is not None else None

        def write() -> AuditLogEntry | None:
            with self._backend.transaction() as repos:
                existing = repos.user_overrides.get(user_id)
                if existing is None:
                    return None
                if fw is None:
                    removed = dict(existing.overrides)
                    repos.user_overrides.delete(user_id)
                else:
                    if fw.value not in existing.overrides:
                        return None
                    removed = {fw.value: existing.overrides[fw.value]}
                    remaining = {k: v for k, v in existing.overrides.items() if k != fw.value}
                    if remaining:
                        repos.user_overrides.upsert(
                            existing.model_copy(
                                update={"overrides": remaining, "updated_at": datetime.now(UTC)}
                            )
                        )
                    else:
                        repos.user_overrides.delete(user_id)
                scope = fw.value if fw is not None else "all frameworks"
                return self._audit.record(
                    repos,
                    AuditLogEntry(
                        user_id=deleted_by,
                        action=AuditAction.DELETE,
                        target=AuditTarget.USER_OVERRIDE,
                        framework=fw.value if fw is not None else None,
                        change_description=f"User override removed for {user_id}: {scope}",
                        old_values=removed,
                        metadata={"target_user_id": user_id},
                    ),
                )

        with traced_span("typescope.config.delete_user_override", user_id=user_id):
            entry = self._run(write, "user override delete")
        if entry is None:
            return False
        self._audit.emit(entry)
        return True

    def effective(self, framework: Framework | str, computed: Any, user_id: str | None) -> Any:
        """User override value if one exists, else the computed value."""
        fw = Framework(validate_framework(framework))
        record = self.load_user_override(user_id) if user_id else None
        return effective_value(fw, computed, record)

    def apply_user_overrides(
        self, profile: PersonalityProfile, user_id: str | None
    ) -> PersonalityProfile:
        """Replace a profile's display values with the user's overrides."""
        if not user_id:
            return profile
        return apply_user_overrides(profile, self.load_user_override(user_id))

    # -- helpers -------------------------------------------------------------

    def _on_restore(self, restored: ScoringOverrides) -> None:
        self._cache.invalidate()

    def _run(self, operation: Callable[[], T], description: str) -> T:
        try:
            return run_with_retry(operation, description=description)
        except TRANSIENT_ERRORS as e:
            raise OverrideStoreUnavailable(
                f"Config store unavailable during {description}: {type(e).__name__}"
            ) from e


def validate_framework(framework: Framework | str) -> str:
    """Normalise a framework name.

    Raises:
        ConfigurationError: If the framework is unknown.
    """
    try:
        return Framework(framework).value
    except ValueError as e:
        raise ConfigurationError(f"Unknown framework: {framework}") from e


_config_store: ConfigOverrideStore | None = None


def get_config_store() -> ConfigOverrideStore:
    """Get the process-wide config store."""
    global _config_store
    if _config_store is None:
        _config_store = ConfigOverrideStore()
    return _config_store


def reset_config_store() -> None:
    """Forget the process-wide config store (for testing)."""
    global _config_store
    _config_store = None
