"""Audit trail models.

AuditLogEntry and ConfigSnapshot are append-only: once written they are
never updated or deleted.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from typescope.config.overrides import ScoringOverrides


class AuditAction(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    ROLLBACK = "rollback"


class AuditTarget(StrEnum):
    GLOBAL_CONFIG = "global_config"
    USER_OVERRIDE = "user_override"
    TRAIT_MAPPING = "trait_mapping"


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


class AuditLogEntry(BaseModel):
    """Immutable record of one configuration mutation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    timestamp: datetime = Field(default_factory=_now)
    user_id: str
    action: AuditAction
    target: AuditTarget
    framework: str | None = None
    change_description: str
    old_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_event(self) -> dict[str, Any]:
        """JSON-ready dict for audit sinks."""
        return self.model_dump(mode="json")


class ConfigSnapshot(BaseModel):
    """Named, restorable copy of the full override state."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    timestamp: datetime = Field(default_factory=_now)
    user_id: str
    description: str
    config_data: ScoringOverrides
    changes_summary: list[str] = Field(default_factory=list)


class ImpactAssessment(BaseModel):
    """Risk rating for a proposed set of configuration changes."""

    model_config = ConfigDict(frozen=True)

    risk_level: str = Field(..., pattern=r"^(low|medium|high)$")
    factors: list[str]
    affected_frameworks: list[str]
