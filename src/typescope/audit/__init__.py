"""Append-only audit trail and configuration snapshots."""

from typescope.audit.models import (
    AuditAction,
    AuditLogEntry,
    AuditTarget,
    ConfigSnapshot,
    ImpactAssessment,
)

__all__ = [
    "AuditAction",
    "AuditLogEntry",
    "AuditTarget",
    "ConfigSnapshot",
    "ImpactAssessment",
]
