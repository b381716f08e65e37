"""Audit trail and snapshot routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from typescope.audit.diff import generate_changes_summary, get_impact_assessment
from typescope.audit.models import AuditLogEntry, ConfigSnapshot, ImpactAssessment
from typescope.audit.service import AuditTrailService
from typescope.config.overrides import ScoringOverrides, merge_overrides
from typescope.config.store import ConfigOverrideStore
from typescope.errors import SnapshotNotFoundError

router = APIRouter(prefix="/v1/audit", tags=["Audit"])


class CreateSnapshotRequest(BaseModel):
    """Request body for POST /v1/audit/snapshots.

    Without `config` the current global overrides are captured. Without
    `changes_summary` the summary is computed against the newest snapshot.
    """

    user_id: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    config: ScoringOverrides | None = None
    changes_summary: list[str] | None = None


class CreateSnapshotResponse(BaseModel):
    snapshot_id: str


class RollbackRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


class RollbackResponse(BaseModel):
    snapshot_id: str
    overrides: dict[str, Any]


class ImpactResponse(BaseModel):
    assessment: ImpactAssessment
    changes_summary: list[str]


def _services(request: Request) -> tuple[ConfigOverrideStore, AuditTrailService]:
    store: ConfigOverrideStore = request.app.state.config_store
    return store, store.audit


@router.get("/log", response_model=list[AuditLogEntry])
def get_audit_log(
    request: Request, limit: int = Query(default=100, ge=1, le=1000)
) -> list[AuditLogEntry]:
    """Audit entries, newest first."""
    _, audit = _services(request)
    return audit.get_audit_log(limit)


@router.get("/snapshots", response_model=list[ConfigSnapshot])
def get_snapshots(
    request: Request, limit: int = Query(default=50, ge=1, le=500)
) -> list[ConfigSnapshot]:
    """Snapshots, newest first."""
    _, audit = _services(request)
    return audit.get_snapshots(limit)


@router.post("/snapshots", response_model=CreateSnapshotResponse, status_code=201)
def create_snapshot(body: CreateSnapshotRequest, request: Request) -> CreateSnapshotResponse:
    store, audit = _services(request)
    config = body.config
    if config is None:
        config = store.load_scoring_overrides() or ScoringOverrides()
    summary = body.changes_summary
    if summary is None:
        previous = audit.get_snapshots(1)
        summary = generate_changes_summary(
            previous[0].config_data if previous else None, config
        )
    snapshot_id = audit.create_snapshot(body.user_id, body.description, config, summary)
    return CreateSnapshotResponse(snapshot_id=snapshot_id)


@router.post("/snapshots/{snapshot_id}/rollback", response_model=RollbackResponse)
def rollback(snapshot_id: str, body: RollbackRequest, request: Request) -> RollbackResponse:
    """Restore a snapshot as the new config version (single transaction)."""
    _, audit = _services(request)
    restored = audit.rollback_to_snapshot(snapshot_id, body.user_id)
    if restored is None:
        raise SnapshotNotFoundError(snapshot_id)
    return RollbackResponse(snapshot_id=snapshot_id, overrides=restored.to_document())


@router.post("/impact", response_model=ImpactResponse)
def assess_impact(changes: ScoringOverrides, request: Request) -> ImpactResponse:
    """Rate proposed changes and summarise them against the current config."""
    store, _ = _services(request)
    current = store.load_scoring_overrides()
    return ImpactResponse(
        assessment=get_impact_assessment(changes),
        changes_summary=generate_changes_summary(current, merge_overrides(current, changes)),
    )
