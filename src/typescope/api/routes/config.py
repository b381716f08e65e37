"""Scoring configuration routes.

Global overrides:
- GET    /v1/config/scoring          latest version (version 0 when none)
- PUT    /v1/config/scoring          merge a partial document (optimistic lock)
- DELETE /v1/config/scoring          reset to built-in defaults

Per-user display overrides:
- GET    /v1/users/{user_id}/overrides
- PUT    /v1/users/{user_id}/overrides/{framework}
- DELETE /v1/users/{user_id}/overrides[/{framework}]
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Query, Request, Response
from pydantic import BaseModel, Field

from typescope.api.errors import TypeScopeHttpError
from typescope.config.overrides import ScoringConfigRecord, ScoringOverrides, UserOverrideRecord
from typescope.config.store import ConfigOverrideStore

router = APIRouter(prefix="/v1", tags=["Config"])


class ScoringConfigResponse(BaseModel):
    """Current global overrides plus the derived mapping-weights view."""

    version: int
    overrides: dict[str, Any]
    updated_by: str | None = None
    updated_at: datetime | None = None
    mapping_weights: dict[str, dict[str, dict[str, float]]] = Field(default_factory=dict)


class SaveScoringConfigRequest(BaseModel):
    """Request body for PUT /v1/config/scoring."""

    overrides: ScoringOverrides
    user_id: str = Field(..., min_length=1)
    expected_version: int | None = Field(default=None, ge=0)


class ResetScoringConfigResponse(BaseModel):
    reset: bool
    version: int | None = None


class SaveUserOverrideRequest(BaseModel):
    """Request body for PUT /v1/users/{user_id}/overrides/{framework}."""

    value: Any
    created_by: str = Field(..., min_length=1)
    reason: str | None = None


def _store(request: Request) -> ConfigOverrideStore:
    store: ConfigOverrideStore = request.app.state.config_store
    return store


def _config_response(
    record: ScoringConfigRecord | None, store: ConfigOverrideStore
) -> ScoringConfigResponse:
    if record is None:
        return ScoringConfigResponse(version=0, overrides={})
    return ScoringConfigResponse(
        version=record.version,
        overrides=record.overrides.to_document(),
        updated_by=record.updated_by,
        updated_at=record.updated_at,
        mapping_weights=store.mapping_weights(),
    )


@router.get("/config/scoring", response_model=ScoringConfigResponse)
def get_scoring_config(request: Request) -> ScoringConfigResponse:
    store = _store(request)
    return _config_response(store.load_record(), store)


@router.put("/config/scoring", response_model=ScoringConfigResponse)
def save_scoring_config(body: SaveScoringConfigRequest, request: Request) -> ScoringConfigResponse:
    """Merge a partial override document into the latest version.

    A stale `expected_version` is rejected with 409 CONFIG_CONFLICT.
    """
    store = _store(request)
    record = store.save_scoring_overrides(body.overrides, body.user_id, body.expected_version)
    return _config_response(record, store)


@router.delete("/config/scoring", response_model=ResetScoringConfigResponse)
def reset_scoring_config(
    request: Request,
    user_id: str = Query(..., min_length=1),
    expected_version: int | None = Query(default=None, ge=0),
) -> ResetScoringConfigResponse:
    record = _store(request).reset_scoring_overrides(user_id, expected_version)
    if record is None:
        return ResetScoringConfigResponse(reset=False)
    return ResetScoringConfigResponse(reset=True, version=record.version)


@router.get("/users/{user_id}/overrides", response_model=UserOverrideRecord)
def get_user_overrides(user_id: str, request: Request) -> UserOverrideRecord:
    record = _store(request).load_user_override(user_id)
    if record is None:
        raise TypeScopeHttpError(
            status_code=404,
            code="USER_OVERRIDES_NOT_FOUND",
            message=f"No overrides for user {user_id}",
        )
    return record


@router.put("/users/{user_id}/overrides/{framework}", response_model=UserOverrideRecord)
def save_user_override(
    user_id: str, framework: str, body: SaveUserOverrideRequest, request: Request
) -> UserOverrideRecord:
    """Set one framework's display value for a user (validated per framework)."""
    return _store(request).save_user_override(
        user_id, framework, body.value, created_by=body.created_by, reason=body.reason
    )


@router.delete("/users/{user_id}/overrides", status_code=204)
def delete_user_overrides(
    user_id: str, request: Request, deleted_by: str = Query(..., min_length=1)
) -> Response:
    return _delete(request, user_id, None, deleted_by)


@router.delete("/users/{user_id}/overrides/{framework}", status_code=204)
def delete_user_override(
    user_id: str, framework: str, request: Request, deleted_by: str = Query(..., min_length=1)
) -> Response:
    return _delete(request, user_id, framework, deleted_by)


def _delete(request: Request, user_id: str, framework: str | None, deleted_by: str) -> Response:
    removed = _store(request).delete_user_override(user_id, framework, deleted_by=deleted_by)
    if not removed:
        raise TypeScopeHttpError(
            status_code=404,
            code="USER_OVERRIDES_NOT_FOUND",
            message=f"No matching overrides for user {user_id}",
        )
    return Response(status_code=204)
