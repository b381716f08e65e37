"""Profile scoring routes.

POST /v1/profiles/score scores a response vector with the effective global
overrides (or the overrides in the request body) and applies the user's
display overrides when a user id is given.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from typescope.config.overrides import ScoringOverrides
from typescope.scoring.engine import score_profile
from typescope.scoring.models import PersonalityProfile

router = APIRouter(prefix="/v1", tags=["Profiles"])


class ScoreProfileRequest(BaseModel):
    """Request body for POST /v1/profiles/score."""

    responses: list[int] = Field(..., description="108 responses, each 1-10")
    overrides: ScoringOverrides | None = Field(
        default=None, description="Use these overrides instead of the stored ones"
    )
    user_id: str | None = None


@router.post("/profiles/score", response_model=PersonalityProfile)
def score(body: ScoreProfileRequest, request: Request) -> PersonalityProfile:
    """Score one response vector into a personality profile."""
    store = request.app.state.config_store
    overrides = body.overrides if body.overrides is not None else store.load_scoring_overrides()
    profile = score_profile(body.responses, overrides)
    return store.apply_user_overrides(profile, body.user_id)
