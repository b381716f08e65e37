"""Integral (developmental level) models.

IntegralDetail is produced by the question-bank scorer or the trait-based
estimate, and is replaced only by re-scoring or by the confidence
enhancement flow; it is never edited in place.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class LevelScore(BaseModel):
    """A developmental level together with its score (0-10)."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Level key, e.g. 'orange'")
    number: int = Field(..., description="Position on the developmental spiral")
    color: str
    name: str
    score: float


class RealityTriad(BaseModel):
    """Share of level weight falling on physical / social / universal reality."""

    model_config = ConfigDict(frozen=True)

    physical: float = Field(..., ge=0.0, le=1.0)
    social: float = Field(..., ge=0.0, le=1.0)
    universal: float = Field(..., ge=0.0, le=1.0)

    def spread(self) -> float:
        """Return max - min across the three values."""
        values = (self.physical, self.social, self.universal)
        return max(values) - min(values)


class IntegralDetail(BaseModel):
    """Outcome of Integral level scoring."""

    model_config = ConfigDict(frozen=True)

    primary_level: LevelScore
    secondary_level: LevelScore | None = None
    confidence: float = Field(..., ge=0.0, le=100.0)
    cognitive_complexity: float = Field(..., ge=0.0, le=10.0)
    reality_triad_mapping: RealityTriad
    developmental_edge: str
    consistency: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Share of evidence that agrees with the primary level",
    )
    level_scores: dict[str, float] = Field(
        default_factory=dict, description="Score per level key, used for re-ranking"
    )


class IntegralOption(BaseModel):
    """One answer option of a question-bank item."""

    model_config = ConfigDict(frozen=True)

    text: str
    scores: dict[str, int] = Field(..., description="Level key -> points (0-5)")


class IntegralQuestion(BaseModel):
    """A fixed question-bank item."""

    model_config = ConfigDict(frozen=True)

    id: int
    question: str
    category: str
    options: tuple[IntegralOption, ...]


QuestionType = Literal["scenario", "values", "behavior", "preference"]


class DynamicQuestionOption(BaseModel):
    """Answer option of a generated clarification question."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    level: str = Field(..., description="Level key this answer supports")


class DynamicQuestion(BaseModel):
    """Clarification question generated for an uncertain level pair."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    question: str = Field(..., min_length=1)
    type: QuestionType
    target_level: str
    context: str = ""
    options: list[DynamicQuestionOption] = Field(..., min_length=2)


class ConfidenceAnalysis(BaseModel):
    """Result of analyze_confidence()."""

    model_config = ConfigDict(frozen=True)

    current_confidence: float
    issues_detected: list[str]
    recommended_actions: list[str]
    needs_additional_questions: bool
    uncertain_areas: list[str]
    uncertain_level_pairs: list[tuple[str, str]]
