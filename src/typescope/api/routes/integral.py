"""Integral level assessment routes.

The enhancement flow is stateless over HTTP: the client sends back the
detail (and the questions it was given) with each step.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from typescope.integral.confidence import (
    analyze_confidence,
    generate_clarification_questions,
    process_confidence_enhancement,
)
from typescope.integral.llm.client import LLMClient
from typescope.integral.models import (
    ConfidenceAnalysis,
    DynamicQuestion,
    IntegralDetail,
    IntegralQuestion,
)
from typescope.integral.question_bank import INTEGRAL_QUESTIONS
from typescope.integral.scorer import score_responses

router = APIRouter(prefix="/v1/integral", tags=["Integral"])


class IntegralScoreRequest(BaseModel):
    """Question id -> chosen option index."""

    answers: dict[int, int] = Field(..., min_length=1)


class QuestionsRequest(BaseModel):
    detail: IntegralDetail


class QuestionsResponse(BaseModel):
    analysis: ConfidenceAnalysis
    questions: list[DynamicQuestion]


class EnhanceRequest(BaseModel):
    detail: IntegralDetail
    questions: list[DynamicQuestion] = Field(..., min_length=1)
    responses: dict[str, str] = Field(..., description="Question id -> option key")


@router.get("/question-bank", response_model=list[IntegralQuestion])
def get_question_bank() -> list[IntegralQuestion]:
    return list(INTEGRAL_QUESTIONS)


@router.post("/score", response_model=IntegralDetail)
def score(body: IntegralScoreRequest) -> IntegralDetail:
    return score_responses(body.answers)


@router.post("/analyze", response_model=ConfidenceAnalysis)
def analyze(detail: IntegralDetail) -> ConfidenceAnalysis:
    return analyze_confidence(detail)


@router.post("/questions", response_model=QuestionsResponse)
def questions(body: QuestionsRequest, request: Request) -> QuestionsResponse:
    """Generate clarification questions for the detail's uncertain levels.

    Upstream generation failures surface as 502 ENHANCEMENT_FAILED.
    """
    client: LLMClient = request.app.state.llm_client
    analysis = analyze_confidence(body.detail)
    generated = generate_clarification_questions(body.detail, client, analysis)
    return QuestionsResponse(analysis=analysis, questions=generated)


@router.post("/enhance", response_model=IntegralDetail)
def enhance(body: EnhanceRequest) -> IntegralDetail:
    return process_confidence_enhancement(body.detail, body.questions, body.responses)
