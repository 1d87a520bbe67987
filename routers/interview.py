"""
Interview Router — /interview

Thin HTTP surface over the generation pipeline.
Endpoints:
  GET  /interview/questions        — main questions, 3 follow-ups each
  POST /interview/follow-up        — 3 follow-ups for a question (+ answer)
  POST /interview/evaluate-answer  — verdict, score and formatted feedback

The pipeline never raises, so the only non-200 responses here are
request-validation errors.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from interview_generation.pipeline import GenerationPipeline, get_pipeline
from interview_generation.schemas import (
    EvaluateAnswerRequest,
    EvaluationResult,
    FollowUpRequest,
    FollowUpsResult,
    QuestionsResult,
)

router = APIRouter(prefix="/interview", tags=["interview"])

log = logging.getLogger("interview.router")


def _require(**fields: str) -> None:
    missing = [name for name, value in fields.items() if not value or not value.strip()]
    if missing:
        log.warning(f"[REQUEST] Rejected: missing {', '.join(missing)}")
        raise HTTPException(status_code=400, detail=f"{' and '.join(missing)} required")


@router.get("/questions", response_model=QuestionsResult, response_model_exclude_none=True)
async def get_questions(
    role: str = Query("", description="Target role, e.g. 'Backend Developer'"),
    topic: str = Query("", description="Interview topic, e.g. 'Database Optimization'"),
    num_questions: int = Query(5, alias="numQuestions", ge=1, le=20),
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    """Generate `numQuestions` interview questions for a role/topic pair."""
    _require(role=role, topic=topic)
    return await pipeline.generate_questions(role.strip(), topic.strip(), num_questions)


@router.post("/follow-up", response_model=FollowUpsResult, response_model_exclude_none=True)
async def post_follow_up(
    request: FollowUpRequest,
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    """Generate exactly three follow-up questions."""
    _require(question=request.question)
    return await pipeline.generate_follow_ups(
        request.question,
        request.answer,
        role=request.role,
        topic=request.topic,
    )


@router.post("/evaluate-answer", response_model=EvaluationResult, response_model_exclude_none=True)
async def post_evaluate_answer(
    request: EvaluateAnswerRequest,
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    """Evaluate a candidate's answer to an interview question."""
    _require(question=request.question, answer=request.answer)
    return await pipeline.evaluate_answer(
        request.question,
        request.answer,
        role=request.role,
        topic=request.topic,
    )
