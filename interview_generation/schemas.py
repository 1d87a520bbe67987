"""
Pydantic schemas for the interview generation pipeline.

Canonical records (immutable once built):
  FollowUp    — follow-up question + suggested answer
  Question    — main question owning exactly 3 FollowUps
  Evaluation  — verdict, base feedback, score, strengths, improvements

Result envelopes wrap the canonical records with an optional diagnostic
describing which failure (if any) forced the fallback path.

Python attributes are snake_case; the wire keys keep the camelCase names
the frontend reads (question, followUpQuestions, suggestedAnswer, isCorrect).
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


FOLLOW_UPS_PER_QUESTION = 3
MIN_SCORE = 0
MAX_SCORE = 10


# ─── Canonical records ─────────────────────────────────────────────────────────

class FollowUp(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str = Field(..., alias="question", min_length=1)
    suggested_answer: str = Field(..., alias="suggestedAnswer", min_length=1)


class Question(BaseModel):
    """One main interview question; always carries exactly 3 follow-ups."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str = Field(..., alias="question", min_length=1)
    follow_ups: List[FollowUp] = Field(
        ...,
        alias="followUpQuestions",
        min_length=FOLLOW_UPS_PER_QUESTION,
        max_length=FOLLOW_UPS_PER_QUESTION,
    )


class Evaluation(BaseModel):
    """Evaluation of one (question, answer) pair. `feedback` is the base text only."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_correct: bool = Field(..., alias="isCorrect")
    feedback: str = Field(..., min_length=1)
    score: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)


# ─── Pipeline results / API responses ──────────────────────────────────────────

class QuestionsResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    questions: List[Question]
    diagnostic: Optional[str] = None
    used_fallback: bool = Field(False, exclude=True)


class FollowUpsResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    follow_ups: List[FollowUp] = Field(
        ...,
        alias="followUpQuestions",
        min_length=FOLLOW_UPS_PER_QUESTION,
        max_length=FOLLOW_UPS_PER_QUESTION,
    )
    diagnostic: Optional[str] = None
    used_fallback: bool = Field(False, exclude=True)


class EvaluationResult(BaseModel):
    """
    What the caller receives for an evaluation: the canonical fields plus
    `feedback` already composed with the numbered strengths/improvements.
    """
    model_config = ConfigDict(populate_by_name=True)

    is_correct: bool = Field(..., alias="isCorrect")
    feedback: str
    score: float
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    status: str = "success"
    diagnostic: Optional[str] = None
    used_fallback: bool = Field(False, exclude=True)


# ─── API requests ──────────────────────────────────────────────────────────────

class FollowUpRequest(BaseModel):
    question: str = Field(..., description="The interview question to follow up on")
    answer: Optional[str] = Field(None, description="Candidate's answer, if already given")
    role: str = Field("", description="Target role, e.g. 'Backend Developer'")
    topic: str = Field("", description="Interview topic, e.g. 'Database Optimization'")


class EvaluateAnswerRequest(BaseModel):
    question: str
    answer: str
    role: str = ""
    topic: str = ""
