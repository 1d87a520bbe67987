"""
Step 4 — Schema Normalizer

Coerces loosely-typed decoded LLM output into the canonical records.
Every entry point is total: any input (None, scalars, strings, partial
dicts, already-canonical models) yields a valid record. Defects are
repaired field by field, so one bad field never discards the rest, and
every default is a pure function of the inputs.

Normalizing an already-canonical record returns an equal record.
"""

import math
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel

from interview_generation.schemas import (
    Evaluation,
    FollowUp,
    Question,
    FOLLOW_UPS_PER_QUESTION,
    MAX_SCORE,
    MIN_SCORE,
)


# ─── Default texts ─────────────────────────────────────────────────────────────

DEFAULT_QUESTION_TEMPLATE = "Tell me about your experience with {topic} as a {role}."
DEFAULT_FOLLOW_UP_TEXT = "Could you elaborate more on this topic?"
GENERIC_SUGGESTED_ANSWER = (
    "A strong answer would address the key concepts and provide practical examples."
)
SUGGESTED_ANSWER_TEMPLATE = (
    'A strong answer to "{question}" would address the key concepts and provide practical examples.'
)
DEFAULT_FEEDBACK_TEMPLATE = (
    "Your answer was {verdict}. Consider providing more details and examples."
)

CORRECT_SCORE = 8
INCORRECT_SCORE = 5
LONG_ANSWER_THRESHOLD = 100

# Keys accepted for each field, first present wins
_QUESTION_TEXT_KEYS = ("question", "text")
_FOLLOW_UPS_KEYS = ("followUpQuestions", "followUps", "follow_ups", "follow_up_questions")
_SUGGESTED_ANSWER_KEYS = ("suggestedAnswer", "suggested_answer", "answer")
_IS_CORRECT_KEYS = ("isCorrect", "is_correct")


# ─── Guards ────────────────────────────────────────────────────────────────────

def _as_mapping(value: Any) -> Optional[Dict[str, Any]]:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, dict):
        return value
    return None


def _first(data: Dict[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _clean_text(value: Any) -> Optional[str]:
    """Return the stripped string, or None when value is not a non-empty string."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _is_score(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value) and MIN_SCORE <= value <= MAX_SCORE


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        if isinstance(item, (dict, list)) or item is None:
            continue
        text = str(item).strip()
        if text:
            items.append(text)
    return items


def default_score(is_correct: bool) -> int:
    return CORRECT_SCORE if is_correct else INCORRECT_SCORE


def padding_follow_up() -> FollowUp:
    return FollowUp(text=DEFAULT_FOLLOW_UP_TEXT, suggested_answer=GENERIC_SUGGESTED_ANSWER)


# ─── Follow-ups ────────────────────────────────────────────────────────────────

def normalize_follow_up(value: Any) -> FollowUp:
    """
    Coerce one follow-up entry.

    A bare string is the follow-up question with the generic suggested answer.
    Missing question text becomes DEFAULT_FOLLOW_UP_TEXT; a missing suggested
    answer is templated from the question text.
    """
    text = _clean_text(value)
    if text is not None:
        return FollowUp(text=text, suggested_answer=GENERIC_SUGGESTED_ANSWER)

    data = _as_mapping(value) or {}
    text = _clean_text(_first(data, _QUESTION_TEXT_KEYS)) or DEFAULT_FOLLOW_UP_TEXT
    suggested = _clean_text(_first(data, _SUGGESTED_ANSWER_KEYS))
    if suggested is None:
        suggested = SUGGESTED_ANSWER_TEMPLATE.format(question=text)
    return FollowUp(text=text, suggested_answer=suggested)


def fit_follow_ups(items: Any) -> List[FollowUp]:
    """Normalize a follow-up array and pad/truncate it to exactly three, order kept."""
    if not isinstance(items, list):
        items = []
    follow_ups = [normalize_follow_up(item) for item in items[:FOLLOW_UPS_PER_QUESTION]]
    while len(follow_ups) < FOLLOW_UPS_PER_QUESTION:
        follow_ups.append(padding_follow_up())
    return follow_ups


# ─── Questions ─────────────────────────────────────────────────────────────────

def normalize_question(value: Any, role: str, topic: str) -> Question:
    """
    Coerce one main question.

    Args:
        value: Decoded entry: dict, string, Question model or anything else
        role:  Target role, used in the default question text
        topic: Interview topic, used in the default question text
    """
    text = _clean_text(value)
    if text is not None:
        return Question(text=text, follow_ups=fit_follow_ups([]))

    data = _as_mapping(value) or {}
    text = _clean_text(_first(data, _QUESTION_TEXT_KEYS))
    if text is None:
        text = DEFAULT_QUESTION_TEMPLATE.format(topic=topic, role=role)
    return Question(text=text, follow_ups=fit_follow_ups(_first(data, _FOLLOW_UPS_KEYS)))


# ─── Evaluation ────────────────────────────────────────────────────────────────

def normalize_evaluation(value: Any, answer_length: int) -> Evaluation:
    """
    Coerce an evaluation object.

    - isCorrect not a boolean      → answer_length > 100
    - feedback missing/empty       → templated good / needs-improvement text
    - score not a number in [0,10] → 8 if correct else 5
    - strengths/improvements not arrays → []
    """
    data = _as_mapping(value) or {}

    is_correct = _first(data, _IS_CORRECT_KEYS)
    if not isinstance(is_correct, bool):
        is_correct = answer_length > LONG_ANSWER_THRESHOLD

    feedback = _clean_text(data.get("feedback"))
    if feedback is None:
        feedback = DEFAULT_FEEDBACK_TEMPLATE.format(
            verdict="good" if is_correct else "needs improvement"
        )

    score = data.get("score")
    if not _is_score(score):
        score = default_score(is_correct)

    return Evaluation(
        is_correct=is_correct,
        feedback=feedback,
        score=score,
        strengths=_string_list(data.get("strengths")),
        improvements=_string_list(data.get("improvements")),
    )


def format_feedback(evaluation: Evaluation) -> str:
    """
    Compose the caller-facing feedback: base text followed by numbered
    "Strengths:" and "Areas for improvement:" sections when non-empty.
    """
    feedback = evaluation.feedback

    if evaluation.strengths:
        feedback += "\n\nStrengths:\n"
        for index, strength in enumerate(evaluation.strengths, start=1):
            feedback += f"{index}. {strength}\n"

    if evaluation.improvements:
        feedback += "\n\nAreas for improvement:\n"
        for index, improvement in enumerate(evaluation.improvements, start=1):
            feedback += f"{index}. {improvement}\n"

    return feedback
