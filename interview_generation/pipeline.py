"""
Generation Pipeline — orchestrates one backend call per logical request.

    build prompt → call_gpt → extract → check top-level shape → normalize
                      └──────────── any failure ───────────→ fallback

States per request:
  NoCredential                    → Fallback
  Calling → NetworkError          → Fallback
          → HttpError / empty     → Fallback
          → Success → ExtractFail → Fallback
                    → ExtractOk   → Normalizing → Done

No retries: exactly one outbound call per invocation, so a transient
failure never turns into duplicate billed calls. Retry policy belongs to
the caller. The pipeline holds no per-request state; one instance can
serve any number of concurrent requests.

Every public method returns a schema-valid result. Classified failures
and unexpected errors alike end in the fallback generator, with the
reason carried in `diagnostic`.
"""

import logging
from typing import Any, Optional

import httpx

from interview_generation import config
from interview_generation.errors import (
    ExtractError,
    GenerationFailure,
    MalformedJsonError,
    SchemaMismatchError,
)
from interview_generation.fallbacks import (
    evaluation_from_prose,
    fallback_evaluation,
    fallback_follow_ups,
    fallback_question,
    fallback_questions,
)
from interview_generation.gpt_client import call_gpt
from interview_generation.normalizer import (
    fit_follow_ups,
    format_feedback,
    normalize_evaluation,
    normalize_question,
)
from interview_generation.prompts import (
    EVALUATION_SYSTEM,
    FOLLOW_UP_SYSTEM,
    QUESTIONS_SYSTEM,
    build_evaluation_prompt,
    build_follow_up_prompt,
    build_questions_prompt,
)
from interview_generation.response_extractor import Expected, extract
from interview_generation.schemas import (
    Evaluation,
    EvaluationResult,
    FollowUpsResult,
    QuestionsResult,
)

log = logging.getLogger("generation.pipeline")

_RAW_EXCERPT = 500


def _unexpected(e: Exception) -> str:
    return f"Unexpected error: {type(e).__name__}: {e}"


class GenerationPipeline:
    """
    Stateless orchestrator for the three interview operations.

    Build it with `from_env()` in the application, or pass the credential
    (None for NoCredential mode) and an httpx transport directly in tests.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        model: str = config.GPT_MODEL,
        api_url: str = config.OPENAI_API_URL,
        timeout: float = config.GPT_TIMEOUT_SECONDS,
        salvage_prose_evaluations: bool = config.SALVAGE_PROSE_EVALUATIONS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or None
        self.model = model
        self.api_url = api_url
        self.timeout = timeout
        self.salvage_prose_evaluations = salvage_prose_evaluations
        self._transport = transport

    @classmethod
    def from_env(cls, **kwargs) -> "GenerationPipeline":
        """Resolve the credential once from the environment."""
        api_key = config.get_api_key()
        if api_key is None:
            log.warning("OPENAI_API_KEY is not set, all requests will use fallback content")
        return cls(api_key, **kwargs)

    @property
    def has_credential(self) -> bool:
        return self.api_key is not None

    # ─── Backend round-trip ────────────────────────────────────────────────────

    async def _request(
        self,
        prompt: str,
        *,
        expected: Expected,
        system: str,
        temperature: float,
        max_tokens: int,
    ) -> Any:
        """
        One backend call + extraction + top-level shape check.

        Raises a GenerationFailure subclass for every classified failure.
        """
        raw = await call_gpt(
            prompt,
            api_key=self.api_key,
            system=system,
            temperature=temperature,
            max_tokens=max_tokens,
            model=self.model,
            api_url=self.api_url,
            timeout=self.timeout,
            transport=self._transport,
        )

        try:
            data = extract(raw, expected)
        except ExtractError:
            log.warning(f"Raw content: {raw[:_RAW_EXCERPT]}")
            raise

        wanted = dict if expected == "object" else list
        if not isinstance(data, wanted):
            log.warning(f"Raw content: {raw[:_RAW_EXCERPT]}")
            raise SchemaMismatchError(f"Expected a JSON {expected}, got {type(data).__name__}")
        return data

    # ─── Questions ─────────────────────────────────────────────────────────────

    async def generate_questions(self, role: str, topic: str, count: int = 5) -> QuestionsResult:
        """
        Generate `count` main questions, each with exactly 3 follow-ups.

        Short backend arrays are completed from the fallback templates at the
        same positions; extra entries are dropped.
        """
        count = max(int(count), 1)
        log.info(f"[QUESTIONS] role='{role}', topic='{topic}', count={count}")

        try:
            items = await self._request(
                build_questions_prompt(role, topic, count),
                expected="array",
                system=QUESTIONS_SYSTEM,
                temperature=0.7,
                max_tokens=2500,
            )
            questions = [normalize_question(item, role=role, topic=topic) for item in items[:count]]
        except GenerationFailure as e:
            log.warning(f"[QUESTIONS] {e.diagnostic}, using fallback questions")
            return QuestionsResult(
                questions=fallback_questions(role, topic, count),
                diagnostic=e.diagnostic,
                used_fallback=True,
            )
        except Exception as e:
            log.exception("[QUESTIONS] Unexpected error, using fallback questions")
            return QuestionsResult(
                questions=fallback_questions(role, topic, count),
                diagnostic=_unexpected(e),
                used_fallback=True,
            )

        diagnostic = None
        if len(questions) < count:
            diagnostic = f"Backend returned {len(questions)} of {count} questions; remainder from fallback"
            log.warning(f"[QUESTIONS] {diagnostic}")
            questions.extend(fallback_question(role, topic, i) for i in range(len(questions), count))

        log.info(f"[QUESTIONS] OK: {len(questions)} questions")
        return QuestionsResult(questions=questions, diagnostic=diagnostic)

    # ─── Follow-ups ────────────────────────────────────────────────────────────

    async def generate_follow_ups(
        self,
        question: str,
        answer: Optional[str] = None,
        role: str = "",
        topic: str = "",
    ) -> FollowUpsResult:
        """Generate exactly 3 follow-ups for a question (and the answer, if given)."""
        log.info(f"[FOLLOW-UP] role='{role}', topic='{topic}', has_answer={bool(answer)}")

        try:
            items = await self._request(
                build_follow_up_prompt(question, answer, role, topic),
                expected="array",
                system=FOLLOW_UP_SYSTEM,
                temperature=0.7,
                max_tokens=1000,
            )
            follow_ups = fit_follow_ups(items)
        except GenerationFailure as e:
            log.warning(f"[FOLLOW-UP] {e.diagnostic}, using default follow-ups")
            return FollowUpsResult(
                follow_ups=fallback_follow_ups(question, answer),
                diagnostic=e.diagnostic,
                used_fallback=True,
            )
        except Exception as e:
            log.exception("[FOLLOW-UP] Unexpected error, using default follow-ups")
            return FollowUpsResult(
                follow_ups=fallback_follow_ups(question, answer),
                diagnostic=_unexpected(e),
                used_fallback=True,
            )

        log.info("[FOLLOW-UP] OK")
        return FollowUpsResult(follow_ups=follow_ups)

    # ─── Evaluation ────────────────────────────────────────────────────────────

    async def evaluate_answer(
        self,
        question: str,
        answer: str,
        role: str = "",
        topic: str = "",
    ) -> EvaluationResult:
        """Evaluate a free-text answer; feedback comes back already formatted."""
        answer = answer or ""
        answer_length = len(answer)
        log.info(f"[EVALUATE] role='{role}', topic='{topic}', answer_length={answer_length}")

        try:
            data = await self._request(
                build_evaluation_prompt(question, answer, role, topic),
                expected="object",
                system=EVALUATION_SYSTEM,
                temperature=0.3,
                max_tokens=500,
            )
            evaluation = normalize_evaluation(data, answer_length)
        except GenerationFailure as e:
            if self.salvage_prose_evaluations and isinstance(e, MalformedJsonError):
                log.warning(f"[EVALUATE] {e.diagnostic}, salvaging evaluation from prose")
                evaluation = evaluation_from_prose(e.raw, answer_length)
            else:
                log.warning(f"[EVALUATE] {e.diagnostic}, using fallback evaluation")
                evaluation = fallback_evaluation(answer_length)
            return self._evaluation_result(evaluation, diagnostic=e.diagnostic, used_fallback=True)
        except Exception as e:
            log.exception("[EVALUATE] Unexpected error, using fallback evaluation")
            return self._evaluation_result(
                fallback_evaluation(answer_length, unavailable=True),
                diagnostic=_unexpected(e),
                used_fallback=True,
            )

        log.info(f"[EVALUATE] OK: is_correct={evaluation.is_correct}, score={evaluation.score}")
        return self._evaluation_result(evaluation)

    @staticmethod
    def _evaluation_result(
        evaluation: Evaluation,
        diagnostic: Optional[str] = None,
        used_fallback: bool = False,
    ) -> EvaluationResult:
        return EvaluationResult(
            is_correct=evaluation.is_correct,
            feedback=format_feedback(evaluation),
            score=evaluation.score,
            strengths=list(evaluation.strengths),
            improvements=list(evaluation.improvements),
            diagnostic=diagnostic,
            used_fallback=used_fallback,
        )


# ─── Process-wide instance ─────────────────────────────────────────────────────

_pipeline: Optional[GenerationPipeline] = None


def get_pipeline() -> GenerationPipeline:
    """Lazy singleton built from the environment (FastAPI dependency)."""
    global _pipeline
    if _pipeline is None:
        _pipeline = GenerationPipeline.from_env()
    return _pipeline
