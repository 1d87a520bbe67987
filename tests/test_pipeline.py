"""
End-to-end pipeline behavior against a simulated backend.

Whatever the backend does, every operation must return a complete,
schema-valid result; the failure reason only shows up in `diagnostic`.
"""

import asyncio
import json

import httpx
import pytest

from interview_generation import pipeline as pipeline_module
from interview_generation.fallbacks import (
    CORRECT_FEEDBACK,
    EXPERIENCE_FOLLOW_UPS,
    IMPLEMENTATION_FOLLOW_UPS,
    UNAVAILABLE_FEEDBACK,
    fallback_evaluation,
    fallback_question,
    fallback_questions,
)
from interview_generation.normalizer import format_feedback
from interview_generation.pipeline import GenerationPipeline

ROLE = "Backend Developer"
TOPIC = "Database Optimization"
LONG_ANSWER = "An index is an auxiliary structure, usually a B-tree, that lets the planner avoid full scans. " * 2


def _run(coro):
    return asyncio.run(coro)


# ─── Questions ─────────────────────────────────────────────────────────────────

BACKEND_SCENARIOS = {
    "success": dict(content=None),  # filled from question_payload
    "http_500": dict(body={"error": "boom"}, status=500),
    "empty_body": dict(body=""),
    "empty_content": dict(content=""),
    "prose_wrapped": dict(content=None),  # filled from question_payload
    "wrong_shape": dict(content='{"message": "I prefer objects"}'),
    "scalar": dict(content="42"),
    "prose_only": dict(content="Sorry, I cannot help with that."),
    "network": dict(exc=httpx.ConnectError("connection refused")),
    "timeout": dict(exc=httpx.ReadTimeout("timed out")),
}


@pytest.mark.parametrize("scenario", sorted(BACKEND_SCENARIOS))
@pytest.mark.parametrize("count", [1, 5])
def test_generate_questions_is_total(scenario, count, fake_backend, make_pipeline, question_payload):
    kwargs = dict(BACKEND_SCENARIOS[scenario])
    if scenario == "success":
        kwargs["content"] = json.dumps(question_payload)
    elif scenario == "prose_wrapped":
        kwargs["content"] = f"Here are your questions:\n{json.dumps(question_payload)}\nGood luck!"
    backend = fake_backend(**kwargs)
    pipeline = make_pipeline(backend)

    result = _run(pipeline.generate_questions(ROLE, TOPIC, count))

    assert len(result.questions) == count
    assert all(len(q.follow_ups) == 3 for q in result.questions)
    assert all(q.text and all(f.text and f.suggested_answer for f in q.follow_ups) for q in result.questions)
    assert len(backend.requests) == 1


@pytest.mark.parametrize(
    "scenario, kind",
    [
        ("http_500", "HttpError"),
        ("empty_body", "HttpError"),
        ("empty_content", "EmptyContent"),
        ("wrong_shape", "SchemaMismatch"),
        ("scalar", "SchemaMismatch"),
        ("prose_only", "MalformedJson"),
        ("network", "NetworkError"),
        ("timeout", "NetworkError"),
    ],
)
def test_generate_questions_failure_uses_fallback_with_diagnostic(scenario, kind, fake_backend, make_pipeline):
    backend = fake_backend(**BACKEND_SCENARIOS[scenario])

    result = _run(make_pipeline(backend).generate_questions(ROLE, TOPIC, 5))

    assert result.used_fallback is True
    assert result.diagnostic.startswith(f"{kind}:")
    assert result.questions == fallback_questions(ROLE, TOPIC, 5)


REFUSAL = "I'm sorry, I cannot generate [inappropriate] questions for that topic."


def test_generate_questions_bracketed_refusal_uses_fallback(fake_backend, make_pipeline):
    backend = fake_backend(REFUSAL)

    result = _run(make_pipeline(backend).generate_questions(ROLE, TOPIC, 2))

    assert result.used_fallback is True
    assert result.diagnostic.startswith("MalformedJson:")
    assert result.questions == fallback_questions(ROLE, TOPIC, 2)


def test_generate_questions_success_normalizes_backend_payload(fake_backend, make_pipeline, question_payload):
    backend = fake_backend(json.dumps(question_payload))

    result = _run(make_pipeline(backend).generate_questions(ROLE, TOPIC, 2))

    assert result.used_fallback is False
    assert result.diagnostic is None
    assert [q.text for q in result.questions] == ["How do indexes speed up queries?", "Explain query plans."]
    assert result.questions[0].follow_ups[1].suggested_answer == "One that holds all columns."


def test_generate_questions_short_array_completed_from_fallback(fake_backend, make_pipeline, question_payload):
    backend = fake_backend(json.dumps(question_payload))

    result = _run(make_pipeline(backend).generate_questions(ROLE, TOPIC, 4))

    assert len(result.questions) == 4
    assert result.questions[2] == fallback_question(ROLE, TOPIC, 2)
    assert result.questions[3] == fallback_question(ROLE, TOPIC, 3)
    assert "2 of 4" in result.diagnostic


def test_generate_questions_long_array_truncated(fake_backend, make_pipeline, question_payload):
    backend = fake_backend(json.dumps(question_payload * 3))

    result = _run(make_pipeline(backend).generate_questions(ROLE, TOPIC, 1))

    assert [q.text for q in result.questions] == ["How do indexes speed up queries?"]


def test_generate_questions_partial_entries_are_repaired(fake_backend, make_pipeline):
    payload = [
        "Plain string question?",
        {"followUpQuestions": [{"question": "Only one"}]},
    ]
    backend = fake_backend(json.dumps(payload))

    result = _run(make_pipeline(backend).generate_questions(ROLE, TOPIC, 2))

    assert result.questions[0].text == "Plain string question?"
    assert result.questions[1].text == f"Tell me about your experience with {TOPIC} as a {ROLE}."
    assert result.questions[1].follow_ups[0].text == "Only one"
    assert result.used_fallback is False


def test_generate_questions_sends_one_request_with_question_sampling(fake_backend, make_pipeline, question_payload):
    backend = fake_backend(json.dumps(question_payload))

    _run(make_pipeline(backend).generate_questions(ROLE, TOPIC, 2))

    payload = backend.sent_payload()
    assert payload["temperature"] == 0.7
    assert payload["max_tokens"] == 2500
    assert f"Generate 2 challenging technical interview questions about {TOPIC}" in payload["messages"][1]["content"]


def test_no_credential_is_deterministic_and_offline(fake_backend, make_pipeline):
    backend = fake_backend("unused")
    pipeline = make_pipeline(backend, api_key=None)

    first = _run(pipeline.generate_questions("Backend Developer", "Database Optimization", 5))
    second = _run(pipeline.generate_questions("Backend Developer", "Database Optimization", 5))

    assert backend.requests == []
    assert first.questions == second.questions == fallback_questions(ROLE, TOPIC, 5)
    assert first.diagnostic.startswith("NoCredential:")


def test_unexpected_error_is_contained(fake_backend, make_pipeline, monkeypatch, question_payload):
    def boom(*_args, **_kwargs):
        raise RuntimeError("normalizer exploded")

    monkeypatch.setattr(pipeline_module, "normalize_question", boom)
    backend = fake_backend(json.dumps(question_payload))

    result = _run(make_pipeline(backend).generate_questions(ROLE, TOPIC, 3))

    assert result.used_fallback is True
    assert "normalizer exploded" in result.diagnostic
    assert len(result.questions) == 3


def test_concurrent_requests_are_independent(fake_backend, make_pipeline, question_payload):
    backend = fake_backend(json.dumps(question_payload))
    pipeline = make_pipeline(backend)

    async def _many():
        return await asyncio.gather(*(pipeline.generate_questions(ROLE, TOPIC, 2) for _ in range(8)))

    results = _run(_many())

    assert len(backend.requests) == 8
    assert all(r.questions == results[0].questions for r in results)


# ─── Follow-ups ────────────────────────────────────────────────────────────────

def test_follow_ups_truncated_to_three(fake_backend, make_pipeline):
    items = [{"question": f"F{i}?", "suggestedAnswer": f"A{i}"} for i in range(5)]
    backend = fake_backend(json.dumps(items))

    result = _run(make_pipeline(backend).generate_follow_ups("Q?", None, ROLE, TOPIC))

    assert [f.text for f in result.follow_ups] == ["F0?", "F1?", "F2?"]
    assert result.used_fallback is False


def test_follow_ups_padded_to_three(fake_backend, make_pipeline):
    backend = fake_backend('Sure: ["Why?"]')

    result = _run(make_pipeline(backend).generate_follow_ups("Q?", None, ROLE, TOPIC))

    assert len(result.follow_ups) == 3
    assert result.follow_ups[0].text == "Why?"


def test_follow_ups_prompt_includes_answer(fake_backend, make_pipeline):
    backend = fake_backend("[]")

    _run(make_pipeline(backend).generate_follow_ups("Q?", "I would add an index.", ROLE, TOPIC))

    prompt = backend.sent_payload()["messages"][1]["content"]
    assert "Answer: I would add an index." in prompt
    assert backend.sent_payload()["max_tokens"] == 1000


def test_follow_ups_failure_uses_keyword_templates(fake_backend, make_pipeline):
    backend = fake_backend(body="", status=502)

    result = _run(
        make_pipeline(backend).generate_follow_ups("How would you build a job queue?", None, ROLE, TOPIC)
    )

    assert result.used_fallback is True
    assert result.diagnostic.startswith("HttpError:")
    assert [f.text for f in result.follow_ups] == [text for text, _ in IMPLEMENTATION_FOLLOW_UPS]


def test_follow_ups_bracketed_refusal_uses_keyword_templates(fake_backend, make_pipeline):
    backend = fake_backend(REFUSAL)

    result = _run(
        make_pipeline(backend).generate_follow_ups("How would you build a job queue?", None, ROLE, TOPIC)
    )

    assert result.used_fallback is True
    assert result.diagnostic.startswith("MalformedJson:")
    assert [f.text for f in result.follow_ups] == [text for text, _ in IMPLEMENTATION_FOLLOW_UPS]


def test_follow_ups_no_credential(make_pipeline):
    result = _run(
        make_pipeline(api_key=None).generate_follow_ups("Describe your experience with Kafka.", "Some.", ROLE, TOPIC)
    )

    assert [f.text for f in result.follow_ups] == [text for text, _ in EXPERIENCE_FOLLOW_UPS]


# ─── Evaluation ────────────────────────────────────────────────────────────────

def test_evaluation_success_formats_feedback(fake_backend, make_pipeline):
    reply = {
        "isCorrect": True,
        "feedback": "Accurate and well structured.",
        "score": 9,
        "strengths": ["Mentions B-trees"],
        "improvements": ["Discuss write cost"],
    }
    backend = fake_backend(f"Evaluation follows. {json.dumps(reply)}")

    result = _run(make_pipeline(backend).evaluate_answer("What is an index?", "short", ROLE, TOPIC))

    assert result.is_correct is True
    assert result.score == 9
    assert result.status == "success"
    assert result.diagnostic is None
    assert result.feedback == (
        "Accurate and well structured."
        "\n\nStrengths:\n1. Mentions B-trees\n"
        "\n\nAreas for improvement:\n1. Discuss write cost\n"
    )
    assert backend.sent_payload()["temperature"] == 0.3


def test_evaluation_out_of_range_score_clamped(fake_backend, make_pipeline):
    backend = fake_backend('{"isCorrect": true, "score": 57, "feedback": "Good"}')

    result = _run(make_pipeline(backend).evaluate_answer("Q", "A", ROLE, TOPIC))

    assert result.score == 8


def test_evaluation_prose_is_salvaged(fake_backend, make_pipeline):
    backend = fake_backend("The answer is correct but could go deeper.")

    result = _run(make_pipeline(backend).evaluate_answer("Q", "A", ROLE, TOPIC))

    assert result.is_correct is True
    assert result.score == 8
    assert result.feedback == "The answer is correct but could go deeper."
    assert result.diagnostic.startswith("MalformedJson:")


def test_evaluation_prose_not_salvaged_when_disabled(fake_backend, make_pipeline):
    backend = fake_backend("The answer is correct but could go deeper.")
    pipeline = make_pipeline(backend, salvage_prose_evaluations=False)

    result = _run(pipeline.evaluate_answer("Q", "A", ROLE, TOPIC))

    assert result.feedback == format_feedback(fallback_evaluation(1))


def test_evaluation_wrong_shape_uses_length_fallback(fake_backend, make_pipeline):
    backend = fake_backend("[1, 2, 3]")

    result = _run(make_pipeline(backend).evaluate_answer("Q", LONG_ANSWER, ROLE, TOPIC))

    assert result.diagnostic.startswith("SchemaMismatch:")
    assert result.is_correct is True
    assert result.feedback.startswith(CORRECT_FEEDBACK)
    assert "Strengths:" in result.feedback


@pytest.mark.parametrize("answer, is_correct", [("x" * 101, True), ("x" * 100, False)])
def test_evaluation_no_credential_boundary(make_pipeline, answer, is_correct):
    result = _run(make_pipeline(api_key=None).evaluate_answer("Q", answer, ROLE, TOPIC))

    assert result.is_correct is is_correct
    assert result.used_fallback is True


def test_evaluation_unexpected_error_reports_unavailable(fake_backend, make_pipeline, monkeypatch):
    def boom(*_args, **_kwargs):
        raise KeyError("score")

    monkeypatch.setattr(pipeline_module, "normalize_evaluation", boom)
    backend = fake_backend('{"isCorrect": true}')

    result = _run(make_pipeline(backend).evaluate_answer("Q", "A", ROLE, TOPIC))

    assert result.feedback == UNAVAILABLE_FEEDBACK
    assert result.diagnostic.startswith("Unexpected error: KeyError")


# ─── Construction ──────────────────────────────────────────────────────────────

def test_from_env_resolves_credential_once(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    pipeline = GenerationPipeline.from_env()
    monkeypatch.delenv("OPENAI_API_KEY")

    assert pipeline.has_credential is True
    assert pipeline.api_key == "sk-env"


def test_from_env_without_credential(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    assert GenerationPipeline.from_env().has_credential is False
