import json
import sys
from pathlib import Path

import httpx
import pytest

# Make the flat-layout packages importable without installing
ROOT_PATH = Path(__file__).resolve().parent.parent
if ROOT_PATH.as_posix() not in sys.path:
    sys.path.insert(0, ROOT_PATH.as_posix())

from interview_generation.pipeline import GenerationPipeline  # noqa: E402


def completion_body(content):
    """OpenAI chat-completions response body carrying `content`."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


class FakeBackend:
    """Chat-completions endpoint stand-in that records every request it receives."""

    def __init__(self, content=None, *, status=200, body=None, exc=None):
        self.content = content
        self.status = status
        self.body = body
        self.exc = exc
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        if self.body is not None:
            if isinstance(self.body, (str, bytes)):
                return httpx.Response(self.status, content=self.body)
            return httpx.Response(self.status, json=self.body)
        return httpx.Response(self.status, json=completion_body(self.content))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def sent_payload(self, index: int = 0) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture
def fake_backend():
    """Factory: fake_backend(content, status=..., body=..., exc=...) -> FakeBackend."""
    return FakeBackend


@pytest.fixture
def make_pipeline():
    """Factory: make_pipeline(backend, api_key=..., **kwargs) -> GenerationPipeline."""

    def _make(backend=None, api_key="sk-test", **kwargs):
        transport = backend.transport if backend is not None else None
        return GenerationPipeline(api_key, transport=transport, **kwargs)

    return _make


@pytest.fixture
def question_payload():
    return [
        {
            "question": "How do indexes speed up queries?",
            "followUpQuestions": [
                {"question": "When can an index hurt?", "suggestedAnswer": "On write-heavy tables."},
                {"question": "What is a covering index?", "suggestedAnswer": "One that holds all columns."},
                {"question": "How do you pick columns?", "suggestedAnswer": "By selectivity."},
            ],
        },
        {
            "question": "Explain query plans.",
            "followUpQuestions": [
                {"question": "What is a seq scan?", "suggestedAnswer": "A full table read."},
                {"question": "What is a hash join?", "suggestedAnswer": "A join via a hash table."},
                {"question": "How do you read EXPLAIN?", "suggestedAnswer": "Bottom up."},
            ],
        },
    ]
