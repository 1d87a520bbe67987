"""
Backend Gateway client — one OpenAI chat-completions call over httpx.

The backend is untrusted: every way the call can go wrong is classified
into the failure taxonomy (see errors.py) instead of leaking httpx or
JSON exceptions to the pipeline.

A fresh AsyncClient is opened per call, so concurrent requests share no
connection state. Tests inject an httpx.MockTransport via `transport`.
"""

import logging
from typing import Optional

import httpx

from interview_generation import config
from interview_generation.errors import (
    EmptyContentError,
    HttpError,
    NetworkError,
    NoCredentialError,
)

log = logging.getLogger(__name__)

_BODY_EXCERPT = 300


def _message_content(payload) -> Optional[str]:
    """choices[0].message.content, or None when any level is missing."""
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


async def call_gpt(
    prompt: str,
    *,
    api_key: Optional[str],
    system: str = "You are a helpful assistant. Output only what is asked.",
    temperature: float = 0.7,
    max_tokens: int = 1000,
    model: str = config.GPT_MODEL,
    api_url: str = config.OPENAI_API_URL,
    timeout: float = config.GPT_TIMEOUT_SECONDS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """
    Call OpenAI Chat Completions and return the assistant message text.

    Args:
        prompt:      User-turn message
        api_key:     Bearer credential; None means no call is attempted
        system:      System prompt
        temperature: Sampling temperature
        max_tokens:  Max response tokens
        transport:   Optional httpx transport (tests)

    Returns:
        Raw, non-empty string content of the model response

    Raises:
        NoCredentialError, NetworkError, HttpError, EmptyContentError
    """
    if not api_key:
        raise NoCredentialError("OPENAI_API_KEY is not configured")

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(
                api_url,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": model,
                    "messages": [
                        {"role": "system", "content": system},
                        {"role": "user", "content": prompt},
                    ],
                    "temperature": temperature,
                    "max_tokens": max_tokens,
                },
            )
    except httpx.TimeoutException as e:
        raise NetworkError(f"Backend request timed out: {e}") from e
    except httpx.TransportError as e:
        raise NetworkError(f"Backend unreachable: {e}") from e

    if not response.is_success:
        raise HttpError(
            f"Backend returned {response.status_code}: {response.text[:_BODY_EXCERPT]}",
            status_code=response.status_code,
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise HttpError(
            f"Backend returned a non-JSON body: {response.text[:_BODY_EXCERPT]}",
            status_code=response.status_code,
        ) from e

    content = _message_content(payload)
    if content is None:
        raise HttpError("Invalid response structure: missing choices[0].message.content",
                        status_code=response.status_code)

    if not content.strip():
        raise EmptyContentError("Empty content in backend response", raw=content)

    return content.strip()
