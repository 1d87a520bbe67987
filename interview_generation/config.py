"""
Environment-backed settings for the generation pipeline.

Values are read once at import time; `.env` in the working directory is
loaded first so local development does not need exported variables.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

log = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning(f"{name}={raw!r} is not a number, using {default}")
        return default


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ── Model config ───────────────────────────────────────────────────────────────
GPT_MODEL = os.getenv("GPT_MODEL", "gpt-4o")
OPENAI_API_URL = os.getenv("OPENAI_API_URL", "https://api.openai.com/v1/chat/completions")
GPT_TIMEOUT_SECONDS = _env_float("GPT_TIMEOUT_SECONDS", 30.0)

# Build an Evaluation from a non-JSON evaluation reply instead of the canned fallback
SALVAGE_PROSE_EVALUATIONS = _env_flag("SALVAGE_PROSE_EVALUATIONS", True)


def get_api_key() -> Optional[str]:
    """
    Resolve the backend credential from the environment.

    Returns None when OPENAI_API_KEY is unset or blank; callers treat that
    as the NoCredential mode rather than as an error.
    """
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key or not api_key.strip():
        return None
    return api_key.strip()
