"""
Step 3 — Response Extractor

Locates and parses the JSON payload inside an LLM reply. Replies may be
pure JSON, JSON wrapped in a markdown fence or explanatory prose, or no
JSON at all. Purely syntactic: no field validation happens here.

Strategy:
  1. Balanced-bracket scan (string-aware) for every top-level candidate
     that opens like structured JSON with the expected delimiter; the
     largest candidate that parses wins.
  2. Lightweight repair (json_repair) of the greedy span from the first
     structured opener to the last closing delimiter.
  3. The whole reply parsed as-is.
"""

import json
import logging
import re
from typing import Any, List, Literal, Optional, Tuple

import json_repair

from interview_generation.errors import EmptyContentError, MalformedJsonError

log = logging.getLogger(__name__)

Expected = Literal["object", "array"]

_DELIMITERS = {
    "object": ("{", "}"),
    "array": ("[", "]"),
}


# ─── Candidate scanning ────────────────────────────────────────────────────────

# Opening of a structured span: "{" then a key or "}", "[" then an object,
# string or "]". Bracketed prose such as "[inappropriate]" never matches.
_STRUCTURED_START = {
    "object": re.compile(r'\{\s*["}]'),
    "array": re.compile(r'\[\s*[{"\]]'),
}


def find_candidates(text: str, expected: Expected) -> List[Tuple[int, int]]:
    """
    Return (start, end) spans of top-level balanced candidates, in order.

    Single pass, string-aware. When an opener never closes, the balanced
    spans nested inside it are reported instead.
    """
    opener, closer = _DELIMITERS[expected]
    closed = []
    stack = []
    in_string = False
    escape_next = False

    for i, ch in enumerate(text):
        if not stack:
            if ch == opener:
                stack.append(i)
            continue

        if escape_next:
            escape_next = False
            continue
        if in_string:
            if ch == "\\":
                escape_next = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == opener:
            stack.append(i)
        elif ch == closer:
            closed.append((stack.pop(), i + 1))

    spans = []
    for start, end in sorted(closed):
        if not spans or start >= spans[-1][1]:
            spans.append((start, end))
    return spans


def _repair_span(text: str, expected: Expected) -> Optional[str]:
    """Greedy span from the first structured opener to the last closer."""
    _, closer = _DELIMITERS[expected]
    match = _STRUCTURED_START[expected].search(text)
    if match is None:
        return None
    last = text.rfind(closer)
    if last < match.start():
        return None
    return text[match.start():last + 1]


def _matches(value: Any, expected: Expected) -> bool:
    if expected == "object":
        return isinstance(value, dict)
    return isinstance(value, list)


def _try_loads(candidate: str) -> Tuple[bool, Any]:
    try:
        return True, json.loads(candidate)
    except ValueError:
        return False, None


# ─── Main entry ────────────────────────────────────────────────────────────────

def extract(raw: Optional[str], expected: Expected) -> Any:
    """
    Extract the JSON payload of the expected kind from an LLM reply.

    Args:
        raw:      Reply text from the backend
        expected: "object" or "array", which delimiter pair to look for

    Returns:
        The parsed value. Usually a dict/list of the expected kind; when no
        candidate exists the whole reply is parsed, so any JSON type can
        come back and the caller checks the top-level shape.

    Raises:
        EmptyContentError:  raw is None, empty or whitespace-only
        MalformedJsonError: nothing in the reply parses as JSON
    """
    if expected not in _DELIMITERS:
        raise ValueError(f"expected must be 'object' or 'array', got {expected!r}")

    if raw is None or not raw.strip():
        raise EmptyContentError("Empty content in backend response", raw=raw or "")

    text = raw.strip()

    # 1) Balanced structured candidates: largest parseable one is the payload
    structured = _STRUCTURED_START[expected]
    best = None
    best_len = -1
    for start, end in find_candidates(text, expected):
        if not structured.match(text, start):
            continue
        ok, value = _try_loads(text[start:end])
        if ok and end - start > best_len:
            best, best_len = value, end - start
    if best_len >= 0:
        return best

    # 2) Greedy structured span with lightweight repair
    span = _repair_span(text, expected)
    if span is not None:
        try:
            repaired = json_repair.loads(span)
        except Exception as e:
            log.debug("json_repair failed: %s", e)
        else:
            if _matches(repaired, expected):
                log.info(f"[EXTRACT] Recovered {expected} via json_repair")
                return repaired

    # 3) Whole reply
    ok, value = _try_loads(text)
    if ok:
        return value

    raise MalformedJsonError(f"No parseable JSON {expected} in backend response", raw=raw)
