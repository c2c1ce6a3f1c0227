"""Recover a quiz object from free-form model output.

The model is asked for bare JSON but may wrap it in prose or markdown fences.
``extract_json`` tries progressively looser strategies and returns the first
value that parses; ``validate_quiz`` then checks it against the quiz contract.
"""

import json
import re
import logging
from typing import Any, Callable, List, Optional

from pydantic import ValidationError

from notes_quiz.errors import RecoveryError
from notes_quiz.schemas import QuizPayload

logger = logging.getLogger(__name__)

NO_QUIZ_MESSAGE = "Model did not return valid quiz JSON."

JSON_FENCE = re.compile(r"```json([\s\S]*?)```", re.IGNORECASE)
ANY_FENCE = re.compile(r"```([\s\S]*?)```")


def _loads(text: Optional[str]) -> Any:
    if text is None:
        return None
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None


def _whole_text(text: str) -> Optional[str]:
    return text


def _json_fence(text: str) -> Optional[str]:
    match = JSON_FENCE.search(text)
    return match.group(1) if match else None


def _any_fence(text: str) -> Optional[str]:
    match = ANY_FENCE.search(text)
    return match.group(1) if match else None


def _outer_braces(text: str) -> Optional[str]:
    first = text.find("{")
    last = text.rfind("}")
    if first >= 0 and last > first:
        return text[first:last + 1]
    return None


STRATEGIES: List[Callable[[str], Optional[str]]] = [
    _whole_text,
    _json_fence,
    _any_fence,
    _outer_braces,
]


def extract_json(text: Optional[str]) -> Any:
    """Return the first JSON value recovered from ``text``, or None"""
    if not text:
        return None
    for strategy in STRATEGIES:
        value = _loads(strategy(text))
        if value is not None:
            return value
    return None


def _summarize(error: ValidationError, limit: int = 5) -> str:
    parts = []
    for err in error.errors()[:limit]:
        location = ".".join(str(p) for p in err["loc"]) or "quiz"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


def validate_quiz(candidate: Any) -> QuizPayload:
    """Check a recovered value against the quiz contract.

    A value without a non-empty ``questions`` list is reported exactly like
    a response with no JSON at all.
    """
    if not isinstance(candidate, dict):
        raise RecoveryError(NO_QUIZ_MESSAGE)
    questions = candidate.get("questions")
    if not isinstance(questions, list) or not questions:
        raise RecoveryError(NO_QUIZ_MESSAGE)

    try:
        return QuizPayload.model_validate(candidate)
    except ValidationError as e:
        logger.error(f"Quiz validation failed: {e}")
        raise RecoveryError(f"{NO_QUIZ_MESSAGE} ({_summarize(e)})")


def recover_quiz(text: str, excerpt_chars: int = 600) -> QuizPayload:
    """Extract and validate a quiz, attaching a raw excerpt to any failure"""
    candidate = extract_json(text)
    try:
        return validate_quiz(candidate)
    except RecoveryError as e:
        raw = (text or "")[:excerpt_chars]
        logger.error(f"Failed to recover quiz from model output: {raw!r}")
        raise RecoveryError(e.message, raw=raw) from None
