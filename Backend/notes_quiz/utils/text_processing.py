import re
import logging
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

DOCUMENT_SEPARATOR = "\n\n---\n\n"
HEAD_SHARE = 0.7
TAIL_SHARE = 0.3


def clean_text(text: Optional[str]) -> str:
    """Normalize extracted text: newlines only, at most one blank line in a row, trimmed"""
    text = (text or "").replace("\r", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def join_documents(texts: Iterable[str]) -> str:
    return DOCUMENT_SEPARATOR.join(texts)


def omission_marker(omitted: int) -> str:
    return f"\n\n[...] (omitted {omitted} characters for length)\n\n"


def truncate_for_llm(text: str, max_chars: int = 50_000) -> str:
    """Keep prompts within a safe size for the LLM.

    Over-budget text keeps its first 70% and last 30% of ``max_chars``
    with a marker saying how much was cut in between.
    """
    if len(text) <= max_chars:
        return text

    head_len = int(max_chars * HEAD_SHARE)
    tail_len = int(max_chars * TAIL_SHARE)
    head = text[:head_len]
    tail = text[len(text) - tail_len:] if tail_len else ""
    omitted = len(text) - head_len - tail_len

    logger.info(f"Truncating notes from {len(text)} to {max_chars} characters")
    return f"{head}{omission_marker(omitted)}{tail}"
