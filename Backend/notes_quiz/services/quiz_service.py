import logging
from typing import List, Optional, Sequence

import openai
from langchain_core.language_models import BaseChatModel
from langchain_core.runnables import Runnable
from langchain_openai import ChatOpenAI

from notes_quiz.errors import InputError, UpstreamError
from notes_quiz.schemas import QuizOptions, QuizPayload
from notes_quiz.services.json_recovery import recover_quiz
from notes_quiz.services.quiz_prompt import build_quiz_request
from notes_quiz.utils.config import Settings, settings
from notes_quiz.utils.file_processing import UploadedDocument, extract_texts
from notes_quiz.utils.text_processing import join_documents, truncate_for_llm

logger = logging.getLogger(__name__)


def _message_text(content) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: List[str] = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    return ""


class QuizService:
    def __init__(self, cfg: Settings = settings, llm: Optional[BaseChatModel] = None):
        self.settings = cfg
        self.llm = llm or ChatOpenAI(
            model=cfg.llm_model,
            api_key=cfg.openrouter_api_key,
            base_url=cfg.llm_base_url,
            temperature=cfg.llm_temperature,
            max_tokens=cfg.llm_max_tokens,
            timeout=cfg.llm_timeout_seconds,
            # retrying is left to the caller
            max_retries=0,
            default_headers={
                "HTTP-Referer": cfg.site_url,
                "X-Title": cfg.app_name,
            },
        )
        # Many models honour this hint; recover_quiz copes with those that don't
        self.chain: Runnable = self.llm.bind(response_format={"type": "json_object"})

    async def complete(self, notes: str, options: QuizOptions) -> str:
        """Send one quiz request to the provider and return the raw reply text"""
        request = build_quiz_request(notes, options)
        logger.info(
            f"Requesting {options.count}-question quiz from {self.settings.llm_model} "
            f"({len(notes)} characters of notes)"
        )
        try:
            response = await self.chain.ainvoke(request.to_messages())
        except openai.APIStatusError as e:
            body = e.response.text if e.response is not None else str(e)
            logger.error(f"LLM provider returned HTTP {e.status_code}: {body[:500]}")
            raise UpstreamError(f"LLM provider error: {body}", body=body)
        except openai.APIConnectionError as e:
            logger.error(f"LLM provider unreachable: {str(e)}")
            raise UpstreamError(f"LLM provider unreachable: {str(e)}")
        return _message_text(response.content)

    async def generate_quiz(self, notes: str, options: QuizOptions) -> QuizPayload:
        """Generate a quiz from already-bounded notes"""
        content = await self.complete(notes, options)
        quiz = recover_quiz(content, excerpt_chars=self.settings.raw_excerpt_chars)
        logger.info(f"Recovered quiz with {len(quiz.questions)} questions")
        return quiz

    async def generate_quiz_from_documents(
        self,
        documents: Sequence[UploadedDocument],
        options: QuizOptions,
    ) -> QuizPayload:
        """Full pipeline: extract, bound, prompt, recover"""
        if not documents:
            raise InputError("Please upload at least one file.")

        outcome = await extract_texts(documents, skip_failures=True, cfg=self.settings)
        failures = [{"filename": f.filename, "reason": f.reason} for f in outcome.failures]
        if failures:
            logger.warning(f"{len(failures)} of {len(documents)} uploads could not be read")

        notes = truncate_for_llm(join_documents(outcome.texts), self.settings.max_prompt_chars)
        if not notes:
            raise InputError("No readable text found in uploads.", failures=failures or None)

        return await self.generate_quiz(notes, options)
