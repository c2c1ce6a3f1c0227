import asyncio
import json

import httpx
import openai
import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.runnables import RunnableLambda

from notes_quiz.errors import InputError, RecoveryError, UpstreamError
from notes_quiz.schemas import QuizOptions
from notes_quiz.services.quiz_service import QuizService

from conftest import VALID_QUIZ


def service_with_replies(cfg, *replies):
    return QuizService(cfg, llm=FakeListChatModel(responses=list(replies)))


def service_raising(cfg, exc):
    service = service_with_replies(cfg, "unused")

    async def fail(messages):
        raise exc

    service.chain = RunnableLambda(fail)
    return service


def test_default_llm_settings(cfg):
    service = QuizService(cfg)
    assert service.llm.model_name == "openai/gpt-4o-mini"
    assert service.llm.temperature == 0.2
    assert service.llm.max_tokens == 4000
    assert service.llm.max_retries == 0
    assert service.chain.kwargs == {"response_format": {"type": "json_object"}}


def test_generate_quiz_recovers_fenced_reply(cfg):
    reply = "Sure! ```json\n" + json.dumps(VALID_QUIZ) + "\n```"
    quiz = asyncio.run(service_with_replies(cfg, reply).generate_quiz("notes", QuizOptions(count=3)))
    assert quiz.meta.question_count == 3
    assert [q.type for q in quiz.questions] == ["mcq", "true_false", "short_answer"]


def test_unusable_reply_raises_recovery_error(cfg):
    with pytest.raises(RecoveryError) as exc:
        asyncio.run(service_with_replies(cfg, "sorry, I can't help").generate_quiz("notes", QuizOptions()))
    assert exc.value.raw == "sorry, I can't help"


def test_provider_http_error_becomes_upstream_error(cfg):
    response = httpx.Response(
        429,
        text='{"error": "rate limited"}',
        request=httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions"),
    )
    exc = openai.APIStatusError("rate limited", response=response, body=None)

    with pytest.raises(UpstreamError) as err:
        asyncio.run(service_raising(cfg, exc).generate_quiz("notes", QuizOptions()))
    assert err.value.body == '{"error": "rate limited"}'
    assert "rate limited" in err.value.message
    assert err.value.status_code == 502


def test_provider_unreachable_becomes_upstream_error(cfg):
    exc = openai.APIConnectionError(request=httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions"))
    with pytest.raises(UpstreamError):
        asyncio.run(service_raising(cfg, exc).generate_quiz("notes", QuizOptions()))


def test_pipeline_requires_documents(cfg):
    with pytest.raises(InputError) as exc:
        asyncio.run(service_with_replies(cfg, "{}").generate_quiz_from_documents([], QuizOptions()))
    assert exc.value.message == "Please upload at least one file."


def test_pipeline_reports_unreadable_uploads(cfg, text_doc):
    with pytest.raises(InputError) as exc:
        asyncio.run(service_with_replies(cfg, "{}").generate_quiz_from_documents([text_doc("  \n ")], QuizOptions()))
    assert exc.value.message == "No readable text found in uploads."


def test_pipeline_end_to_end(cfg, text_doc):
    service = service_with_replies(cfg, json.dumps(VALID_QUIZ))
    quiz = asyncio.run(service.generate_quiz_from_documents(
        [text_doc("Evaporation and condensation", "a.txt"), text_doc("Precipitation", "b.txt")],
        QuizOptions(count=3),
    ))
    assert len(quiz.questions) == 3
