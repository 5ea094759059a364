"""End-to-end tests for the response pipeline with stubbed collaborators."""

from __future__ import annotations

import asyncio
import json
import time
from types import SimpleNamespace

from ashaai.models import DEFAULT_CONFIDENCE, Language, PipelineRequest, RetrievalResult, Statistic, Topic
from ashaai.services.generation import (
    CompletionConfig,
    OpenAICompletionProvider,
    ProviderAuthError,
    ProviderNetworkError,
)
from ashaai.services.pipeline import (
    APOLOGY_TEXT,
    AUTH_FAILURE_TEXT,
    ESCALATION_TEXT,
    PipelineConfig,
    ResponsePipeline,
)
from ashaai.services.sentiment import SentimentAnalyzer

SENTIMENT_JSON = '{"confidenceLevel": "low", "emotionTone": "anxious", "supportLevel": "high-support"}'

REPLY_JSON = json.dumps(
    {
        "acknowledgment": "Applying for software roles is exciting!",
        "guidance": ["Tailor your resume", "Practice coding interviews"],
        "contextualData": {"statistics": [], "resources": []},
        "followUp": "Would you like interview practice questions?",
    }
)


class StubProvider:
    def __init__(self, *replies) -> None:
        self.replies = list(replies)
        self.calls = 0
        self.messages = []

    async def complete(self, messages, *, max_tokens, temperature):
        self.calls += 1
        self.messages.append(list(messages))
        reply = self.replies[min(self.calls, len(self.replies)) - 1]
        if isinstance(reply, Exception):
            raise reply
        return reply


class StubRetriever:
    def __init__(self) -> None:
        self.queries: list[str] = []

    async def fetch(self, query: str) -> RetrievalResult:
        self.queries.append(query)
        return RetrievalResult(statistics=(Statistic("73% growth", "Impact Report"),))


def build_pipeline(chat, *, retriever=None, config=None) -> ResponsePipeline:
    sentiment = SentimentAnalyzer(StubProvider(SENTIMENT_JSON))
    return ResponsePipeline(chat, sentiment, retriever or StubRetriever(), config)


def respond(pipeline: ResponsePipeline, text: str, session_id: str = "s1"):
    return asyncio.run(pipeline.respond(PipelineRequest(user_text=text, session_id=session_id)))


def test_career_question_end_to_end():
    chat = StubProvider(REPLY_JSON)
    retriever = StubRetriever()
    pipeline = build_pipeline(chat, retriever=retriever)

    result = respond(pipeline, "How do I apply for a software engineering job?")

    assert result.topic is Topic.CAREER
    assert retriever.queries == ["How do I apply for a software engineering job?"]
    assert result.outcome == "ok"
    assert "Would you like interview practice questions?" in result.text
    assert "• Tailor your resume" in result.text
    assert result.confidence.to_dict() == {
        "confidenceLevel": "low",
        "emotionTone": "anxious",
        "supportLevel": "high-support",
    }
    assert "73% growth (Source: Impact Report)" in chat.messages[0][0]["content"]


def test_repeat_within_window_skips_provider():
    chat = StubProvider(REPLY_JSON)
    pipeline = build_pipeline(chat)

    first = respond(pipeline, "How do I apply for a software engineering job?")
    second = respond(pipeline, "how do I apply for a   software engineering job?")

    assert chat.calls == 1
    assert first.outcome == "ok"
    assert second.outcome == "repeat"
    assert "already covered that" in second.text


def test_repeat_is_per_session():
    chat = StubProvider(REPLY_JSON)
    pipeline = build_pipeline(chat)
    respond(pipeline, "Tell me about mentors", session_id="a")
    respond(pipeline, "Tell me about mentors", session_id="b")
    assert chat.calls == 2


def test_timeout_returns_apology_within_deadline():
    async def never_answers(**request):
        await asyncio.sleep(5)

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=never_answers)))
    chat = OpenAICompletionProvider(client, CompletionConfig(timeout_seconds=0.1))
    pipeline = build_pipeline(chat)

    started = time.perf_counter()
    result = respond(pipeline, "How do I apply for a software engineering job?")
    elapsed = time.perf_counter() - started

    assert elapsed < 0.1 + 1.0
    assert result.text == APOLOGY_TEXT
    assert result.outcome == "error_fallback"
    assert result.error_kind == "timeout"
    assert result.confidence.confidence_level == "low"


def test_malformed_completion_shows_raw_text():
    chat = StubProvider("Here are some ideas for you without any JSON.")
    pipeline = build_pipeline(chat)
    result = respond(pipeline, "Hello there!")
    assert result.outcome == "parse_fallback"
    assert result.text == "Here are some ideas for you without any JSON."


def test_failed_completion_is_not_remembered_as_repeat():
    chat = StubProvider(ProviderNetworkError("down"), REPLY_JSON)
    pipeline = build_pipeline(chat)
    first = respond(pipeline, "Hello there!")
    second = respond(pipeline, "Hello there!")
    assert first.outcome == "error_fallback"
    assert second.outcome == "ok"
    assert chat.calls == 2


def test_escalates_after_consecutive_failures_and_resets():
    chat = StubProvider(
        ProviderNetworkError("down"),
        ProviderNetworkError("down"),
        ProviderNetworkError("down"),
        REPLY_JSON,
    )
    pipeline = build_pipeline(chat)
    texts = [respond(pipeline, f"question {i}").text for i in range(3)]
    assert texts[:2] == [APOLOGY_TEXT, APOLOGY_TEXT]
    assert texts[2] == ESCALATION_TEXT
    assert "JobsForHer support team" in texts[2]
    assert respond(pipeline, "question 4").outcome == "ok"
    assert pipeline.consecutive_failures == 0


def test_auth_failure_uses_configuration_message():
    pipeline = build_pipeline(StubProvider(ProviderAuthError("bad key")))
    result = respond(pipeline, "Hello there!")
    assert result.text == AUTH_FAILURE_TEXT
    assert result.error_kind == "auth"


def test_network_errors_retried_when_configured():
    chat = StubProvider(ProviderNetworkError("blip"), REPLY_JSON)
    pipeline = build_pipeline(chat, config=PipelineConfig(completion_attempts=2, retry_base_delay_seconds=0.0))
    result = respond(pipeline, "Hello there!")
    assert result.outcome == "ok"
    assert chat.calls == 2


def test_general_chat_skips_retrieval_and_honours_language_override():
    chat = StubProvider(REPLY_JSON)
    retriever = StubRetriever()
    pipeline = build_pipeline(chat, retriever=retriever)
    result = asyncio.run(
        pipeline.respond(PipelineRequest(user_text="Hello there!", language_override=Language.TAMIL)),
    )
    assert retriever.queries == []
    assert result.language is Language.TAMIL
    assert "Respond in Tamil" in chat.messages[0][0]["content"]


def test_sentiment_failure_never_breaks_reply():
    sentiment = SentimentAnalyzer(StubProvider(ProviderNetworkError("down")))
    pipeline = ResponsePipeline(StubProvider(REPLY_JSON), sentiment, StubRetriever())
    result = respond(pipeline, "Hello there!")
    assert result.outcome == "ok"
    assert result.confidence == DEFAULT_CONFIDENCE


def test_deeply_nested_completion_degrades_to_raw_text():
    raw = "[" * 5000 + "]" * 5000
    pipeline = build_pipeline(StubProvider(raw))
    result = respond(pipeline, "Hello there!")
    assert result.outcome == "parse_fallback"
    assert result.text == raw
