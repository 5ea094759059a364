from __future__ import annotations

import asyncio

import pytest

from ashaai.models import DEFAULT_CONFIDENCE, ConfidenceAnalysis
from ashaai.services.generation import ProviderTimeoutError
from ashaai.services.sentiment import SentimentAnalyzer, supportive_phrase


class StubProvider:
    def __init__(self, reply: str | None = None, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls = 0

    async def complete(self, messages, *, max_tokens, temperature):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.reply


def test_valid_classification():
    provider = StubProvider('{"confidenceLevel": "high", "emotionTone": "confident", "supportLevel": "minimal-guidance"}')
    analysis = asyncio.run(SentimentAnalyzer(provider).analyze("I just got promoted!"))
    assert analysis == ConfidenceAnalysis("high", "confident", "minimal-guidance")


def test_synonyms_are_normalised():
    provider = StubProvider('{"confidenceLevel": "LOW", "emotionTone": "negative", "supportLevel": "light-support"}')
    analysis = asyncio.run(SentimentAnalyzer(provider).analyze("I am worried"))
    assert analysis == ConfidenceAnalysis("low", "anxious", "minimal-guidance")


@pytest.mark.parametrize(
    "provider",
    [
        StubProvider(error=ProviderTimeoutError("slow")),
        StubProvider(error=RuntimeError("unexpected")),
        StubProvider("not json"),
        StubProvider('{"confidenceLevel": "ecstatic", "emotionTone": "neutral", "supportLevel": "high"}'),
    ],
)
def test_failures_resolve_to_default(provider):
    analysis = asyncio.run(SentimentAnalyzer(provider).analyze("hello"))
    assert analysis == DEFAULT_CONFIDENCE
    assert analysis.to_dict() == {
        "confidenceLevel": "medium",
        "emotionTone": "neutral",
        "supportLevel": "moderate-support",
    }


def test_blank_text_skips_provider():
    provider = StubProvider("{}")
    assert asyncio.run(SentimentAnalyzer(provider).analyze("   ")) == DEFAULT_CONFIDENCE
    assert provider.calls == 0


def test_supportive_phrase_lookup():
    assert supportive_phrase(ConfidenceAnalysis("low", "anxious")) == "I'm here to support you every step of the way."
    assert supportive_phrase(ConfidenceAnalysis("low", "confident")) == "I'm here to support your career journey."
