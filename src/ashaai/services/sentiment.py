"""Career confidence classification of user messages."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Literal, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ashaai.metrics.observability import PipelineMetrics, get_logger
from ashaai.models import DEFAULT_CONFIDENCE, ConfidenceAnalysis
from ashaai.services.generation import CompletionProvider
from ashaai.services.parsing import strip_code_fences
from ashaai.services.prompts import PromptBuilder

_TONE_SYNONYMS: Mapping[str, str] = {
    "negative": "anxious",
    "worried": "anxious",
    "nervous": "anxious",
    "positive": "confident",
    "optimistic": "confident",
}

_SUPPORT_SYNONYMS: Mapping[str, str] = {
    "high": "high-support",
    "moderate": "moderate-support",
    "medium": "moderate-support",
    "light-support": "minimal-guidance",
    "low-support": "minimal-guidance",
    "light": "minimal-guidance",
    "low": "minimal-guidance",
    "minimal": "minimal-guidance",
}


def _normalise(value: Any, synonyms: Mapping[str, str]) -> Any:
    if not isinstance(value, str):
        return value
    lowered = value.strip().lower().replace("_", "-").replace(" ", "-")
    return synonyms.get(lowered, lowered)


class ConfidencePayload(BaseModel):
    """Validated classifier output."""

    model_config = ConfigDict(extra="ignore")

    confidence_level: Literal["low", "medium", "high"] = Field(
        validation_alias=AliasChoices("confidenceLevel", "confidence_level"),
    )
    emotion_tone: Literal["anxious", "neutral", "confident"] = Field(
        validation_alias=AliasChoices("emotionTone", "emotion_tone"),
    )
    support_level: Literal["high-support", "moderate-support", "minimal-guidance"] = Field(
        validation_alias=AliasChoices("supportLevel", "support_level"),
    )

    @field_validator("confidence_level", mode="before")
    @classmethod
    def _lower_confidence(cls, value: Any) -> Any:
        return _normalise(value, {})

    @field_validator("emotion_tone", mode="before")
    @classmethod
    def _map_tone(cls, value: Any) -> Any:
        return _normalise(value, _TONE_SYNONYMS)

    @field_validator("support_level", mode="before")
    @classmethod
    def _map_support(cls, value: Any) -> Any:
        return _normalise(value, _SUPPORT_SYNONYMS)

    def to_analysis(self) -> ConfidenceAnalysis:
        return ConfidenceAnalysis(
            confidence_level=self.confidence_level,
            emotion_tone=self.emotion_tone,
            support_level=self.support_level,
        )


@dataclass(frozen=True)
class SentimentConfig:
    max_tokens: int = 150
    temperature: float = 0.2


class SentimentAnalyzer:
    """Classifies career confidence with a small completion call.

    Runs on every message, so any failure (timeout, provider error, bad JSON,
    unknown labels) resolves to the neutral default instead of raising.
    """

    def __init__(
        self,
        provider: CompletionProvider,
        config: SentimentConfig | None = None,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        self._provider = provider
        self._config = config or SentimentConfig()
        self._prompt_builder = prompt_builder or PromptBuilder()
        self._logger = get_logger("sentiment")

    async def analyze(self, user_text: str) -> ConfidenceAnalysis:
        if not user_text.strip():
            return DEFAULT_CONFIDENCE
        prompt = self._prompt_builder.build_sentiment(user_text)
        start = time.perf_counter()
        try:
            raw = await self._provider.complete(
                prompt.messages,
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
            )
            analysis = ConfidencePayload.model_validate(json.loads(strip_code_fences(raw))).to_analysis()
        except Exception as exc:
            self._logger.warning("sentiment.defaulted", error=str(exc), error_type=type(exc).__name__)
            return DEFAULT_CONFIDENCE
        finally:
            PipelineMetrics.observe_sentiment(time.perf_counter() - start)
        self._logger.info("sentiment.complete", **analysis.to_dict())
        return analysis


_SUPPORTIVE_PHRASES: Mapping[tuple[str, str], str] = {
    ("low", "anxious"): "I'm here to support you every step of the way.",
    ("low", "neutral"): "Let's explore these opportunities together.",
    ("medium", "anxious"): "You're on the right track; let's continue building momentum.",
    ("medium", "neutral"): "You're making progress; I'm here to help you advance further.",
    ("medium", "confident"): "Great momentum! Let's keep building on your strengths.",
    ("high", "neutral"): "Your confidence is inspiring; let's fine-tune your approach.",
    ("high", "confident"): "Your clarity and direction are excellent; let's optimize your strategy.",
}


def supportive_phrase(analysis: ConfidenceAnalysis) -> str:
    return _SUPPORTIVE_PHRASES.get(
        (analysis.confidence_level, analysis.emotion_tone),
        "I'm here to support your career journey.",
    )
