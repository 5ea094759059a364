"""Shared domain models used across the Asha AI pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Sequence


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Language(str, Enum):
    """Languages the assistant can answer in."""

    ENGLISH = "english"
    HINDI = "hindi"
    TAMIL = "tamil"
    TELUGU = "telugu"
    KANNADA = "kannada"
    BENGALI = "bengali"


DEFAULT_LANGUAGE = Language.ENGLISH


class Topic(str, Enum):
    """Coarse category used to pick a prompt template."""

    CAREER = "career"
    MENTORSHIP = "mentorship"
    GENERAL = "general"


Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class ConversationTurn:
    """A single stored message within a session."""

    id: int
    role: Role
    content: str
    session_id: str
    timestamp: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Statistic:
    value: str
    source: str


@dataclass(frozen=True)
class Resource:
    text: str
    url: str


@dataclass(frozen=True)
class RetrievalMetrics:
    """Bookkeeping about how a retrieval result was produced."""

    sources_attempted: int = 0
    sources_succeeded: int = 0
    elapsed_ms: float = 0.0
    used_fallback: bool = False


@dataclass(frozen=True)
class RetrievalResult:
    """Statistics and resources used to ground a reply."""

    statistics: Sequence[Statistic] = ()
    resources: Sequence[Resource] = ()
    fetched_at: datetime = field(default_factory=utcnow)
    metrics: RetrievalMetrics | None = None

    @property
    def is_empty(self) -> bool:
        return not self.statistics and not self.resources


ConfidenceLevel = Literal["low", "medium", "high"]
EmotionTone = Literal["anxious", "neutral", "confident"]
SupportLevel = Literal["high-support", "moderate-support", "minimal-guidance"]


@dataclass(frozen=True)
class ConfidenceAnalysis:
    """Career confidence classification attached to every reply."""

    confidence_level: ConfidenceLevel = "medium"
    emotion_tone: EmotionTone = "neutral"
    support_level: SupportLevel = "moderate-support"

    def to_dict(self) -> dict[str, str]:
        return {
            "confidenceLevel": self.confidence_level,
            "emotionTone": self.emotion_tone,
            "supportLevel": self.support_level,
        }


DEFAULT_CONFIDENCE = ConfidenceAnalysis()


@dataclass(frozen=True)
class PipelineRequest:
    """Input for a single pipeline invocation."""

    user_text: str
    session_history: Sequence[ConversationTurn] = ()
    session_id: str | None = None
    language_override: Language | None = None


Outcome = Literal["ok", "parse_fallback", "error_fallback", "repeat"]


@dataclass(frozen=True)
class PipelineResult:
    """Formatted reply plus the confidence analysis for the UI."""

    text: str
    confidence: ConfidenceAnalysis
    topic: Topic
    language: Language
    outcome: Outcome
    latency_ms: float
    retrieval: RetrievalResult | None = None
    error_kind: str | None = None
