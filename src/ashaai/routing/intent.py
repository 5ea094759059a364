"""Keyword-based topic routing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ashaai.models import Topic


@dataclass(frozen=True)
class RoutingRule:
    """Routes to ``topic`` when any keyword occurs in the message."""

    topic: Topic
    keywords: tuple[str, ...]

    def matches(self, lowered: str) -> bool:
        return any(keyword in lowered for keyword in self.keywords)


# Evaluated in order; the first matching rule wins. Keyword sets overlap
# ("help" vs. "resume for a job"), so career must stay ahead of mentorship.
ROUTING_RULES: tuple[RoutingRule, ...] = (
    RoutingRule(
        Topic.CAREER,
        (
            "job",
            "career",
            "work",
            "employment",
            "salary",
            "pay",
            "interview",
            "resume",
            "cv",
            "application",
            "apply",
            "position",
            "opportunity",
            "skill",
            "procedure",
            "experience",
            "qualification",
            "hire",
            "employer",
            "tech",
            "industry",
        ),
    ),
    RoutingRule(
        Topic.MENTORSHIP,
        (
            "mentor",
            "mentorship",
            "guidance",
            "coach",
            "advisor",
            "support",
            "help",
            "network",
            "connection",
            "grow",
            "advice",
            "learn",
        ),
    ),
)

FACT_KEYWORDS: tuple[str, ...] = (
    "statistics",
    "data",
    "report",
    "research",
    "numbers",
    "study",
    "survey",
    "percentage",
    "rate",
    "trend",
    "analysis",
    "findings",
    "results",
    "how many",
    "what is the",
    "tell me about",
    "show me",
    "find",
    "search",
)

RETRIEVAL_TOPICS: frozenset[Topic] = frozenset({Topic.CAREER, Topic.MENTORSHIP})


class IntentRouter:
    """Classifies messages into a :class:`Topic` using ordered keyword rules."""

    def __init__(
        self,
        rules: Sequence[RoutingRule] = ROUTING_RULES,
        fact_keywords: Sequence[str] = FACT_KEYWORDS,
        retrieval_topics: frozenset[Topic] = RETRIEVAL_TOPICS,
        default: Topic = Topic.GENERAL,
    ) -> None:
        self._rules = tuple(rules)
        self._fact_keywords = tuple(fact_keywords)
        self._retrieval_topics = retrieval_topics
        self._default = default

    @property
    def rules(self) -> tuple[RoutingRule, ...]:
        return self._rules

    def route(self, text: str) -> Topic:
        lowered = text.lower()
        for rule in self._rules:
            if rule.matches(lowered):
                return rule.topic
        return self._default

    def is_fact_seeking(self, text: str) -> bool:
        lowered = text.lower()
        return any(keyword in lowered for keyword in self._fact_keywords)

    def needs_retrieval(self, text: str, topic: Topic) -> bool:
        """Whether grounding statistics are worth fetching for this message."""
        return topic in self._retrieval_topics or self.is_fact_seeking(text)
