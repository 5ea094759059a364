"""Prompt construction for chat replies and confidence classification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from ashaai.models import DEFAULT_LANGUAGE, ConversationTurn, Language, RetrievalResult, Topic
from ashaai.services.generation import ChatMessage

PERSONA = (
    "You are Asha AI, an empathetic and enthusiastic career companion for women, built for the "
    "JobsForHer Foundation platform. Your tone is warm, professional and encouraging."
)

STYLE_RULES = (
    "Guidelines:\n"
    "- Keep answers concise, practical and focused on actionable next steps.\n"
    "- Use accurate data and name the source when you quote a statistic.\n"
    "- Use emojis sparingly and naturally.\n"
    "- Reference earlier turns of the conversation when relevant.\n"
    "- If you are unsure about something, say \"I'm sorry, I don't have reliable info on that right now.\""
)

TOPIC_TEMPLATES: Mapping[Topic, str] = {
    Topic.CAREER: (
        "You are acting as a specialised career advisor. Give actionable advice on job search, "
        "applications, interviews, skills and career growth, helping women overcome barriers and "
        "connecting them with relevant opportunities."
    ),
    Topic.MENTORSHIP: (
        "You are acting as a mentorship programme specialist. Explain mentorship programmes, how to "
        "find and approach mentors, and how mentorship and networking support women's career development."
    ),
    Topic.GENERAL: (
        "Help the user explore career opportunities, mentorships, events and JobsForHer services, "
        "keeping the conversation focused on women's career development."
    ),
}

JSON_CONTRACT = (
    "Respond ONLY with a JSON object using exactly these fields:\n"
    "{\n"
    '  "acknowledgment": "one or two sentences acknowledging the user\'s message",\n'
    '  "guidance": ["short actionable point", "..."],\n'
    '  "contextualData": {\n'
    '    "statistics": [{"value": "statistic text", "source": "source name"}],\n'
    '    "resources": [{"text": "resource title", "url": "https://..."}]\n'
    "  },\n"
    '  "followUp": "a question or offer to continue the conversation"\n'
    "}\n"
    "Use empty lists when you have no statistics or resources. Do not wrap the JSON in markdown."
)

SENTIMENT_INSTRUCTIONS = (
    "You classify how confident a woman sounds about her career, based on one message. "
    "Respond ONLY with a JSON object with exactly these fields:\n"
    '{"confidenceLevel": "low" | "medium" | "high", '
    '"emotionTone": "anxious" | "neutral" | "confident", '
    '"supportLevel": "high-support" | "moderate-support" | "minimal-guidance"}'
)


@dataclass(frozen=True)
class Prompt:
    """System prompt plus the full message list sent to the provider."""

    system_prompt: str
    messages: Sequence[ChatMessage]


@dataclass(frozen=True)
class PromptBuilderConfig:
    """Configuration for prompt construction."""

    history_window: int = 5
    bullet: str = "-"


class PromptBuilder:
    """Builds prompts for the completion provider."""

    def __init__(self, config: PromptBuilderConfig | None = None) -> None:
        self._config = config or PromptBuilderConfig()

    def build(
        self,
        topic: Topic,
        language: Language,
        retrieval: RetrievalResult | None,
        history: Sequence[ConversationTurn],
        user_text: str,
    ) -> Prompt:
        system_prompt = self.build_system_prompt(topic, language, retrieval)
        messages: list[ChatMessage] = [{"role": "system", "content": system_prompt}]
        messages.extend({"role": turn.role, "content": turn.content} for turn in self.window(history))
        messages.append({"role": "user", "content": user_text})
        return Prompt(system_prompt=system_prompt, messages=messages)

    def build_system_prompt(self, topic: Topic, language: Language, retrieval: RetrievalResult | None) -> str:
        sections = [PERSONA, TOPIC_TEMPLATES[topic], STYLE_RULES, JSON_CONTRACT]
        context = self.build_context(retrieval)
        if context:
            sections.append(context)
        if language != DEFAULT_LANGUAGE:
            name = language.value.capitalize()
            sections.append(
                f"IMPORTANT: Respond in {name}. Every string value in the JSON must be written in "
                f"{name}, not English. Keep the JSON field names in English."
            )
        return "\n\n".join(sections)

    def build_context(self, retrieval: RetrievalResult | None) -> str:
        if retrieval is None or retrieval.is_empty:
            return ""
        bullet = self._config.bullet
        lines = ["Relevant contextual data you may cite:"]
        if retrieval.statistics:
            lines.append("Statistics:")
            lines.extend(f"{bullet} {stat.value} (Source: {stat.source})" for stat in retrieval.statistics)
        if retrieval.resources:
            lines.append("Resources:")
            lines.extend(f"{bullet} {res.text}: {res.url}" for res in retrieval.resources)
        return "\n".join(lines)

    def build_sentiment(self, user_text: str) -> Prompt:
        return Prompt(
            system_prompt=SENTIMENT_INSTRUCTIONS,
            messages=[
                {"role": "system", "content": SENTIMENT_INSTRUCTIONS},
                {"role": "user", "content": user_text},
            ],
        )

    def window(self, history: Sequence[ConversationTurn]) -> Sequence[ConversationTurn]:
        size = self._config.history_window
        if size <= 0:
            return []
        return list(history)[-size:]
