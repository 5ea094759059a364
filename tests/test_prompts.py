from __future__ import annotations

from ashaai.models import ConversationTurn, Language, Resource, RetrievalResult, Statistic, Topic
from ashaai.services.prompts import JSON_CONTRACT, TOPIC_TEMPLATES, PromptBuilder, PromptBuilderConfig


def _history(count: int) -> list[ConversationTurn]:
    return [
        ConversationTurn(id=i, role="user" if i % 2 else "assistant", content=f"turn {i}", session_id="s")
        for i in range(1, count + 1)
    ]


def test_messages_keep_last_window_in_order():
    builder = PromptBuilder(PromptBuilderConfig(history_window=3))
    prompt = builder.build(Topic.CAREER, Language.ENGLISH, None, _history(6), "next question")
    assert prompt.messages[0] == {"role": "system", "content": prompt.system_prompt}
    assert [m["content"] for m in prompt.messages[1:]] == ["turn 4", "turn 5", "turn 6", "next question"]
    assert prompt.messages[-1]["role"] == "user"


def test_system_prompt_contains_topic_template_and_contract():
    prompt = PromptBuilder().build(Topic.MENTORSHIP, Language.ENGLISH, None, [], "hi")
    assert TOPIC_TEMPLATES[Topic.MENTORSHIP] in prompt.system_prompt
    assert JSON_CONTRACT in prompt.system_prompt
    assert "Respond in" not in prompt.system_prompt
    assert "Relevant contextual data" not in prompt.system_prompt


def test_retrieval_block_and_language_directive():
    retrieval = RetrievalResult(
        statistics=(Statistic("73% growth", "Impact Report"),),
        resources=(Resource("Mentorship Program", "https://www.jobsforher.com/mentorship"),),
    )
    prompt = PromptBuilder().build(Topic.CAREER, Language.HINDI, retrieval, [], "नौकरी")
    assert "- 73% growth (Source: Impact Report)" in prompt.system_prompt
    assert "- Mentorship Program: https://www.jobsforher.com/mentorship" in prompt.system_prompt
    assert "Respond in Hindi" in prompt.system_prompt


def test_empty_retrieval_adds_no_block():
    prompt = PromptBuilder().build(Topic.CAREER, Language.ENGLISH, RetrievalResult(), [], "hi")
    assert "Relevant contextual data" not in prompt.system_prompt


def test_sentiment_prompt_has_only_user_text():
    prompt = PromptBuilder().build_sentiment("I feel lost")
    assert [m["role"] for m in prompt.messages] == ["system", "user"]
    assert prompt.messages[1]["content"] == "I feel lost"
