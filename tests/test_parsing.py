from __future__ import annotations

import json

from ashaai.services.parsing import (
    ParseFallback,
    ParseOk,
    ReplyFormatter,
    ResponseParser,
    StructuredReply,
    emphasize_markdown,
)


def test_parses_canonical_reply():
    raw = json.dumps(
        {
            "acknowledgment": "Great question!",
            "guidance": ["Update your resume", "Practice interviews"],
            "contextualData": {
                "statistics": [{"value": "73% growth", "source": "Impact Report"}],
                "resources": [{"text": "Workshops", "url": "https://www.jobsforher.com/workshops"}],
            },
            "followUp": "Want tips on interviews?",
        }
    )
    outcome = ResponseParser().parse(raw)
    assert isinstance(outcome, ParseOk)
    text = ReplyFormatter().format(outcome)
    assert text == (
        "Great question!\n\n"
        "• Update your resume\n• Practice interviews\n\n"
        "📊 Key statistics:\n- 73% growth (Impact Report)\n\n"
        "🔗 Helpful resources:\n- Workshops: https://www.jobsforher.com/workshops\n\n"
        "Want tips on interviews?"
    )


def test_accepts_legacy_field_names_and_code_fences():
    raw = "```json\n" + json.dumps(
        {
            "understanding": "I hear you.",
            "keyPoints": "Start with one skill",
            "statistics": [{"value": "85% satisfied", "source": "Survey"}],
            "followUp": "Shall we continue?",
        }
    ) + "\n```"
    outcome = ResponseParser().parse(raw)
    assert isinstance(outcome, ParseOk)
    reply = outcome.reply
    assert reply.acknowledgment == "I hear you."
    assert reply.guidance == ["Start with one skill"]
    assert reply.contextual_data.statistics[0].value == "85% satisfied"


def test_empty_sections_are_omitted():
    reply = StructuredReply.model_validate(
        {"acknowledgment": "Hi", "guidance": [], "contextualData": {"statistics": [], "resources": []}, "followUp": "More?"}
    )
    text = ReplyFormatter().format_reply(reply)
    assert text == "Hi\n\nMore?"
    assert "📊" not in text and "🔗" not in text


def test_malformed_items_are_dropped():
    reply = StructuredReply.model_validate(
        {"acknowledgment": "Hi", "contextualData": {"resources": [{"text": "no url"}, "junk"]}}
    )
    assert reply.contextual_data.is_empty


def test_non_json_falls_back_to_raw_text():
    outcome = ResponseParser().parse("Sorry, here is plain text.")
    assert isinstance(outcome, ParseFallback)
    assert outcome.reason == "invalid_json"
    assert ReplyFormatter().format(outcome) == "Sorry, here is plain text."


def test_non_object_and_empty_replies_fall_back():
    assert ResponseParser().parse("[1, 2]").reason == "not_an_object"
    assert ResponseParser().parse('{"style": "warm"}').reason == "empty_reply"


def test_emphasize_markdown():
    text = "Tips:\n- **Network** often\n* read _widely_ and *daily*"
    assert emphasize_markdown(text) == (
        "Tips:\n• <strong>Network</strong> often\n• read <em>widely</em> and <em>daily</em>"
    )


def test_bad_optional_fields_keep_the_reply():
    raw = json.dumps(
        {
            "acknowledgment": "Great question!",
            "guidance": ["Build a portfolio"],
            "contextualData": {"statistics": [{"value": "73% growth", "source": None}, {"value": "2x pay", "source": 7}]},
            "followUp": "Anything else?",
            "style": {"tone": "warm"},
        }
    )
    outcome = ResponseParser().parse(raw)
    assert isinstance(outcome, ParseOk)
    assert outcome.reply.style is None
    assert [stat.source for stat in outcome.reply.contextual_data.statistics] == ["", ""]
    text = ReplyFormatter().format(outcome)
    assert "- 73% growth\n- 2x pay" in text
    assert "Anything else?" in text


def test_deeply_nested_json_falls_back_instead_of_raising():
    raw = "[" * 5000 + "]" * 5000
    outcome = ResponseParser().parse(raw)
    assert isinstance(outcome, ParseFallback)
    assert outcome.reason == "invalid_json"
