from __future__ import annotations

import pytest

from ashaai.models import Language, Topic
from ashaai.routing import IntentRouter, LanguageDetector, RoutingRule, detect_language


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("मुझे नौकरी चाहिए", Language.HINDI),
        ("எனக்கு வேலை வேண்டும்", Language.TAMIL),
        ("నాకు ఉద్యోగం కావాలి", Language.TELUGU),
        ("ನನಗೆ ಕೆಲಸ ಬೇಕು", Language.KANNADA),
        ("আমার একটি চাকরি দরকার", Language.BENGALI),
        ("I need a job", Language.ENGLISH),
        ("", Language.ENGLISH),
    ],
)
def test_detect_language_by_script(text, expected):
    assert detect_language(text) is expected


def test_mixed_script_uses_table_order():
    assert detect_language("job नौकरी வேலை") is Language.HINDI


def test_detector_default_is_configurable():
    detector = LanguageDetector(ranges=(), default=Language.HINDI)
    assert detector.detect("anything") is Language.HINDI


def test_career_keywords_take_precedence_over_mentorship():
    router = IntentRouter()
    assert router.route("I need help with my resume for a job") is Topic.CAREER


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("How do I apply for a software engineering job?", Topic.CAREER),
        ("Can you find me a mentor?", Topic.MENTORSHIP),
        ("Hello there!", Topic.GENERAL),
    ],
)
def test_route_topics(text, expected):
    assert IntentRouter().route(text) is expected


def test_needs_retrieval_for_fact_questions_on_general_topic():
    router = IntentRouter()
    assert router.needs_retrieval("Show me some numbers", Topic.GENERAL)
    assert not router.needs_retrieval("Hello there!", Topic.GENERAL)
    assert router.needs_retrieval("anything", Topic.MENTORSHIP)


def test_rules_are_injectable():
    router = IntentRouter(rules=(RoutingRule(Topic.MENTORSHIP, ("job",)),))
    assert router.route("job please") is Topic.MENTORSHIP
