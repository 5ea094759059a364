from __future__ import annotations

from ashaai.config import Settings, get_settings


def test_defaults_chat_model_and_limits():
    settings = get_settings({})
    assert settings.chat_model == "gpt-4o"
    assert settings.chat_max_tokens == 800
    assert settings.history_window == 5


def test_retry_and_escalation_defaults():
    settings = get_settings({})
    assert settings.completion_attempts == 1
    assert settings.store_attempts == 3
    assert settings.failure_escalation_threshold == 3


def test_override_returns_fresh_instance():
    settings = get_settings({"chat_model": "gpt-4o-mini", "environment": "test"})
    assert settings.chat_model == "gpt-4o-mini"
    assert settings.is_test
    assert get_settings({}).chat_model == "gpt-4o"


def test_source_urls_accept_comma_separated_string():
    settings = Settings(retrieval_source_urls="https://a.example/{query}, https://b.example/stats")
    assert settings.retrieval_source_urls_tuple == ("https://a.example/{query}", "https://b.example/stats")


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("ASHAAI_REPEAT_WINDOW_SECONDS", "60")
    assert Settings().repeat_window_seconds == 60.0
