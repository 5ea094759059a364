"""Runtime configuration for the Asha AI services."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed configuration model."""

    model_config = SettingsConfigDict(env_prefix="ashaai_", env_file=".env", case_sensitive=False)

    environment: Literal["dev", "test", "prod"] = "dev"
    log_level: str = "INFO"

    # Hosted LLM (any OpenAI-compatible endpoint)
    llm_api_key: str | None = None
    llm_base_url: str | None = None
    chat_model: str = "gpt-4o"
    chat_max_tokens: int = 800
    chat_temperature: float = 0.7
    chat_timeout_seconds: float = 10.0

    # Career confidence classification runs on every message; keep it short
    sentiment_model: str = "gpt-4o"
    sentiment_max_tokens: int = 150
    sentiment_temperature: float = 0.2
    sentiment_timeout_seconds: float = 5.0

    # Conversation handling
    history_window: int = 5
    repeat_window_seconds: float = 300.0
    repeat_cache_size: int = 256
    failure_escalation_threshold: int = 3

    # Retry policy
    completion_attempts: int = 1
    store_attempts: int = 3
    retry_base_delay_seconds: float = 0.1

    # Retrieval augmentation
    retrieval_enabled: bool = True
    retrieval_live_sources: bool = True
    retrieval_source_urls: tuple[str, ...] | str = ()
    retrieval_cache_ttl_seconds: float = 3600.0
    retrieval_cache_size: int = 512
    retrieval_source_timeout_seconds: float = 5.0
    retrieval_global_timeout_seconds: float = 15.0
    retrieval_max_items: int = 5

    # CORS
    cors_allow_origins: tuple[str, ...] = ()  # e.g., ("*") to allow all
    cors_allow_credentials: bool = False
    cors_allow_methods: tuple[str, ...] = ("GET", "POST", "DELETE", "OPTIONS")
    cors_allow_headers: tuple[str, ...] = ("*",)

    @property
    def is_test(self) -> bool:
        return self.environment == "test"

    @property
    def retrieval_source_urls_tuple(self) -> tuple[str, ...]:
        value = self.retrieval_source_urls
        if isinstance(value, tuple):
            return value
        if isinstance(value, str):
            return tuple(p.strip() for p in value.split(",") if p.strip())
        return ()


@lru_cache(maxsize=1)
def _cached_settings() -> Settings:
    return Settings()


def get_settings(override: Optional[dict[str, object]] = None) -> Settings:
    """Return settings, optionally overriding values without mutating cache."""

    if override:
        return Settings(**override)
    return _cached_settings()
