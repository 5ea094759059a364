"""Chat completion backends for Asha AI."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence

import openai
from openai import AsyncOpenAI

from ashaai.metrics.observability import get_logger

ChatMessage = Mapping[str, str]


class CompletionError(RuntimeError):
    """Base class for completion failures; ``kind`` classifies the failure."""

    kind = "unknown"


class ProviderTimeoutError(CompletionError):
    """The provider did not answer before the deadline."""

    kind = "timeout"


class ProviderAuthError(CompletionError):
    """Credentials are missing, invalid or lack permission."""

    kind = "auth"


class ProviderNetworkError(CompletionError):
    """Transport failure, rate limiting or a provider-side outage."""

    kind = "network"


class MalformedResponseError(CompletionError):
    """The provider answered but the payload is unusable."""

    kind = "malformed"


@dataclass(frozen=True)
class CompletionConfig:
    """Configuration for a completion provider."""

    model: str = "gpt-4o"
    timeout_seconds: float = 10.0
    json_mode: bool = True


class CompletionProvider(Protocol):
    """Protocol describing chat completion behaviour."""

    async def complete(self, messages: Sequence[ChatMessage], *, max_tokens: int, temperature: float) -> str:
        """Return the assistant message content or raise :class:`CompletionError`."""


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


class OpenAICompletionProvider:
    """Calls an OpenAI-compatible chat completions API under a hard deadline.

    Failures are classified into the :class:`CompletionError` hierarchy. There is no
    retry here; callers decide whether a failure is worth another attempt.
    """

    def __init__(self, client: AsyncOpenAI, config: CompletionConfig | None = None) -> None:
        self._client = client
        self._config = config or CompletionConfig()
        self._logger = get_logger("completion")

    @property
    def config(self) -> CompletionConfig:
        return self._config

    async def complete(self, messages: Sequence[ChatMessage], *, max_tokens: int, temperature: float) -> str:
        request: dict[str, Any] = {
            "model": self._config.model,
            "messages": [dict(message) for message in messages],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if self._config.json_mode:
            request["response_format"] = {"type": "json_object"}
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(**request),
                timeout=self._config.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise ProviderTimeoutError(
                f"{self._config.model} did not respond within {self._config.timeout_seconds}s"
            ) from exc
        except openai.APITimeoutError as exc:
            raise ProviderTimeoutError(str(exc)) from exc
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            raise ProviderAuthError(str(exc)) from exc
        except (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError) as exc:
            raise ProviderNetworkError(str(exc)) from exc
        except openai.APIError as exc:
            raise MalformedResponseError(str(exc)) from exc
        return self.extract_content(response)

    @staticmethod
    def extract_content(response: Any) -> str:
        choices = _field(response, "choices")
        if not choices:
            raise MalformedResponseError("completion response has no choices")
        message = _field(choices[0], "message")
        content = _field(message, "content") if message is not None else None
        if not isinstance(content, str) or not content.strip():
            raise MalformedResponseError("completion response has empty content")
        return content


class UnconfiguredCompletionProvider:
    """Stand-in used when no API key is configured; every call is an auth failure."""

    def __init__(self, reason: str = "no API key configured for the completion provider") -> None:
        self._reason = reason

    async def complete(self, messages: Sequence[ChatMessage], *, max_tokens: int, temperature: float) -> str:
        raise ProviderAuthError(self._reason)


def build_openai_client(*, api_key: str, base_url: str | None = None, timeout_seconds: float = 10.0) -> AsyncOpenAI:
    # SDK-level retries are disabled; retry policy lives in the pipeline.
    return AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout_seconds, max_retries=0)
