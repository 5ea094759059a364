"""Service layer orchestrations for Asha AI."""

from .generation import (
    CompletionConfig,
    CompletionError,
    CompletionProvider,
    MalformedResponseError,
    OpenAICompletionProvider,
    ProviderAuthError,
    ProviderNetworkError,
    ProviderTimeoutError,
    UnconfiguredCompletionProvider,
)
from .parsing import ParseFallback, ParseOk, ReplyFormatter, ResponseParser, StructuredReply
from .pipeline import PipelineConfig, ResponsePipeline
from .prompts import Prompt, PromptBuilder, PromptBuilderConfig
from .retry import retry_async
from .sentiment import SentimentAnalyzer, SentimentConfig

__all__ = [
    "CompletionConfig",
    "CompletionError",
    "CompletionProvider",
    "MalformedResponseError",
    "OpenAICompletionProvider",
    "ParseFallback",
    "ParseOk",
    "PipelineConfig",
    "Prompt",
    "PromptBuilder",
    "PromptBuilderConfig",
    "ProviderAuthError",
    "ProviderNetworkError",
    "ProviderTimeoutError",
    "ReplyFormatter",
    "ResponseParser",
    "ResponsePipeline",
    "SentimentAnalyzer",
    "SentimentConfig",
    "StructuredReply",
    "UnconfiguredCompletionProvider",
    "retry_async",
]
