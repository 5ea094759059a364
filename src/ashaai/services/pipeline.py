"""Response pipeline orchestrating routing, retrieval, completion and parsing."""

from __future__ import annotations

import time
from dataclasses import dataclass

from ashaai.cache import TTLCache
from ashaai.metrics.observability import PipelineMetrics, TimedSection, get_logger
from ashaai.models import (
    ConfidenceAnalysis,
    Language,
    PipelineRequest,
    PipelineResult,
    RetrievalResult,
    Topic,
)
from ashaai.retrieval.service import Retriever
from ashaai.routing import IntentRouter, LanguageDetector
from ashaai.services.generation import (
    CompletionError,
    CompletionProvider,
    ProviderAuthError,
    ProviderNetworkError,
    ProviderTimeoutError,
)
from ashaai.services.parsing import ParseFallback, ReplyFormatter, ResponseParser
from ashaai.services.prompts import PromptBuilder, PromptBuilderConfig
from ashaai.services.retry import retry_async
from ashaai.services.sentiment import SentimentAnalyzer, supportive_phrase

APOLOGY_TEXT = (
    "🌟 I apologize, but I'm having trouble processing your request right now. "
    "Please try again in a moment! 💝"
)
AUTH_FAILURE_TEXT = (
    "I'm unable to reach my knowledge service because of a configuration problem on our side. "
    "Our team needs to fix this before I can answer; please try again later."
)
ESCALATION_TEXT = (
    "I'm still having trouble responding, which suggests an ongoing outage rather than a brief "
    "hiccup. If this keeps happening, please contact the JobsForHer support team so they can help."
)
REPEAT_TEXT = (
    "It looks like we already covered that a moment ago. {phrase} "
    "Is there a specific part you'd like me to go into in more detail?"
)


@dataclass(frozen=True)
class PipelineConfig:
    """Configuration for the response pipeline."""

    chat_max_tokens: int = 800
    chat_temperature: float = 0.7
    completion_attempts: int = 1
    retry_base_delay_seconds: float = 0.1
    failure_escalation_threshold: int = 3
    repeat_window_seconds: float = 300.0
    repeat_cache_size: int = 256
    retrieval_enabled: bool = True


class ResponsePipeline:
    """Turns a user message plus history into display text and a confidence analysis.

    Stages run strictly in order: language detection, topic routing, optional
    retrieval, prompt construction, completion, parsing, sentiment. Completion
    failures end in a templated reply; nothing after request validation raises.
    """

    def __init__(
        self,
        provider: CompletionProvider,
        sentiment: SentimentAnalyzer,
        retriever: Retriever | None = None,
        config: PipelineConfig | None = None,
        *,
        language_detector: LanguageDetector | None = None,
        router: IntentRouter | None = None,
        prompt_builder: PromptBuilder | None = None,
        parser: ResponseParser | None = None,
        formatter: ReplyFormatter | None = None,
        recent_queries: TTLCache[tuple[str, str], bool] | None = None,
    ) -> None:
        self._provider = provider
        self._sentiment = sentiment
        self._retriever = retriever
        self._config = config or PipelineConfig()
        self._language_detector = language_detector or LanguageDetector()
        self._router = router or IntentRouter()
        self._prompt_builder = prompt_builder or PromptBuilder(PromptBuilderConfig())
        self._parser = parser or ResponseParser()
        self._formatter = formatter or ReplyFormatter()
        if recent_queries is None:
            recent_queries = TTLCache(
                max_entries=self._config.repeat_cache_size,
                ttl_seconds=self._config.repeat_window_seconds,
            )
        self._recent_queries = recent_queries
        self._consecutive_failures = 0
        self._logger = get_logger("pipeline")
        self._complete = retry_async(
            max_attempts=self._config.completion_attempts,
            base_delay=self._config.retry_base_delay_seconds,
            retry_on=(ProviderTimeoutError, ProviderNetworkError),
        )(self._provider.complete)

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    def remember(self, request: PipelineRequest) -> None:
        """Mark the request as answered so an identical follow-up gets the repeat reply."""
        self._recent_queries.set(self._repeat_key(request), True)

    async def respond(self, request: PipelineRequest, *, remember: bool = True) -> PipelineResult:
        """Produce the reply for ``request``.

        With ``remember=False`` a successful answer is not recorded for repeat
        detection; the caller records it with :meth:`remember` once the reply is persisted.
        """
        start = time.perf_counter()
        user_text = request.user_text
        states = ["received"]

        language = request.language_override or self._language_detector.detect(user_text)
        states.append("language_detected")
        topic = self._router.route(user_text)
        states.append("intent_routed")

        if self._repeat_key(request) in self._recent_queries:
            confidence = await self._sentiment.analyze(user_text)
            text = REPEAT_TEXT.format(phrase=supportive_phrase(confidence))
            return self._finish(start, states + ["repeat_detected"], text, confidence, topic, language, "repeat")

        retrieval: RetrievalResult | None = None
        if self._retriever is not None and self._config.retrieval_enabled and self._router.needs_retrieval(user_text, topic):
            retrieval = await self._retriever.fetch(user_text)
            states.append("retrieval_fetched")
        else:
            states.append("retrieval_skipped")

        prompt = self._prompt_builder.build(topic, language, retrieval, request.session_history, user_text)
        states.append("prompt_built")

        states.append("completion_requested")
        try:
            with TimedSection(PipelineMetrics.observe_completion):
                raw = await self._complete(
                    prompt.messages,
                    max_tokens=self._config.chat_max_tokens,
                    temperature=self._config.chat_temperature,
                )
        except CompletionError as exc:
            self._consecutive_failures += 1
            PipelineMetrics.observe_provider_failure(exc.kind)
            self._logger.error(
                "completion.failed",
                kind=exc.kind,
                error=str(exc),
                consecutive_failures=self._consecutive_failures,
                topic=topic.value,
            )
            confidence = await self._sentiment.analyze(user_text)
            return self._finish(
                start,
                states + ["error_fallback"],
                self._failure_text(exc),
                confidence,
                topic,
                language,
                "error_fallback",
                retrieval=retrieval,
                error_kind=exc.kind,
            )
        self._consecutive_failures = 0
        if remember:
            self.remember(request)

        outcome = self._parser.parse(raw)
        fell_back = isinstance(outcome, ParseFallback)
        if fell_back:
            self._logger.warning("parse.fallback", reason=outcome.reason, raw_length=len(outcome.raw_text))
        states.append("parsed_fallback" if fell_back else "parsed_ok")
        text = self._formatter.format(outcome)

        states.append("sentiment_requested")
        confidence = await self._sentiment.analyze(user_text)
        states.append("sentiment_resolved")
        return self._finish(
            start,
            states,
            text,
            confidence,
            topic,
            language,
            "parse_fallback" if fell_back else "ok",
            retrieval=retrieval,
        )

    @staticmethod
    def _repeat_key(request: PipelineRequest) -> tuple[str, str]:
        return (request.session_id or "-", " ".join(request.user_text.lower().split()))

    def _failure_text(self, exc: CompletionError) -> str:
        if isinstance(exc, ProviderAuthError):
            return AUTH_FAILURE_TEXT
        if self._consecutive_failures >= self._config.failure_escalation_threshold:
            return ESCALATION_TEXT
        return APOLOGY_TEXT

    def _finish(
        self,
        start: float,
        states: list[str],
        text: str,
        confidence: ConfidenceAnalysis,
        topic: Topic,
        language: Language,
        outcome: str,
        *,
        retrieval: RetrievalResult | None = None,
        error_kind: str | None = None,
    ) -> PipelineResult:
        latency_ms = (time.perf_counter() - start) * 1000
        PipelineMetrics.observe_outcome(outcome)
        self._logger.info(
            "pipeline.returned",
            states=states + ["returned"],
            outcome=outcome,
            topic=topic.value,
            language=language.value,
            latency_ms=latency_ms,
        )
        return PipelineResult(
            text=text,
            confidence=confidence,
            topic=topic,
            language=language,
            outcome=outcome,  # type: ignore[arg-type]
            latency_ms=latency_ms,
            retrieval=retrieval,
            error_kind=error_kind,
        )
