"""Observability helpers for Asha AI."""

from __future__ import annotations

import logging
import time
from contextvars import ContextVar

import structlog
from prometheus_client import Counter, Histogram

_logger_configured = False
_correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")


def configure_logging(level: int | str = logging.INFO) -> None:
    global _logger_configured  # noqa: PLW0603 - module-level guard
    if _logger_configured:
        return
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _logger_configured = True


def bind_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    structlog.contextvars.clear_contextvars()
    _correlation_id_var.set("-")


def get_correlation_id() -> str:
    return _correlation_id_var.get()


def get_logger(name: str = "ashaai") -> structlog.BoundLogger:
    configure_logging()
    return structlog.get_logger(name)


class PipelineMetrics:
    """Prometheus metrics for pipeline stages."""

    retrieval_latency = Histogram(
        "ashaai_retrieval_duration_seconds",
        "Time spent gathering statistics and resources.",
        buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 15.0),
    )
    retrieval_cache_hits = Counter(
        "ashaai_retrieval_cache_hits_total",
        "Retrieval requests answered from the cache.",
    )
    retrieval_source_failures = Counter(
        "ashaai_retrieval_source_failures_total",
        "Live data source calls that failed or timed out.",
        ["source"],
    )
    completion_latency = Histogram(
        "ashaai_completion_duration_seconds",
        "Time spent waiting for chat completions.",
        buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 15.0),
    )
    sentiment_latency = Histogram(
        "ashaai_sentiment_duration_seconds",
        "Time spent classifying career confidence.",
        buckets=(0.05, 0.1, 0.5, 1.0, 2.0, 5.0),
    )
    provider_failures = Counter(
        "ashaai_provider_failures_total",
        "Completion provider failures by classification.",
        ["kind"],
    )
    pipeline_outcomes = Counter(
        "ashaai_pipeline_outcomes_total",
        "Pipeline invocations by terminal outcome.",
        ["outcome"],
    )

    @classmethod
    def observe_retrieval(cls, duration_seconds: float, *, from_cache: bool) -> None:
        if from_cache:
            cls.retrieval_cache_hits.inc()
            return
        cls.retrieval_latency.observe(duration_seconds)

    @classmethod
    def observe_source_failure(cls, source: str) -> None:
        cls.retrieval_source_failures.labels(source=source).inc()

    @classmethod
    def observe_completion(cls, duration_seconds: float) -> None:
        cls.completion_latency.observe(duration_seconds)

    @classmethod
    def observe_sentiment(cls, duration_seconds: float) -> None:
        cls.sentiment_latency.observe(duration_seconds)

    @classmethod
    def observe_provider_failure(cls, kind: str) -> None:
        cls.provider_failures.labels(kind=kind).inc()

    @classmethod
    def observe_outcome(cls, outcome: str) -> None:
        cls.pipeline_outcomes.labels(outcome=outcome).inc()


class TimedSection:
    """Context manager capturing elapsed time for metrics."""

    def __init__(self, callback) -> None:
        self._callback = callback
        self._start = 0.0
        self.elapsed = 0.0

    def __enter__(self) -> "TimedSection":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        self.elapsed = time.perf_counter() - self._start
        self._callback(self.elapsed)


__all__ = [
    "PipelineMetrics",
    "TimedSection",
    "bind_correlation_id",
    "clear_correlation_id",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
]
