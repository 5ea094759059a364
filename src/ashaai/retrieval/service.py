"""Retrieval augmentation: live statistics with a cached, static fallback."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Protocol, Sequence

import httpx

from ashaai.cache import TTLCache
from ashaai.metrics.observability import PipelineMetrics, get_logger
from ashaai.models import Resource, RetrievalMetrics, RetrievalResult, Statistic
from ashaai.retrieval.sources import DataSource, SourcePayload

FALLBACK_STATISTICS: tuple[Statistic, ...] = (
    Statistic(
        value="73% of women reported career growth after mentorship",
        source="JobsForHer Impact Report 2025",
    ),
    Statistic(
        value="Over 500,000 women professionals connected on our platform",
        source="JobsForHer Platform Statistics 2025",
    ),
    Statistic(
        value="85% of mentored professionals reported higher job satisfaction",
        source="Women in Tech Survey 2025",
    ),
)

FALLBACK_RESOURCES: tuple[Resource, ...] = (
    Resource(text="JobsForHer Mentorship Program", url="https://www.jobsforher.com/mentorship"),
    Resource(text="Career Development Resources", url="https://www.jobsforher.com/resources"),
    Resource(text="Professional Skills Workshops", url="https://www.jobsforher.com/workshops"),
)

_STOPWORDS = frozenset(
    {
        "the", "and", "for", "how", "what", "who", "why", "with", "you", "your", "are", "can",
        "does", "about", "into", "from", "this", "that", "have", "has", "was", "will", "would",
        "should", "could", "need", "want", "me", "my", "do", "is", "to", "of", "in", "on", "a",
    }
)


@dataclass(frozen=True)
class RetrievalConfig:
    """Configuration for retrieval augmentation."""

    cache_ttl_seconds: float = 3600.0
    cache_size: int = 512
    source_timeout_seconds: float = 5.0
    global_timeout_seconds: float = 15.0
    max_items: int = 5
    fallback_head: int = 2
    user_agent: str = "Asha-AI/1.0"


class Retriever(Protocol):
    """Return grounding statistics and resources for a query."""

    async def fetch(self, query: str) -> RetrievalResult:
        """Never raises; degrades to static data."""


def normalize_query(query: str) -> str:
    return query.lower().strip()


def _keywords(normalized: str) -> list[str]:
    words = (word.strip("?!.,;:'\"()") for word in normalized.split())
    return [w for w in words if len(w) >= 3 and w not in _STOPWORDS]


def _dedupe_statistics(items: Iterable[Statistic], limit: int) -> tuple[Statistic, ...]:
    seen: set[tuple[str, str]] = set()
    ordered: list[Statistic] = []
    for stat in items:
        key = (stat.value, stat.source)
        if key in seen:
            continue
        seen.add(key)
        ordered.append(stat)
    return tuple(ordered[:limit])


def _dedupe_resources(items: Iterable[Resource], limit: int) -> tuple[Resource, ...]:
    seen: set[str] = set()
    ordered: list[Resource] = []
    for resource in items:
        if resource.url in seen:
            continue
        seen.add(resource.url)
        ordered.append(resource)
    return tuple(ordered[:limit])


class RetrievalAugmenter:
    """Fetches statistics/resources from live sources, merged with a static dataset."""

    def __init__(
        self,
        sources: Sequence[DataSource] = (),
        config: RetrievalConfig | None = None,
        *,
        cache: TTLCache[str, RetrievalResult] | None = None,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
        fallback_statistics: Sequence[Statistic] = FALLBACK_STATISTICS,
        fallback_resources: Sequence[Resource] = FALLBACK_RESOURCES,
    ) -> None:
        self._sources = tuple(sources)
        self._config = config or RetrievalConfig()
        if cache is None:
            cache = TTLCache(max_entries=self._config.cache_size, ttl_seconds=self._config.cache_ttl_seconds)
        self._cache = cache
        self._client_factory = client_factory or self._default_client
        self._fallback_statistics = tuple(fallback_statistics)
        self._fallback_resources = tuple(fallback_resources)
        self._logger = get_logger("retrieval")

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"Accept": "application/json", "User-Agent": self._config.user_agent},
            follow_redirects=True,
        )

    async def fetch(self, query: str) -> RetrievalResult:
        key = normalize_query(query)
        cached = self._cache.get(key)
        if cached is not None:
            PipelineMetrics.observe_retrieval(0.0, from_cache=True)
            self._logger.info("retrieval.cache_hit", query=key)
            return cached

        start = time.perf_counter()
        payloads: list[SourcePayload] = []
        try:
            payloads = await self._fetch_live(query)
        except Exception as exc:  # never let retrieval break a reply
            self._logger.error("retrieval.live_failed", query=key, error=str(exc))
        elapsed = time.perf_counter() - start

        result = self._merge(key, payloads, elapsed_ms=elapsed * 1000)
        self._cache.set(key, result)
        PipelineMetrics.observe_retrieval(elapsed, from_cache=False)
        self._logger.info(
            "retrieval.complete",
            query=key,
            statistic_count=len(result.statistics),
            resource_count=len(result.resources),
            sources_succeeded=len(payloads),
            used_fallback=result.metrics.used_fallback if result.metrics else False,
            duration_seconds=elapsed,
        )
        return result

    async def _fetch_live(self, query: str) -> list[SourcePayload]:
        if not self._sources:
            return []
        async with self._client_factory() as client:
            tasks = [asyncio.ensure_future(self._fetch_source(source, query, client)) for source in self._sources]
            done, pending = await asyncio.wait(tasks, timeout=self._config.global_timeout_seconds)
            if pending:
                self._logger.warning("retrieval.global_timeout", pending=len(pending))
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
        return [payload for payload in (task.result() for task in done) if payload is not None]

    async def _fetch_source(self, source: DataSource, query: str, client: httpx.AsyncClient) -> SourcePayload | None:
        try:
            payload = await asyncio.wait_for(source.fetch(query, client), timeout=self._config.source_timeout_seconds)
        except asyncio.TimeoutError:
            self._logger.warning("retrieval.source_timeout", source=source.name)
            PipelineMetrics.observe_source_failure(source.name)
            return None
        except Exception as exc:
            self._logger.warning("retrieval.source_failed", source=source.name, error=str(exc))
            PipelineMetrics.observe_source_failure(source.name)
            return None
        if payload is None or payload.is_empty:
            return None
        return payload

    def _merge(self, key: str, payloads: Sequence[SourcePayload], *, elapsed_ms: float) -> RetrievalResult:
        live_statistics = [stat for payload in payloads for stat in payload.statistics]
        live_resources = [res for payload in payloads for res in payload.resources]

        keywords = _keywords(key)
        fallback_statistics = [
            stat for stat in self._fallback_statistics if any(k in stat.value.lower() for k in keywords)
        ]
        fallback_resources = [
            res for res in self._fallback_resources if any(k in res.text.lower() for k in keywords)
        ]
        used_fallback = not live_statistics and not live_resources
        if used_fallback and not fallback_statistics and not fallback_resources:
            fallback_statistics = list(self._fallback_statistics[: self._config.fallback_head])
            fallback_resources = list(self._fallback_resources[: self._config.fallback_head])

        limit = self._config.max_items
        return RetrievalResult(
            statistics=_dedupe_statistics([*live_statistics, *fallback_statistics], limit),
            resources=_dedupe_resources([*live_resources, *fallback_resources], limit),
            metrics=RetrievalMetrics(
                sources_attempted=len(self._sources),
                sources_succeeded=len(payloads),
                elapsed_ms=elapsed_ms,
                used_fallback=used_fallback,
            ),
        )
