"""External statistics and resource providers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol, Sequence
from urllib.parse import quote

import httpx

from ashaai.metrics.observability import get_logger
from ashaai.models import Resource, Statistic


@dataclass(frozen=True)
class SourcePayload:
    """Statistics and resources returned by a single data source."""

    statistics: Sequence[Statistic] = field(default_factory=tuple)
    resources: Sequence[Resource] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.statistics and not self.resources


class DataSource(Protocol):
    """Protocol for live retrieval sources."""

    name: str

    async def fetch(self, query: str, client: httpx.AsyncClient) -> SourcePayload | None:
        """Return data relevant to ``query`` or ``None`` when nothing usable came back."""


def _statistics_from(items: Any) -> list[Statistic]:
    if not isinstance(items, list):
        return []
    return [
        Statistic(value=item["value"], source=item["source"])
        for item in items
        if isinstance(item, Mapping) and isinstance(item.get("value"), str) and isinstance(item.get("source"), str)
    ]


def _resources_from(items: Any) -> list[Resource]:
    if not isinstance(items, list):
        return []
    return [
        Resource(text=item["text"], url=item["url"])
        for item in items
        if isinstance(item, Mapping) and isinstance(item.get("text"), str) and isinstance(item.get("url"), str)
    ]


def parse_payload(data: Any) -> SourcePayload | None:
    """Accept either a bare list of statistics or an object with ``statistics``/``resources``."""
    if isinstance(data, list):
        payload = SourcePayload(statistics=tuple(_statistics_from(data)))
    elif isinstance(data, Mapping):
        payload = SourcePayload(
            statistics=tuple(_statistics_from(data.get("statistics"))),
            resources=tuple(_resources_from(data.get("resources"))),
        )
    else:
        return None
    return None if payload.is_empty else payload


class JsonEndpointSource:
    """GETs a JSON endpoint; ``{query}`` in the URL template is replaced with the quoted query."""

    def __init__(self, name: str, url_template: str) -> None:
        self.name = name
        self._url_template = url_template

    def url_for(self, query: str) -> str:
        return self._url_template.replace("{query}", quote(query))

    async def fetch(self, query: str, client: httpx.AsyncClient) -> SourcePayload | None:
        response = await client.get(self.url_for(query))
        response.raise_for_status()
        return parse_payload(response.json())


BLS_SERIES: Mapping[str, str] = {
    "LNS11300000": "labor force participation",
    "LNS14000000": "unemployment",
    "LNS12000002": "women's employment",
}


class LaborStatisticsSource:
    """U.S. Bureau of Labor Statistics time series, latest data point per series."""

    name = "bls"

    def __init__(
        self,
        base_url: str = "https://api.bls.gov/publicAPI/v1/timeseries/data",
        series: Mapping[str, str] = BLS_SERIES,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._series = dict(series)
        self._logger = get_logger("retrieval.bls")

    async def fetch(self, query: str, client: httpx.AsyncClient) -> SourcePayload | None:
        year = datetime.now(timezone.utc).year
        params = {"startyear": year - 1, "endyear": year}
        responses = await asyncio.gather(
            *(client.get(f"{self._base_url}/{series_id}", params=params) for series_id in self._series),
            return_exceptions=True,
        )
        statistics: list[Statistic] = []
        for series_id, response in zip(self._series, responses):
            if isinstance(response, BaseException):
                self._logger.warning("bls.series_failed", series_id=series_id, error=str(response))
                continue
            if response.status_code != 200:
                continue
            statistic = self._format(series_id, response.json())
            if statistic is not None:
                statistics.append(statistic)
        if not statistics:
            return None
        return SourcePayload(statistics=tuple(statistics))

    def _format(self, series_id: str, body: Any) -> Statistic | None:
        if not isinstance(body, Mapping) or body.get("status") != "REQUEST_SUCCEEDED":
            return None
        try:
            series = body["Results"]["series"][0]
            latest = series["data"][0]
            label = self._series.get(series.get("seriesID", series_id), series_id)
            value = f"Current {label} rate: {latest['value']}% ({latest['periodName']} {latest['year']})"
        except (KeyError, IndexError, TypeError):
            return None
        return Statistic(value=value, source="U.S. Bureau of Labor Statistics")


class WomenInTechSource:
    """Directory of women in tech; profiles matching the query become success stories."""

    name = "women_in_tech"

    def __init__(
        self,
        url: str = "https://women-in-tech.apievangelist.com/apis/people",
        profile_base_url: str = "https://women-in-tech.apievangelist.com/profile/",
        max_profiles: int = 3,
    ) -> None:
        self._url = url
        self._profile_base_url = profile_base_url
        self._max_profiles = max_profiles

    async def fetch(self, query: str, client: httpx.AsyncClient) -> SourcePayload | None:
        response = await client.get(self._url)
        if response.status_code != 200:
            return None
        profiles = response.json()
        if not isinstance(profiles, list) or not profiles:
            return None
        keywords = query.lower().split()
        matches = [p for p in profiles if self._is_valid(p) and self._matches(p, keywords)][: self._max_profiles]
        if not matches:
            return None
        return SourcePayload(
            statistics=tuple(
                Statistic(
                    value=f"{p['name']} achieved significant impact in {', '.join(p['expertise'])}",
                    source=f"{p['organization']} Success Story",
                )
                for p in matches
            ),
            resources=tuple(
                Resource(
                    text=f"Connect with {p['name']} - {p['title']}",
                    url=f"{self._profile_base_url}{quote(p['name'])}",
                )
                for p in matches
            ),
        )

    @staticmethod
    def _is_valid(profile: Any) -> bool:
        return (
            isinstance(profile, Mapping)
            and bool(profile.get("name"))
            and bool(profile.get("title"))
            and bool(profile.get("organization"))
            and isinstance(profile.get("expertise"), list)
            and len(profile["expertise"]) > 0
        )

    @staticmethod
    def _matches(profile: Mapping[str, Any], keywords: Sequence[str]) -> bool:
        title = str(profile["title"]).lower()
        expertise = [str(e).lower() for e in profile["expertise"]]
        return any(kw in title or any(kw in exp for exp in expertise) for kw in keywords)


def default_sources(extra_urls: Sequence[str] = ()) -> list[DataSource]:
    sources: list[DataSource] = [LaborStatisticsSource(), WomenInTechSource()]
    for index, url in enumerate(extra_urls):
        sources.append(JsonEndpointSource(name=f"endpoint-{index}", url_template=url))
    return sources
