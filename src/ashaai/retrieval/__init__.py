"""Retrieval components."""

from .service import FALLBACK_RESOURCES, FALLBACK_STATISTICS, RetrievalAugmenter, RetrievalConfig, Retriever
from .sources import (
    DataSource,
    JsonEndpointSource,
    LaborStatisticsSource,
    SourcePayload,
    WomenInTechSource,
    default_sources,
)

__all__ = [
    "FALLBACK_RESOURCES",
    "FALLBACK_STATISTICS",
    "DataSource",
    "JsonEndpointSource",
    "LaborStatisticsSource",
    "RetrievalAugmenter",
    "RetrievalConfig",
    "Retriever",
    "SourcePayload",
    "WomenInTechSource",
    "default_sources",
]
