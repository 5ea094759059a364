"""Parsing and display formatting of structured model replies."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


class StatisticModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: str
    source: str = ""

    @field_validator("source", mode="before")
    @classmethod
    def _coerce_source(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""


class ResourceModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str
    url: str


def _keep_mappings_with(items: Any, *keys: str) -> list:
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict) and all(isinstance(item.get(k), str) for k in keys)]


class ContextualData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    statistics: List[StatisticModel] = Field(default_factory=list)
    resources: List[ResourceModel] = Field(default_factory=list)

    @field_validator("statistics", mode="before")
    @classmethod
    def _drop_bad_statistics(cls, value: Any) -> list:
        return _keep_mappings_with(value, "value")

    @field_validator("resources", mode="before")
    @classmethod
    def _drop_bad_resources(cls, value: Any) -> list:
        return _keep_mappings_with(value, "text", "url")

    @property
    def is_empty(self) -> bool:
        return not self.statistics and not self.resources


class StructuredReply(BaseModel):
    """Canonical reply shape; older field names are accepted as aliases."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    acknowledgment: str = Field(
        default="",
        validation_alias=AliasChoices("acknowledgment", "acknowledgement", "understanding"),
    )
    guidance: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("guidance", "keyPoints", "key_points"),
    )
    contextual_data: Optional[ContextualData] = Field(
        default=None,
        validation_alias=AliasChoices("contextualData", "contextual_data"),
    )
    follow_up: str = Field(default="", validation_alias=AliasChoices("followUp", "follow_up"))
    style: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _fold_top_level_context(cls, data: Any) -> Any:
        # Some prompt variants put statistics/resources at the top level.
        if not isinstance(data, dict):
            return data
        top_statistics = data.get("statistics")
        top_resources = data.get("resources")
        if top_statistics is None and top_resources is None:
            return data
        folded = dict(data)
        key = "contextualData" if "contextualData" in folded else "contextual_data"
        context = folded.get(key)
        context = dict(context) if isinstance(context, dict) else {}
        if top_statistics is not None and not context.get("statistics"):
            context["statistics"] = top_statistics
        if top_resources is not None and not context.get("resources"):
            context["resources"] = top_resources
        folded[key] = context
        return folded

    @field_validator("guidance", mode="before")
    @classmethod
    def _coerce_guidance(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if isinstance(value, list):
            return [str(item) for item in value if item is not None and str(item).strip()]
        return []

    @field_validator("contextual_data", mode="before")
    @classmethod
    def _coerce_context(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @field_validator("acknowledgment", "follow_up", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("style", mode="before")
    @classmethod
    def _coerce_style(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @property
    def is_substantive(self) -> bool:
        return bool(self.acknowledgment.strip() or self.guidance or self.follow_up.strip())


@dataclass(frozen=True)
class ParseOk:
    reply: StructuredReply


@dataclass(frozen=True)
class ParseFallback:
    raw_text: str
    reason: str


ParseOutcome = Union[ParseOk, ParseFallback]

_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    match = _FENCE.match(text)
    return match.group(1) if match else text.strip()


class ResponseParser:
    """Turns raw completion text into a :class:`ParseOutcome`; never raises."""

    def parse(self, raw_text: str) -> ParseOutcome:
        raw = (raw_text or "").strip()
        try:
            data = json.loads(strip_code_fences(raw))
        except (ValueError, RecursionError):
            return ParseFallback(raw_text=raw, reason="invalid_json")
        if not isinstance(data, dict):
            return ParseFallback(raw_text=raw, reason="not_an_object")
        try:
            reply = StructuredReply.model_validate(data)
        except ValidationError:
            return ParseFallback(raw_text=raw, reason="schema_mismatch")
        if not reply.is_substantive:
            return ParseFallback(raw_text=raw, reason="empty_reply")
        return ParseOk(reply=reply)


_LIST_MARKER = re.compile(r"^[ \t]*(?:[-*+]|\d+\.)[ \t]+", re.MULTILINE)
_BOLD = re.compile(r"\*\*(?!\s)(.+?)(?<!\s)\*\*")
_ITALIC_STAR = re.compile(r"(?<![\w*])\*(?![\s*])([^*\n]+?)(?<!\s)\*(?![\w*])")
_ITALIC_UNDERSCORE = re.compile(r"(?<!\w)_(?![\s_])([^_\n]+?)(?<!\s)_(?!\w)")


def emphasize_markdown(text: str, bullet: str = "•") -> str:
    """Convert light markdown in free text to the emphasis tags the chat UI renders."""
    converted = _LIST_MARKER.sub(f"{bullet} ", text)
    converted = _BOLD.sub(r"<strong>\1</strong>", converted)
    converted = _ITALIC_STAR.sub(r"<em>\1</em>", converted)
    converted = _ITALIC_UNDERSCORE.sub(r"<em>\1</em>", converted)
    return converted


@dataclass(frozen=True)
class ReplyFormatterConfig:
    bullet: str = "•"
    statistics_heading: str = "📊 Key statistics:"
    resources_heading: str = "🔗 Helpful resources:"


class ReplyFormatter:
    """Renders parse outcomes as display text; empty sections are left out entirely."""

    def __init__(self, config: ReplyFormatterConfig | None = None) -> None:
        self._config = config or ReplyFormatterConfig()

    def format(self, outcome: ParseOutcome) -> str:
        if isinstance(outcome, ParseFallback):
            return emphasize_markdown(outcome.raw_text, bullet=self._config.bullet)
        return self.format_reply(outcome.reply)

    def format_reply(self, reply: StructuredReply) -> str:
        bullet = self._config.bullet
        sections: list[str] = []
        if reply.acknowledgment.strip():
            sections.append(reply.acknowledgment.strip())
        guidance = [point.strip() for point in reply.guidance if point.strip()]
        if guidance:
            sections.append("\n".join(f"{bullet} {point}" for point in guidance))
        context = reply.contextual_data
        if context is not None and context.statistics:
            lines = [self._config.statistics_heading]
            for stat in context.statistics:
                lines.append(f"- {stat.value} ({stat.source})" if stat.source else f"- {stat.value}")
            sections.append("\n".join(lines))
        if context is not None and context.resources:
            lines = [self._config.resources_heading]
            lines.extend(f"- {res.text}: {res.url}" for res in context.resources)
            sections.append("\n".join(lines))
        if reply.follow_up.strip():
            sections.append(reply.follow_up.strip())
        return "\n\n".join(sections)
