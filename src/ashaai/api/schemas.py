"""Pydantic models for the Asha AI API."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ashaai.models import ConfidenceAnalysis, ConversationTurn, Language


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageCreate(CamelModel):
    role: Literal["user"] = Field(..., description="Only user messages are accepted from clients")
    content: str = Field(..., min_length=1, description="Message text typed by the user")
    session_id: str = Field(..., min_length=1, description="Conversation the message belongs to")
    language: Optional[Language] = Field(default=None, description="Force the reply language")


class TurnModel(CamelModel):
    id: int
    role: Literal["user", "assistant"]
    content: str
    session_id: str
    timestamp: datetime

    @classmethod
    def from_turn(cls, turn: ConversationTurn) -> "TurnModel":
        return cls(
            id=turn.id,
            role=turn.role,
            content=turn.content,
            session_id=turn.session_id,
            timestamp=turn.timestamp,
        )


class ConfidenceModel(CamelModel):
    confidence_level: Literal["low", "medium", "high"]
    emotion_tone: Literal["anxious", "neutral", "confident"]
    support_level: Literal["high-support", "moderate-support", "minimal-guidance"]

    @classmethod
    def from_analysis(cls, analysis: ConfidenceAnalysis) -> "ConfidenceModel":
        return cls(
            confidence_level=analysis.confidence_level,
            emotion_tone=analysis.emotion_tone,
            support_level=analysis.support_level,
        )


class MessageExchangeResponse(CamelModel):
    user_message: TurnModel
    assistant_message: TurnModel
    confidence_analysis: ConfidenceModel


class ClearResponse(BaseModel):
    success: bool = True
