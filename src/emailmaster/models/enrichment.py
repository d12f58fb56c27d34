"""AI enrichment models.

Model output is untrusted: every field has a neutral default and the
validators coerce near-misses (wrong case, numbers as strings, a bare string
where a list was asked for) instead of rejecting the whole object.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Priority(str, Enum):
    """Email priority levels, most urgent first."""

    URGENT = "Urgent"
    IMPORTANT = "Important"
    NORMAL = "Normal"


class EmailType(str, Enum):
    """Coarse email type assigned during classification."""

    PERSONAL = "Personal"
    WORK = "Work"
    MARKETING = "Marketing"
    UPDATES = "Updates"
    OTHERS = "Others"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class MessageIntent(str, Enum):
    """What the sender wants, as judged by sentiment analysis."""

    APPRECIATION = "appreciation"
    COMPLAINT = "complaint"
    REQUEST = "request"
    INFORMATION = "information"
    OTHER = "other"


def _coerce_enum(value: Any, enum_cls: type[Enum], default: Enum) -> Enum:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        folded = value.strip().casefold()
        for member in enum_cls:
            if member.value.casefold() == folded:
                return member
    return default


def _coerce_number(value: Any, default: float, low: float, high: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:  # NaN
        return default
    return min(max(number, low), high)


def _coerce_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None and str(v).strip()]
    return [str(value)]


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().casefold() in {"true", "yes", "1"}
    return bool(value)


class EnrichmentModel(BaseModel):
    """Base for models persisted with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Classification(EnrichmentModel):
    """Priority/type classification. Defaults are the neutral classification."""

    priority: Priority = Priority.NORMAL
    priority_confidence: float = Field(default=50, ge=0, le=100)
    email_type: EmailType = Field(default=EmailType.OTHERS, alias="type")
    action_required: bool = False
    action_confidence: float = Field(default=50, ge=0, le=100)
    action_items: list[str] = Field(default_factory=list)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v: Any) -> Priority:
        return _coerce_enum(v, Priority, Priority.NORMAL)  # type: ignore[return-value]

    @field_validator("email_type", mode="before")
    @classmethod
    def _email_type(cls, v: Any) -> EmailType:
        return _coerce_enum(v, EmailType, EmailType.OTHERS)  # type: ignore[return-value]

    @field_validator("priority_confidence", "action_confidence", mode="before")
    @classmethod
    def _confidence(cls, v: Any) -> float:
        return _coerce_number(v, 50, 0, 100)

    @field_validator("action_required", mode="before")
    @classmethod
    def _action_required(cls, v: Any) -> bool:
        return _coerce_bool(v)

    @field_validator("action_items", mode="before")
    @classmethod
    def _action_items(cls, v: Any) -> list[str]:
        return _coerce_str_list(v)


class EmailSummary(EnrichmentModel):
    """Bullet-point summary of a single email."""

    summary: list[str] = Field(default_factory=list)
    key_points: list[str] = Field(default_factory=list)
    deadlines: list[str] = Field(default_factory=list)
    estimated_reading_time: int = Field(default=1, ge=1)

    @field_validator("summary", "key_points", "deadlines", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> list[str]:
        return _coerce_str_list(v)

    @field_validator("estimated_reading_time", mode="before")
    @classmethod
    def _reading_time(cls, v: Any) -> int:
        return max(1, int(round(_coerce_number(v, 1, 1, 10_000))))


class SentimentResult(EnrichmentModel):
    """Sentiment of one email; defaults describe a neutral, mid-stress email."""

    id: str
    sentiment: Sentiment = Sentiment.NEUTRAL
    sentiment_score: float = Field(default=0.0, ge=-1, le=1)
    intent: MessageIntent = Field(default=MessageIntent.OTHER, alias="type")
    stress_level: float = Field(default=5, ge=0, le=10)

    @field_validator("sentiment", mode="before")
    @classmethod
    def _sentiment(cls, v: Any) -> Sentiment:
        return _coerce_enum(v, Sentiment, Sentiment.NEUTRAL)  # type: ignore[return-value]

    @field_validator("intent", mode="before")
    @classmethod
    def _intent(cls, v: Any) -> MessageIntent:
        return _coerce_enum(v, MessageIntent, MessageIntent.OTHER)  # type: ignore[return-value]

    @field_validator("sentiment_score", mode="before")
    @classmethod
    def _score(cls, v: Any) -> float:
        return _coerce_number(v, 0.0, -1, 1)

    @field_validator("stress_level", mode="before")
    @classmethod
    def _stress(cls, v: Any) -> float:
        return _coerce_number(v, 5, 0, 10)


class FollowUpResult(EnrichmentModel):
    """Whether an email still expects an answer from the user."""

    id: str
    needs_follow_up: bool = False
    confidence: float = Field(default=0, ge=0, le=100)
    reason: str = ""
    suggested_follow_up: str = ""

    @field_validator("needs_follow_up", mode="before")
    @classmethod
    def _needs(cls, v: Any) -> bool:
        return _coerce_bool(v)

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, v: Any) -> float:
        return _coerce_number(v, 0, 0, 100)

    @field_validator("reason", "suggested_follow_up", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return "" if v is None else str(v)


class CalendarEvent(EnrichmentModel):
    """A dated task or meeting extracted from an email."""

    title: str
    event_date: dt.date = Field(alias="date")
    start_time: dt.time | None = Field(default=None, alias="time")
    end_time: dt.time | None = None
    description: str = ""
    source_id: str | None = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _blank_time(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().casefold() in ("", "null", "none"):
            return None
        return v

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, v: Any) -> str:
        return "" if v is None else str(v)
