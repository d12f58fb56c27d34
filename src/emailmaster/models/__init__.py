"""Data models for EmailMaster.

This package contains Pydantic models for data validation and serialization.
"""

from .email_record import EmailRecord
from .enrichment import (
    CalendarEvent,
    Classification,
    EmailSummary,
    EmailType,
    FollowUpResult,
    MessageIntent,
    Priority,
    Sentiment,
    SentimentResult,
)
from .identity import CacheWatermark, IdentityMapping

__all__ = [
    "CacheWatermark",
    "CalendarEvent",
    "Classification",
    "EmailRecord",
    "EmailSummary",
    "EmailType",
    "FollowUpResult",
    "IdentityMapping",
    "MessageIntent",
    "Priority",
    "Sentiment",
    "SentimentResult",
]
