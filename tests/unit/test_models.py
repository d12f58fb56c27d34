"""Unit tests for data models."""

from datetime import date, datetime, time, timezone

import pytest
from pydantic import ValidationError

from emailmaster.models import (
    CacheWatermark,
    CalendarEvent,
    Classification,
    EmailRecord,
    EmailSummary,
    EmailType,
    FollowUpResult,
    IdentityMapping,
    MessageIntent,
    Priority,
    Sentiment,
    SentimentResult,
)


class TestEmailRecord:
    """Test suite for EmailRecord model."""

    def test_serializes_with_camel_case_keys(self) -> None:
        email = EmailRecord(
            id="msg123",
            thread_id="thread456",
            subject="Test Email",
            sender="sender@example.com",
            date=datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc),
            label_ids=["INBOX"],
            unique_id="msg123",
            assigned_index=4,
        )

        data = email.to_json_dict()

        assert data["from"] == "sender@example.com"
        assert data["threadId"] == "thread456"
        assert data["uniqueId"] == "msg123"
        assert data["assignedIndex"] == 4
        assert data["labelIds"] == ["INBOX"]
        assert data["suggestedResponse"] == ""
        assert data["classification"]["type"] == "Others"
        assert data["analyzedAt"] is None

    def test_round_trips_through_json_dict(self) -> None:
        email = EmailRecord(id="a", subject="S", sender="x@y.z", assigned_index=1, unique_id="a")

        restored = EmailRecord.model_validate(email.to_json_dict())

        assert restored == email

    def test_unknown_keys_are_ignored(self) -> None:
        email = EmailRecord.model_validate({"id": "a", "raw": {"big": "blob"}, "legacyField": 1})

        assert email.id == "a"

    def test_neutral_enrichment_defaults(self) -> None:
        email = EmailRecord(id="a")

        assert email.classification.priority is Priority.NORMAL
        assert email.classification.priority_confidence == 50
        assert email.classification.email_type is EmailType.OTHERS
        assert email.classification.action_required is False
        assert email.summary.summary == []
        assert email.summary.estimated_reading_time == 1
        assert email.suggested_response == ""
        assert email.analyzed_at is None

    def test_content_falls_back_to_snippet(self) -> None:
        assert EmailRecord(body="", snippet="snip").content == "snip"
        assert EmailRecord(body="full", snippet="snip").content == "full"

    def test_reference_id_prefers_provider_id(self) -> None:
        assert EmailRecord(id="p1", unique_id="u1").reference_id == "p1"
        assert EmailRecord(id="", unique_id="u1").reference_id == "u1"

    def test_assigned_index_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            EmailRecord(id="a", assigned_index=0)


class TestClassification:
    """Model output is coerced rather than rejected."""

    def test_coerces_loose_model_output(self) -> None:
        c = Classification.model_validate(
            {
                "priority": "urgent",
                "priorityConfidence": "130",
                "type": "WORK",
                "actionRequired": "yes",
                "actionItems": "Reply to Bob",
            }
        )

        assert c.priority is Priority.URGENT
        assert c.priority_confidence == 100
        assert c.email_type is EmailType.WORK
        assert c.action_required is True
        assert c.action_items == ["Reply to Bob"]

    def test_unknown_values_fall_back_to_neutral(self) -> None:
        c = Classification.model_validate({"priority": "Critical!!", "type": 7, "actionConfidence": "n/a"})

        assert c.priority is Priority.NORMAL
        assert c.email_type is EmailType.OTHERS
        assert c.action_confidence == 50


class TestEmailSummary:
    def test_reading_time_is_at_least_one_minute(self) -> None:
        assert EmailSummary.model_validate({"estimatedReadingTime": 0}).estimated_reading_time == 1
        assert EmailSummary.model_validate({"estimatedReadingTime": "3.6"}).estimated_reading_time == 4


class TestSentimentResult:
    def test_defaults_are_neutral(self) -> None:
        result = SentimentResult(id="a")

        assert result.sentiment is Sentiment.NEUTRAL
        assert result.sentiment_score == 0
        assert result.intent is MessageIntent.OTHER
        assert result.stress_level == 5

    def test_clamps_scores(self) -> None:
        result = SentimentResult.model_validate(
            {"id": "a", "sentiment": "Negative", "sentimentScore": -4, "type": "complaint", "stressLevel": 42}
        )

        assert result.sentiment is Sentiment.NEGATIVE
        assert result.sentiment_score == -1
        assert result.intent is MessageIntent.COMPLAINT
        assert result.stress_level == 10


class TestFollowUpResult:
    def test_defaults(self) -> None:
        result = FollowUpResult(id="a")

        assert result.needs_follow_up is False
        assert result.confidence == 0
        assert result.reason == ""


class TestCalendarEvent:
    def test_parses_wire_shape(self) -> None:
        event = CalendarEvent.model_validate(
            {"title": "Review", "date": "2024-05-06", "time": "14:30", "endTime": "null", "description": None}
        )

        assert event.event_date == date(2024, 5, 6)
        assert event.start_time == time(14, 30)
        assert event.end_time is None
        assert event.description == ""

    def test_invalid_date_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CalendarEvent.model_validate({"title": "Someday", "date": "next week"})


class TestIdentityMapping:
    def test_allocate_reuses_known_ids(self) -> None:
        mapping = IdentityMapping()

        assert mapping.allocate("a") == 1
        assert mapping.allocate("b") == 2
        assert mapping.allocate("a") == 1
        assert mapping.next_index == 3
        assert mapping.is_consistent()

    def test_on_disk_shape(self) -> None:
        mapping = IdentityMapping()
        mapping.allocate("abc")

        data = mapping.model_dump(mode="json", by_alias=True)

        assert data == {"indexToId": {"1": "abc"}, "idToIndex": {"abc": 1}, "nextIndex": 2}
        assert IdentityMapping.model_validate(data).index_to_id == {1: "abc"}

    def test_detects_inconsistency(self) -> None:
        mapping = IdentityMapping(index_to_id={1: "a"}, id_to_index={"a": 2}, next_index=3)

        assert not mapping.is_consistent()


class TestCacheWatermark:
    def test_empty_by_default(self) -> None:
        assert CacheWatermark().is_empty

    def test_on_disk_shape(self) -> None:
        wm = CacheWatermark(last_fetched_id="m1", last_fetched_timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc))

        data = wm.model_dump(mode="json", by_alias=True)

        assert data["lastFetchedId"] == "m1"
        assert data["lastFetchedTimestamp"].startswith("2024-01-01T00:00:00")
