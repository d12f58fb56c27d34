"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import base64
import json
from collections.abc import Callable
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any

import pytest

from emailmaster.config import Settings
from emailmaster.exceptions import GmailAPIError, TextGenerationError
from emailmaster.models import EmailRecord


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings rooted in a temporary directory."""
    return Settings(
        data_dir=tmp_path / "data",
        reports_dir=tmp_path / "reports",
        gmail_credentials_path=tmp_path / "credentials.json",
        gmail_token_path=tmp_path / "token.json",
        ollama_host="http://test:11434",
        ollama_model="test-model",
        gemini_api_key=None,
        ai_batch_size=2,
        fetch_concurrency=3,
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture
def make_email() -> Callable[..., EmailRecord]:
    """Factory for cached email records."""

    def _make(
        id: str = "m1",
        subject: str = "Hello",
        sender: str = "Alice <alice@example.com>",
        date: datetime | None = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc),
        body: str = "Body text",
        **extra: Any,
    ) -> EmailRecord:
        return EmailRecord(id=id, subject=subject, sender=sender, date=date, body=body, **extra)

    return _make


def _b64(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


@pytest.fixture
def gmail_message() -> Callable[..., dict]:
    """Factory for Gmail API ``format=full`` message payloads."""

    def _make(
        id: str = "msg123456",
        subject: str = "Weekly Newsletter - Python Tips",
        sender: str = "Python Weekly <newsletter@python.org>",
        date: datetime = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc),
        body: str = "Welcome to this week's Python tips!",
    ) -> dict:
        return {
            "id": id,
            "threadId": f"thread-{id}",
            "labelIds": ["INBOX", "UNREAD"],
            "snippet": body[:40],
            "internalDate": str(int(date.timestamp() * 1000)),
            "payload": {
                "mimeType": "multipart/alternative",
                "headers": [
                    {"name": "Subject", "value": subject},
                    {"name": "From", "value": sender},
                    {"name": "To", "value": "user@example.com"},
                    {"name": "Date", "value": format_datetime(date)},
                    {"name": "Message-ID", "value": f"<{id}@mail.example.com>"},
                ],
                "parts": [
                    {"mimeType": "text/plain", "body": {"data": _b64(body)}},
                    {"mimeType": "text/html", "body": {"data": _b64(f"<p>{body}</p>")}},
                ],
            },
        }

    return _make


class FakeMailProvider:
    """In-memory stand-in for GmailClient.

    ``messages`` maps id to a full Gmail message; ``list_messages`` returns
    every id in insertion order unless ``listing`` is set explicitly.
    """

    def __init__(self) -> None:
        self.messages: dict[str, dict] = {}
        self.listing: list[str] | None = None
        self.failing: set[str] = set()
        self.queries: list[str | None] = []
        self.fetched: list[str] = []

    def add(self, message: dict) -> None:
        self.messages[message["id"]] = message

    async def list_messages(self, max_results: int | None = None, query: str | None = None) -> list[dict]:
        self.queries.append(query)
        ids = self.listing if self.listing is not None else list(self.messages)
        return [{"id": mid, "threadId": f"thread-{mid}"} for mid in ids[:max_results]]

    async def get_message(self, message_id: str, *, format: str = "full") -> dict:
        self.fetched.append(message_id)
        if message_id in self.failing:
            raise GmailAPIError(f"boom: {message_id}")
        return self.messages[message_id]


@pytest.fixture
def fake_provider() -> FakeMailProvider:
    return FakeMailProvider()


class FakeGenerator:
    """Scripted text generator.

    Each call pops the next queued response; an exception instance is raised
    instead of returned. With an empty queue it answers ``default``.
    """

    def __init__(self) -> None:
        self.responses: list[str | Exception] = []
        self.default: str | Exception = "[]"
        self.prompts: list[str] = []

    def queue(self, *responses: str | Exception | list | dict) -> None:
        for r in responses:
            self.responses.append(r if isinstance(r, (str, Exception)) else json.dumps(r))

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def generation_error() -> TextGenerationError:
    return TextGenerationError("backend unavailable")
