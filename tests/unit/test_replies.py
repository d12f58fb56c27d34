"""Unit tests for reply composition."""

import base64
from email import message_from_bytes

import pytest

from emailmaster.analysis import EmailAnalyzer
from emailmaster.exceptions import ValidationError
from emailmaster.replies import ReplyService, build_reply_message, encode_message, reply_subject


class FakeGmail:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str | None]] = []
        self.drafts: list[tuple[str, str | None]] = []

    async def send_message(self, raw: str, thread_id: str | None = None) -> dict:
        self.sent.append((raw, thread_id))
        return {"id": "sent-1"}

    async def create_draft(self, raw: str, thread_id: str | None = None) -> dict:
        self.drafts.append((raw, thread_id))
        return {"id": "draft-1"}


@pytest.fixture
def original(make_email):
    return make_email(
        id="m1",
        subject="Project update",
        sender="Alice Smith <alice@example.com>",
        thread_id="t1",
        message_id="<abc@mail.example.com>",
    )


@pytest.mark.parametrize(
    ("subject", "expected"),
    [("Hello", "Re: Hello"), ("Re: Hello", "Re: Hello"), ("RE: Hello", "RE: Hello"), ("", "Re:")],
)
def test_reply_subject(subject: str, expected: str) -> None:
    assert reply_subject(subject) == expected


def test_build_reply_message_headers(original) -> None:
    msg = build_reply_message(original, "Thanks!", "me@example.com")

    assert msg["To"] == "alice@example.com"
    assert msg["From"] == "me@example.com"
    assert msg["Subject"] == "Re: Project update"
    assert msg["In-Reply-To"] == "<abc@mail.example.com>"
    assert msg["References"] == "<abc@mail.example.com>"
    assert msg.get_content().strip() == "Thanks!"


@pytest.mark.parametrize(
    "update",
    [{"subject": "Project\r\nBcc: victim@example.com"}, {"message_id": "<abc@mail.example.com>\nX-Injected: 1"}],
)
def test_line_breaks_in_original_headers_are_rejected(original, update) -> None:
    with pytest.raises(ValidationError, match="Cannot reply to email m1"):
        build_reply_message(original.model_copy(update=update), "Thanks!", "me")


def test_me_alias_leaves_from_unset(original) -> None:
    assert build_reply_message(original, "x", "me")["From"] is None


def test_encode_message_is_unpadded_base64url(original) -> None:
    raw = encode_message(build_reply_message(original, "Thanks!", "me"))

    assert "=" not in raw
    decoded = message_from_bytes(base64.urlsafe_b64decode(raw + "=" * (-len(raw) % 4)))
    assert decoded["Subject"] == "Re: Project update"


class TestReplyService:
    @pytest.mark.asyncio
    async def test_preview_does_not_touch_gmail(self, original, settings) -> None:
        gmail = FakeGmail()

        outcome = await ReplyService(gmail, None, settings).reply(original, message="Sounds good")

        assert outcome.kind == "preview"
        assert outcome.body == "Sounds good"
        assert gmail.sent == [] and gmail.drafts == []

    @pytest.mark.asyncio
    async def test_send_uses_thread(self, original, settings) -> None:
        gmail = FakeGmail()

        outcome = await ReplyService(gmail, None, settings).reply(original, message="Sounds good", send=True)

        assert outcome.kind == "sent"
        assert outcome.gmail_id == "sent-1"
        assert gmail.sent[0][1] == "t1"

    @pytest.mark.asyncio
    async def test_draft_with_ai_body(self, original, settings, fake_generator) -> None:
        gmail = FakeGmail()
        fake_generator.queue("Hi Alice,\nThanks for the update.")
        service = ReplyService(gmail, EmailAnalyzer(fake_generator, settings), settings)

        outcome = await service.reply(original, use_ai=True, draft=True)

        assert outcome.kind == "draft"
        assert outcome.body.startswith("Hi Alice")
        assert len(gmail.drafts) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"message": "x", "send": True, "draft": True},
            {},
            {"message": "x", "use_ai": True},
            {"message": "   "},
        ],
    )
    async def test_invalid_options(self, original, settings, kwargs) -> None:
        with pytest.raises(ValidationError):
            await ReplyService(FakeGmail(), None, settings).reply(original, **kwargs)

    @pytest.mark.asyncio
    async def test_send_without_gmail_client(self, original, settings) -> None:
        with pytest.raises(ValidationError):
            await ReplyService(None, None, settings).reply(original, message="x", send=True)
