"""Compose replies to cached emails and hand them to Gmail.

A reply is previewed by default. It is only saved as a draft or sent when the
caller asks for it explicitly.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formatdate
from typing import Literal, Optional

import structlog

from emailmaster.analysis import EmailAnalyzer
from emailmaster.config import Settings
from emailmaster.exceptions import ValidationError
from emailmaster.gmail.client import GmailClient
from emailmaster.gmail.parsing import sender_address
from emailmaster.models import EmailRecord

logger = structlog.get_logger()

ReplyKind = Literal["preview", "draft", "sent"]


@dataclass(frozen=True)
class ReplyOutcome:
    kind: ReplyKind
    body: str
    message: EmailMessage
    gmail_id: Optional[str] = None


def reply_subject(subject: str) -> str:
    subject = subject.strip()
    if subject.lower().startswith("re:"):
        return subject
    return f"Re: {subject}" if subject else "Re:"


def build_reply_message(original: EmailRecord, body: str, sender: Optional[str] = None) -> EmailMessage:
    """Build an RFC 5322 reply to ``original``.

    Args:
        original: The email being answered.
        body: Plain-text reply body.
        sender: From address. Gmail's ``me`` alias (or None) leaves From unset so
            Gmail fills in the authenticated account.

    Raises:
        ValidationError: If a header taken from the original email is invalid,
            e.g. a subject containing line breaks.
    """

    msg = EmailMessage()
    try:
        msg["To"] = sender_address(original.sender)
        if sender and sender != "me":
            msg["From"] = sender
        msg["Subject"] = reply_subject(original.subject)
        msg["Date"] = formatdate(localtime=True)

        if original.message_id:
            msg["In-Reply-To"] = original.message_id
            msg["References"] = original.message_id
    except ValueError as exc:
        raise ValidationError(f"Cannot reply to email {original.id or original.unique_id}: {exc}") from exc

    msg.set_content(body)
    return msg


def encode_message(msg: EmailMessage) -> str:
    """base64url without padding, as the Gmail API expects for ``raw``."""

    return base64.urlsafe_b64encode(msg.as_bytes()).decode("ascii").rstrip("=")


class ReplyService:
    """Builds reply bodies (typed or AI-drafted) and previews, drafts or sends them."""

    def __init__(
        self,
        gmail: Optional[GmailClient],
        analyzer: Optional[EmailAnalyzer] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        from emailmaster.config import get_settings

        self.settings = settings or get_settings()
        self.gmail = gmail
        self.analyzer = analyzer

    async def reply(
        self,
        email: EmailRecord,
        *,
        message: Optional[str] = None,
        use_ai: bool = False,
        send: bool = False,
        draft: bool = False,
    ) -> ReplyOutcome:
        """Compose a reply and optionally deliver it.

        Raises:
            ValidationError: For conflicting or missing options.
            TextGenerationError: If an AI draft was requested and failed.
            GmailAPIError: If saving the draft or sending fails.
        """

        if send and draft:
            raise ValidationError("Choose either --send or --draft, not both.")
        if use_ai == (message is not None):
            raise ValidationError("Provide exactly one of a reply message or --ai.")

        if use_ai:
            if self.analyzer is None:
                raise ValidationError("AI replies need a configured analyzer.")
            body = await self.analyzer.generate_reply_draft(email)
        else:
            body = (message or "").strip()
            if not body:
                raise ValidationError("Reply message must not be empty.")

        msg = build_reply_message(email, body, self.settings.user_email)
        if not send and not draft:
            return ReplyOutcome(kind="preview", body=body, message=msg)

        if self.gmail is None:
            raise ValidationError("A Gmail client is required to send or save replies.")

        raw = encode_message(msg)
        if draft:
            response = await self.gmail.create_draft(raw, email.thread_id)
            logger.info("reply_draft_created", email_id=email.id, draft_id=response.get("id"))
            return ReplyOutcome(kind="draft", body=body, message=msg, gmail_id=response.get("id"))

        response = await self.gmail.send_message(raw, email.thread_id)
        logger.info("reply_sent", email_id=email.id, message_id=response.get("id"))
        return ReplyOutcome(kind="sent", body=body, message=msg, gmail_id=response.get("id"))
