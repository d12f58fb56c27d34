"""Helpers for parsing Gmail API messages into internal models."""

from __future__ import annotations

import base64
from datetime import datetime, timezone
from email.utils import parseaddr, parsedate_to_datetime
from typing import Any

from emailmaster.models import EmailRecord


def _header_map(payload: dict[str, Any]) -> dict[str, str]:
    headers = payload.get("headers") or []
    result: dict[str, str] = {}
    for h in headers:
        if not isinstance(h, dict):
            continue
        name = h.get("name")
        value = h.get("value")
        if isinstance(name, str) and isinstance(value, str):
            # Gmail can include duplicates; keep the first for now.
            result.setdefault(name.lower(), value)
    return result


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, OverflowError, IndexError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _internal_date(message: dict[str, Any]) -> datetime | None:
    raw = message.get("internalDate")
    try:
        millis = int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None
    if millis is None:
        return None
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def decode_body_data(data: str) -> str:
    """Decode a Gmail base64url body payload to text."""

    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8", errors="replace")


def _find_part(part: Any, mime_type: str) -> dict[str, Any] | None:
    if not isinstance(part, dict):
        return None
    if part.get("mimeType") == mime_type and (part.get("body") or {}).get("data"):
        return part
    children = part.get("parts")
    for child in children if isinstance(children, list) else []:
        found = _find_part(child, mime_type)
        if found is not None:
            return found
    return None


def extract_body(payload: dict[str, Any]) -> str:
    """Return the message text, preferring text/plain over text/html.

    Multipart messages are searched depth-first; a single-part message uses its
    own body data whatever its type.
    """

    if payload.get("parts"):
        for mime_type in ("text/plain", "text/html"):
            part = _find_part(payload, mime_type)
            if part is not None:
                return decode_body_data(part["body"]["data"])
        return ""

    data = (payload.get("body") or {}).get("data")
    return decode_body_data(data) if data else ""


def sender_address(sender: str) -> str:
    """Bare address from a From header (``Jane <jane@x.org>`` -> ``jane@x.org``)."""

    _, addr = parseaddr(sender)
    return addr or sender.strip()


def message_to_email_record(message: dict[str, Any]) -> EmailRecord:
    """Convert a Gmail API message (format=full) to an EmailRecord.

    Args:
        message: Gmail API message dict.

    Returns:
        EmailRecord: Parsed record without identity or enrichment fields.

    Raises:
        ValueError: If the message has no payload or its structure cannot be read.
    """

    payload = message.get("payload")
    if not isinstance(payload, dict):
        raise ValueError(f"message {message.get('id')!r} has no payload")

    try:
        hm = _header_map(payload)
        body = extract_body(payload)
    except (AttributeError, TypeError, KeyError) as exc:
        raise ValueError(f"message {message.get('id')!r} is malformed: {exc}") from exc

    label_ids = message.get("labelIds") or []
    if not isinstance(label_ids, list):
        label_ids = []

    return EmailRecord(
        id=str(message.get("id") or ""),
        thread_id=str(message.get("threadId") or "") or None,
        subject=hm.get("subject") or "",
        sender=hm.get("from") or "",
        to=hm.get("to") or "",
        message_id=hm.get("message-id") or None,
        date=_parse_date(hm.get("date")) or _internal_date(message),
        body=body,
        snippet=str(message.get("snippet") or ""),
        label_ids=[str(x) for x in label_ids if isinstance(x, str)],
    )
