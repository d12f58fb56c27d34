"""Incremental fetch: ask the provider for what is new, merge, index, persist.

Persistence happens in a fixed order: the identity mapping (inside
``IdentityStore.assign_indices``), then ``emails.json``, then the watermark.
If the cache cannot be written the watermark is not advanced, so the next run
asks for the same messages again.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

import structlog

from emailmaster.cache import EmailCache, WatermarkRepository
from emailmaster.config import Settings
from emailmaster.exceptions import GmailAPIError
from emailmaster.gmail.parsing import message_to_email_record
from emailmaster.identity import IdentityStore
from emailmaster.models import CacheWatermark, EmailRecord

logger = structlog.get_logger()

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)
_ENRICHMENT_FIELDS = ("classification", "summary", "suggested_response", "analyzed_at")


class MailProvider(Protocol):
    """The subset of the Gmail client the orchestrator depends on."""

    async def list_messages(
        self, max_results: int | None = None, query: str | None = None
    ) -> list[dict[str, Any]]: ...

    async def get_message(self, message_id: str, *, format: str = "full") -> dict[str, Any]: ...


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one fetch run.

    ``emails`` is the full annotated cache as persisted, new messages first.
    """

    emails: list[EmailRecord]
    new_count: int
    query: str


def build_query(base_query: str, watermark: CacheWatermark) -> str:
    """Scope the inbox query to messages newer than the watermark, if any."""

    if watermark.last_fetched_timestamp is None:
        return base_query
    epoch = int(watermark.last_fetched_timestamp.timestamp())
    return f"{base_query} after:{epoch}".strip()


def sort_newest_first(emails: Sequence[EmailRecord]) -> list[EmailRecord]:
    """Sort by date descending; undated records go last, in input order."""

    return sorted(emails, key=lambda e: e.date or _OLDEST, reverse=True)


def merge_new_first(new: Sequence[EmailRecord], cached: Sequence[EmailRecord]) -> list[EmailRecord]:
    """New records, then cached ones whose provider id was not re-fetched.

    Duplicates are detected by provider message id. A re-fetched message
    replaces its cached copy, but keeps the cached enrichment when it has none
    of its own; Gmail message content never changes for a given id.
    """

    cached_by_id = {email.id: email for email in cached if email.id}
    merged: list[EmailRecord] = []
    seen: set[str] = set()
    for email in new:
        if email.id and email.id in seen:
            continue
        if email.id:
            seen.add(email.id)
        previous = cached_by_id.get(email.id)
        if previous is not None and previous.analyzed_at is not None and email.analyzed_at is None:
            email = email.model_copy(update={field: getattr(previous, field) for field in _ENRICHMENT_FIELDS})
        merged.append(email)

    merged.extend(email for email in cached if not email.id or email.id not in seen)
    return merged


class FetchOrchestrator:
    """Coordinates the mail provider, the email cache and the identity store."""

    def __init__(
        self,
        provider: MailProvider,
        cache: EmailCache,
        identity_store: IdentityStore,
        watermarks: WatermarkRepository,
        settings: Settings | None = None,
    ) -> None:
        from emailmaster.config import get_settings

        self.settings = settings or get_settings()
        self.provider = provider
        self.cache = cache
        self.identity_store = identity_store
        self.watermarks = watermarks

    async def fetch_new(self, max_results: int | None = None) -> FetchResult:
        """Fetch messages newer than the watermark and refresh the cache.

        Args:
            max_results: Upper bound on messages requested from the provider.
                Defaults to ``fetch_max_results``.

        Returns:
            The merged, index-annotated cache and how many new messages it
            gained.

        Raises:
            GmailAPIError: If listing messages fails.
            StateCorruptionError: If the existing cache or watermark is malformed.
            PersistenceError: If the mapping or cache cannot be written.
        """

        max_results = max_results or self.settings.fetch_max_results
        watermark = self.watermarks.load()
        query = build_query(self.settings.inbox_query, watermark)
        cached = self.cache.load()

        listed = await self.provider.list_messages(max_results=max_results, query=query)
        message_ids = [m["id"] for m in listed if isinstance(m.get("id"), str) and m["id"]]
        logger.info("fetch_listed", message_count=len(message_ids), query=query)

        if not message_ids:
            # Re-index anyway so a reset mapping file is rebuilt from the cache.
            annotated, _ = self.identity_store.assign_indices(cached)
            self.cache.save(annotated)
            logger.info("fetch_no_new_messages", cached_count=len(annotated))
            return FetchResult(emails=annotated, new_count=0, query=query)

        new = sort_newest_first(await self._fetch_records(message_ids))
        merged = merge_new_first(new, cached)
        annotated, _ = self.identity_store.assign_indices(merged)
        self.cache.save(annotated)

        newest = next((e for e in new if e.date is not None), None)
        if newest is not None:
            self.watermarks.save(
                CacheWatermark(last_fetched_id=newest.id, last_fetched_timestamp=newest.date)
            )

        logger.info(
            "fetch_completed",
            new_count=len(new),
            dropped=len(message_ids) - len(new),
            total=len(annotated),
        )
        return FetchResult(emails=annotated, new_count=len(new), query=query)

    async def _fetch_records(self, message_ids: Sequence[str]) -> list[EmailRecord]:
        semaphore = asyncio.Semaphore(self.settings.fetch_concurrency)

        async def fetch_one(message_id: str) -> EmailRecord | None:
            async with semaphore:
                try:
                    message = await self.provider.get_message(message_id, format="full")
                    return message_to_email_record(message)
                except (GmailAPIError, ValueError) as exc:
                    logger.warning("fetch_message_dropped", message_id=message_id, error=str(exc))
                    return None

        results = await asyncio.gather(*(fetch_one(mid) for mid in message_ids))
        return [r for r in results if r is not None]
