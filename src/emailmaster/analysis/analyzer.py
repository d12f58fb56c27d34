"""AI analysis passes over cached emails.

This module is designed to be called in batch jobs.
It is best-effort: a failed or unparseable model response falls back to the
neutral default for the affected emails rather than aborting the whole run.
The analyzer only enriches records; identity fields and persistence are left
to the caller.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Protocol, TypeVar

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from emailmaster.analysis import prompts
from emailmaster.analysis.response_parsing import parse_ai_response
from emailmaster.config import Settings
from emailmaster.exceptions import ConfigurationError, TextGenerationError
from emailmaster.models import (
    CalendarEvent,
    Classification,
    EmailRecord,
    EmailSummary,
    FollowUpResult,
    SentimentResult,
)

logger = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")

ProgressCallback = Callable[[str, int, int], None]

NO_RESPONSE = "Unable to generate a suggested response."


class TextGenerator(Protocol):
    """Anything that turns a prompt into raw model text."""

    async def generate(self, prompt: str) -> str: ...


@dataclass(frozen=True)
class SearchHit:
    email: EmailRecord
    reason: str


def _validate_or_default(model_cls: type[M], raw: dict[str, Any] | None, **fixed: Any) -> M:
    if raw is None:
        return model_cls(**fixed)
    try:
        return model_cls.model_validate({**raw, **fixed})
    except PydanticValidationError as exc:
        logger.debug("ai_result_invalid", model=model_cls.__name__, error_count=exc.error_count())
        return model_cls(**fixed)


class EmailAnalyzer:
    """Runs prompt batches through a text generator and maps results back by id."""

    def __init__(self, generator: TextGenerator, settings: Settings | None = None) -> None:
        """Initialize the analyzer.

        Args:
            generator: Text-generation backend (Gemini or Ollama client).
            settings: Application settings. If None, uses default settings.
        """
        from emailmaster.config import get_settings

        self.settings = settings or get_settings()
        self.generator = generator

    def _batches(self, items: Sequence[T]) -> list[list[T]]:
        size = self.settings.ai_batch_size
        return [list(items[i : i + size]) for i in range(0, len(items), size)]

    async def _ask(self, stage: str, prompt: str) -> list[dict[str, Any]] | None:
        """Send one prompt; None means the model gave nothing usable."""

        try:
            text = await self.generator.generate(prompt)
        except TextGenerationError as exc:
            logger.warning("ai_batch_failed", stage=stage, error=str(exc))
            return None

        results = parse_ai_response(text)
        if results is None:
            logger.warning("ai_response_unparseable", stage=stage, response_length=len(text or ""))
        return results

    async def _ask_by_id(self, stage: str, prompt: str) -> dict[str, dict[str, Any]]:
        results = await self._ask(stage, prompt) or []
        return {str(r["id"]): r for r in results if r.get("id") is not None}

    async def analyze(
        self,
        emails: Sequence[EmailRecord],
        *,
        force: bool = False,
        progress: ProgressCallback | None = None,
    ) -> list[EmailRecord]:
        """Classify, summarize and draft responses for emails.

        Only emails never analyzed before are sent to the model unless force is
        set. Every email that goes through the pass comes back with all three
        enrichment fields filled, using neutral defaults where the model failed.

        Args:
            emails: Records to enrich.
            force: Re-analyze emails that already carry enrichment.
            progress: Optional ``callback(stage, batch_number, batch_count)``.

        Returns:
            The records in their original order, enriched copies in place of
            the analyzed ones.

        Raises:
            ConfigurationError: If the text-generation backend is not configured.
        """

        result = list(emails)
        pending = [i for i, e in enumerate(result) if force or e.analyzed_at is None]
        if not pending:
            logger.info("analysis_skipped", reason="all_emails_already_analyzed")
            return result

        batches = self._batches(pending)
        logger.info("analysis_started", email_count=len(pending), batch_count=len(batches))

        stages: list[tuple[str, Callable[[Sequence[EmailRecord]], str], Callable[[EmailRecord, dict | None], dict]]] = [
            ("classification", prompts.build_classification_prompt, self._apply_classification),
            ("summarization", prompts.build_summary_prompt, self._apply_summary),
            ("response generation", prompts.build_response_prompt, self._apply_response),
        ]

        updates: dict[int, dict[str, Any]] = {i: {} for i in pending}
        for stage, build_prompt, apply in stages:
            for number, batch in enumerate(batches, start=1):
                if progress is not None:
                    progress(stage, number, len(batches))
                records = [result[i] for i in batch]
                by_id = await self._ask_by_id(stage, build_prompt(records))
                for i, record in zip(batch, records):
                    updates[i].update(apply(record, by_id.get(record.reference_id)))

        analyzed_at = datetime.now(timezone.utc)
        for i, update in updates.items():
            result[i] = result[i].model_copy(update={**update, "analyzed_at": analyzed_at})

        logger.info("analysis_completed", email_count=len(pending))
        return result

    @staticmethod
    def _apply_classification(email: EmailRecord, raw: dict[str, Any] | None) -> dict[str, Any]:
        return {"classification": _validate_or_default(Classification, raw)}

    @staticmethod
    def _apply_summary(email: EmailRecord, raw: dict[str, Any] | None) -> dict[str, Any]:
        summary = _validate_or_default(EmailSummary, raw)
        if not summary.summary and email.snippet:
            summary = summary.model_copy(update={"summary": [email.snippet]})
        return {"summary": summary}

    @staticmethod
    def _apply_response(email: EmailRecord, raw: dict[str, Any] | None) -> dict[str, Any]:
        text = (raw or {}).get("suggestedResponse")
        return {"suggested_response": str(text).strip() if text else NO_RESPONSE}

    async def analyze_sentiment(self, emails: Sequence[EmailRecord]) -> list[SentimentResult]:
        """Sentiment for every email, neutral where the model gave no answer."""

        results: list[SentimentResult] = []
        for batch in self._batches(emails):
            by_id = await self._ask_by_id("sentiment", prompts.build_sentiment_prompt(batch))
            for email in batch:
                key = email.reference_id
                results.append(_validate_or_default(SentimentResult, by_id.get(key), id=key))
        return results

    async def check_follow_up(self, emails: Sequence[EmailRecord]) -> list[FollowUpResult]:
        """Follow-up assessment for every email; defaults to no follow-up needed."""

        results: list[FollowUpResult] = []
        for batch in self._batches(emails):
            by_id = await self._ask_by_id("follow_up", prompts.build_follow_up_prompt(batch))
            for email in batch:
                key = email.reference_id
                results.append(_validate_or_default(FollowUpResult, by_id.get(key), id=key))
        return results

    async def extract_calendar_events(
        self, emails: Sequence[EmailRecord], today: date | None = None
    ) -> list[CalendarEvent]:
        """Dated tasks and meetings mentioned in emails.

        Events without a parseable date are dropped. Each event records the
        email it came from in source_id.
        """

        today = today or datetime.now(timezone.utc).date()
        events: list[CalendarEvent] = []
        for batch in self._batches(emails):
            items = await self._ask("calendar", prompts.build_calendar_prompt(batch, today)) or []
            for item in items:
                source_id = item.get("id")
                raw_events = item.get("events") if "events" in item else [item]
                if not isinstance(raw_events, list):
                    continue
                for raw in raw_events:
                    if not isinstance(raw, dict):
                        continue
                    try:
                        event = CalendarEvent.model_validate(raw)
                    except PydanticValidationError:
                        logger.debug("calendar_event_dropped", source_id=source_id, title=raw.get("title"))
                        continue
                    if event.source_id is None and source_id is not None:
                        event = event.model_copy(update={"source_id": str(source_id)})
                    events.append(event)

        logger.info("calendar_events_extracted", email_count=len(emails), event_count=len(events))
        return events

    async def generate_reply_draft(self, email: EmailRecord) -> str:
        """Full reply draft for one email.

        Raises:
            TextGenerationError: If the model call fails; the user asked for this
                draft explicitly, so there is no silent fallback.
        """

        text = await self.generator.generate(prompts.build_reply_draft_prompt(email))
        draft = text.strip()
        if not draft:
            raise TextGenerationError("The model returned an empty reply draft.")
        return draft

    async def search(self, emails: Sequence[EmailRecord], query: str) -> list[SearchHit]:
        """Natural-language search, falling back to plain text matching.

        The fallback kicks in when the backend is not configured or fails, not
        when the model simply finds no matches.
        """

        by_key = {email.reference_id: email for email in emails}
        hits: list[SearchHit] = []
        try:
            for batch in self._batches(emails):
                text = await self.generator.generate(prompts.build_search_prompt(batch, query))
                results = parse_ai_response(text)
                if results is None:
                    raise TextGenerationError("unparseable search response")
                for item in results:
                    email = by_key.get(str(item.get("id")))
                    if email is not None and all(h.email is not email for h in hits):
                        hits.append(SearchHit(email=email, reason=str(item.get("reason") or "")))
        except (TextGenerationError, ConfigurationError) as exc:
            logger.info("search_fallback", reason=str(exc))
            return text_search(emails, query)
        return hits


def text_search(emails: Sequence[EmailRecord], query: str) -> list[SearchHit]:
    """Case-insensitive substring search over subject, sender and content."""

    needle = query.casefold().strip()
    if not needle:
        return []
    hits = []
    for email in emails:
        for label, value in (("subject", email.subject), ("from", email.sender), ("content", email.content)):
            if needle in value.casefold():
                hits.append(SearchHit(email=email, reason=f"text match in {label}"))
                break
    return hits
