"""Command-line interface for EmailMaster.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

import structlog

from emailmaster import __version__
from emailmaster.analysis import (
    EmailAnalyzer,
    build_text_generator,
    generate_daily_summary,
    generate_mood_report,
)
from emailmaster.cache import EmailCache, WatermarkRepository
from emailmaster.config import Settings, get_settings
from emailmaster.exceptions import EmailMasterError, ValidationError
from emailmaster.export import (
    export_daily_summary,
    export_json,
    export_markdown,
    export_mood_report,
    format_events_plain,
    timestamped_path,
    write_ics,
)
from emailmaster.fetcher import FetchOrchestrator
from emailmaster.gmail.client import GmailClient
from emailmaster.identity import IdentityStore, ResolveResult, format_reference, resolve_identifier
from emailmaster.models import EmailRecord
from emailmaster.replies import ReplyService

logger = structlog.get_logger()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="emailmaster", description="EmailMaster")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch_parser = subparsers.add_parser("fetch", help="Fetch new inbox emails into the local cache")
    fetch_parser.add_argument(
        "--max",
        type=int,
        default=None,
        help="Maximum number of messages to request (default: settings fetch_max_results)",
    )

    list_parser = subparsers.add_parser("list", help="List cached emails with their indices")
    list_parser.add_argument("--limit", type=int, default=20, help="Max emails to show")

    view_parser = subparsers.add_parser("view", help="Show one cached email")
    view_parser.add_argument("identifier", nargs="?", help="Index, unique ID, or ID prefix")
    view_parser.add_argument("--id", dest="unique_id", default=None, help="Look up by unique ID only")

    analyze_parser = subparsers.add_parser("analyze", help="Classify and summarize cached emails")
    analyze_parser.add_argument("--force", action="store_true", help="Re-analyze already analyzed emails")

    subparsers.add_parser("summary", help="Daily summary of analyzed emails")

    export_parser = subparsers.add_parser("export", help="Export cached emails to a report file")
    export_parser.add_argument("--format", choices=["json", "markdown"], default="json")

    calendar_parser = subparsers.add_parser("calendar-export", help="Extract events into an .ics file")
    calendar_parser.add_argument("--email", default=None, help="Only this email (index, ID, or prefix)")
    calendar_parser.add_argument("--file", type=Path, default=None, help="Output .ics path")

    subparsers.add_parser("mood", help="Sentiment and stress trend report")
    subparsers.add_parser("followups", help="Emails still waiting for a reply")

    search_parser = subparsers.add_parser("search", help="Natural-language search over cached emails")
    search_parser.add_argument("query", help="What to look for")

    reply_parser = subparsers.add_parser("reply", help="Reply to a cached email")
    reply_parser.add_argument("identifier", help="Index, unique ID, or ID prefix")
    body_group = reply_parser.add_mutually_exclusive_group(required=True)
    body_group.add_argument("--ai", action="store_true", help="Draft the reply with the AI backend")
    body_group.add_argument("--message", default=None, help="Reply text")
    mode_group = reply_parser.add_mutually_exclusive_group()
    mode_group.add_argument("--send", action="store_true", help="Send the reply")
    mode_group.add_argument("--draft", action="store_true", help="Save the reply as a Gmail draft")

    subparsers.add_parser("config", help="Show effective configuration")

    return parser


def _configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level.upper(), logging.WARNING)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _load_emails(settings: Settings) -> list[EmailRecord]:
    cache = EmailCache(settings.data_dir)
    if not cache.exists():
        raise ValidationError('No emails found. Run "emailmaster fetch" first.')
    emails = cache.load()
    if not emails:
        raise ValidationError('No emails found. Run "emailmaster fetch" first.')
    return emails


def _resolve(settings: Settings, token: str, *, allow_index: bool = True) -> EmailRecord:
    result: ResolveResult = resolve_identifier(
        token,
        EmailCache(settings.data_dir),
        IdentityStore(settings.data_dir),
        allow_index=allow_index,
    )
    if not result.success or result.email is None:
        message = result.error or f"Email not found: {token}"
        if result.candidates:
            message += "\nCandidates:\n" + "\n".join(f"  {c}" for c in result.candidates)
        raise ValidationError(message)
    return result.email


def _analyzer(settings: Settings) -> EmailAnalyzer:
    return EmailAnalyzer(build_text_generator(settings), settings)


def _one_line(email: EmailRecord) -> str:
    date_part = email.date.strftime("%Y-%m-%d %H:%M") if email.date else "(no date)"
    index = f"#{email.assigned_index}" if email.assigned_index else "#?"
    priority = f"[{email.classification.priority.value}] " if email.analyzed_at else ""
    return f"{index:>5}  {date_part}  {email.sender[:40]:<40}  {priority}{email.subject}"


def _print_emails(emails: Sequence[EmailRecord]) -> None:
    for email in emails:
        print(_one_line(email))


async def _cmd_fetch(args: argparse.Namespace, settings: Settings) -> int:
    gmail = GmailClient(settings)
    await gmail.authenticate()

    orchestrator = FetchOrchestrator(
        gmail,
        EmailCache(settings.data_dir),
        IdentityStore(settings.data_dir),
        WatermarkRepository(settings.data_dir),
        settings,
    )
    result = await orchestrator.fetch_new(args.max)

    if result.new_count == 0:
        print(f"No new emails. {len(result.emails)} emails in cache.")
    else:
        print(f"Fetched {result.new_count} new emails. {len(result.emails)} emails in cache.")
        _print_emails(result.emails[: result.new_count])
    return 0


def _cmd_list(args: argparse.Namespace, settings: Settings) -> int:
    emails = _load_emails(settings)
    shown = emails[: args.limit] if args.limit and args.limit > 0 else emails
    _print_emails(shown)
    if len(shown) < len(emails):
        print(f"... {len(emails) - len(shown)} more (use --limit)")
    return 0


def _cmd_view(args: argparse.Namespace, settings: Settings) -> int:
    if args.unique_id:
        email = _resolve(settings, args.unique_id, allow_index=False)
    elif args.identifier:
        email = _resolve(settings, args.identifier)
    else:
        raise ValidationError("Provide an email index or ID, e.g. emailmaster view 3")

    print(f"Email {format_reference(email)}")
    print(f"Subject: {email.subject}")
    print(f"From: {email.sender}")
    print(f"To: {email.to}")
    print(f"Date: {email.date_iso or 'unknown'}")
    if email.analyzed_at:
        c = email.classification
        print(f"Priority: {c.priority.value} ({c.priority_confidence:.0f}%)")
        print(f"Type: {c.email_type.value}")
        print(f"Action required: {'yes' if c.action_required else 'no'}")
        for item in c.action_items:
            print(f"  - {item}")
        if email.summary.summary:
            print("Summary:")
            for point in email.summary.summary:
                print(f"  - {point}")
    print()
    print(email.content)
    if email.suggested_response:
        print()
        print("Suggested response:")
        print(email.suggested_response)
    return 0


async def _cmd_analyze(args: argparse.Namespace, settings: Settings) -> int:
    cache = EmailCache(settings.data_dir)
    emails = _load_emails(settings)

    def progress(stage: str, number: int, total: int) -> None:
        print(f"{stage}: batch {number}/{total}", file=sys.stderr)

    analyzed = await _analyzer(settings).analyze(emails, force=args.force, progress=progress)
    cache.save(analyzed)

    summary = generate_daily_summary(analyzed)
    counts = ", ".join(f"{p.value}: {n}" for p, n in summary.priority_counts.items())
    print(f"Analyzed {summary.total_emails} emails ({counts}).")
    return 0


def _cmd_summary(args: argparse.Namespace, settings: Settings) -> int:
    emails = [e for e in _load_emails(settings) if e.analyzed_at is not None]
    if not emails:
        raise ValidationError('No analyzed emails. Run "emailmaster analyze" first.')

    summary = generate_daily_summary(emails)
    print(f"Total: {summary.total_emails}")
    for priority, count in summary.priority_counts.items():
        print(f"{priority.value}: {count}")
    if summary.actionable:
        print("\nActionable:")
        for email in summary.actionable:
            print(f"  {format_reference(email)} {email.subject}")
    if summary.time_sensitive:
        print("\nTime-sensitive:")
        for email in summary.time_sensitive:
            print(f"  {format_reference(email)} {email.subject}: {', '.join(email.summary.deadlines)}")

    path = export_daily_summary(summary, settings.reports_dir)
    print(f"\nSaved to {path}")
    return 0


def _cmd_export(args: argparse.Namespace, settings: Settings) -> int:
    emails = _load_emails(settings)
    if args.format == "markdown":
        path = export_markdown(emails, settings.reports_dir)
    else:
        path = export_json(emails, settings.reports_dir)
    print(f"Exported {len(emails)} emails to {path}")
    return 0


async def _cmd_calendar_export(args: argparse.Namespace, settings: Settings) -> int:
    emails = [_resolve(settings, args.email)] if args.email else _load_emails(settings)

    events = await _analyzer(settings).extract_calendar_events(emails)
    print(format_events_plain(events))
    if not events:
        return 0

    path = write_ics(events, args.file or timestamped_path(settings.reports_dir, "calendar_events", "ics"))
    print(f"Saved {len(events)} events to {path}")
    return 0


async def _cmd_mood(args: argparse.Namespace, settings: Settings) -> int:
    emails = _load_emails(settings)
    results = await _analyzer(settings).analyze_sentiment(emails)
    report = generate_mood_report(results)

    print(f"Overall trend: {report.overall_trend}")
    print(f"Stress level: {report.stress_category} ({report.average_stress:.1f}/10)")
    for sentiment, count in report.sentiment_counts.items():
        print(f"  {sentiment.value}: {count} ({report.share(count):.1f}%)")

    path = export_mood_report(report, settings.reports_dir)
    print(f"\nSaved to {path}")
    return 0


async def _cmd_followups(args: argparse.Namespace, settings: Settings) -> int:
    emails = _load_emails(settings)
    results = await _analyzer(settings).check_follow_up(emails)

    pending = [(email, r) for email, r in zip(emails, results) if r.needs_follow_up]
    if not pending:
        print("No emails need a follow-up.")
        return 0

    for email, result in pending:
        print(f"{format_reference(email)} {email.subject} ({result.confidence:.0f}%)")
        if result.reason:
            print(f"  Reason: {result.reason}")
        if result.suggested_follow_up:
            print(f"  Suggested: {result.suggested_follow_up}")
    return 0


async def _cmd_search(args: argparse.Namespace, settings: Settings) -> int:
    emails = _load_emails(settings)
    hits = await _analyzer(settings).search(emails, args.query)
    if not hits:
        print(f"No emails match: {args.query}")
        return 0

    for hit in hits:
        print(_one_line(hit.email))
        if hit.reason:
            print(f"       {hit.reason}")
    return 0


async def _cmd_reply(args: argparse.Namespace, settings: Settings) -> int:
    email = _resolve(settings, args.identifier)

    gmail = None
    if args.send or args.draft:
        gmail = GmailClient(settings)
        await gmail.authenticate()

    service = ReplyService(gmail, _analyzer(settings) if args.ai else None, settings)
    outcome = await service.reply(
        email,
        message=args.message,
        use_ai=args.ai,
        send=args.send,
        draft=args.draft,
    )

    if outcome.kind == "preview":
        print(f"To: {outcome.message['To']}")
        print(f"Subject: {outcome.message['Subject']}")
        print()
        print(outcome.body)
        print("\n(preview only; use --draft or --send)")
    elif outcome.kind == "draft":
        print(f"Draft saved for {format_reference(email)} (draft ID: {outcome.gmail_id})")
    else:
        print(f"Reply sent to {outcome.message['To']} (message ID: {outcome.gmail_id})")
    return 0


def _cmd_config(args: argparse.Namespace, settings: Settings) -> int:
    for name, value in settings.model_dump().items():
        print(f"{name}: {value}")
    return 0


_COMMANDS = {
    "fetch": _cmd_fetch,
    "list": _cmd_list,
    "view": _cmd_view,
    "analyze": _cmd_analyze,
    "summary": _cmd_summary,
    "export": _cmd_export,
    "calendar-export": _cmd_calendar_export,
    "mood": _cmd_mood,
    "followups": _cmd_followups,
    "search": _cmd_search,
    "reply": _cmd_reply,
    "config": _cmd_config,
}


def main(args: list[str] | None = None) -> int:
    """Main entry point for the EmailMaster CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()
    _configure_logging(settings)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    logger.info("emailmaster_started", version=__version__, command=parsed.command, debug=settings.debug)

    handler = _COMMANDS.get(parsed.command)
    if handler is None:
        logger.error("unknown_command", command=parsed.command)
        return 2

    try:
        result = handler(parsed, settings)
        if asyncio.iscoroutine(result):
            result = asyncio.run(result)
        return result
    except EmailMasterError as exc:
        logger.debug("command_failed", command=parsed.command, error_type=type(exc).__name__)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
