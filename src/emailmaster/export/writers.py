"""Timestamped report files under ``reports_dir``."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

import structlog

from emailmaster.analysis.reports import DailySummary, MoodTrendReport, mood_insights
from emailmaster.exceptions import PersistenceError
from emailmaster.models import EmailRecord, MessageIntent, Priority, Sentiment
from emailmaster.utils import write_json_atomic

logger = structlog.get_logger()


def timestamped_path(reports_dir: Path, prefix: str, extension: str, now: datetime | None = None) -> Path:
    now = now or datetime.now()
    return Path(reports_dir) / f"{prefix}_{now:%Y-%m-%d_%H-%M-%S}.{extension}"


def _write_text(path: Path, text: str) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"Could not write {path}: {exc}") from exc
    logger.info("report_written", path=str(path))
    return path


def _cell(value: str) -> str:
    return value.replace("|", "\\|").replace("\n", " ")


def export_json(emails: Sequence[EmailRecord], reports_dir: Path, now: datetime | None = None) -> Path:
    path = timestamped_path(reports_dir, "emails", "json", now)
    write_json_atomic(path, [email.to_json_dict() for email in emails])
    logger.info("report_written", path=str(path))
    return path


def render_markdown(emails: Sequence[EmailRecord], now: datetime | None = None) -> str:
    now = now or datetime.now()
    counts = {p: 0 for p in Priority}
    for email in emails:
        counts[email.classification.priority] += 1

    lines = [
        "# Email Analysis Report",
        "",
        f"Generated: {now:%B %d, %Y at %H:%M}",
        "",
        "## Summary",
        "",
        "| Priority | Count |",
        "| -------- | ----- |",
    ]
    lines += [f"| {p.value} | {counts[p]} |" for p in Priority]
    lines += [f"| **Total** | **{len(emails)}** |", ""]

    for priority in Priority:
        group = [e for e in emails if e.classification.priority is priority]
        if not group:
            continue
        lines += [f"## {priority.value} Emails ({len(group)})", ""]
        for email in group:
            ref = f"#{email.assigned_index} " if email.assigned_index else ""
            lines += [
                f"### {ref}{email.subject or '(no subject)'}",
                "",
                f"- **From:** {email.sender}",
                f"- **Date:** {email.date_iso or 'unknown'}",
                f"- **Type:** {email.classification.email_type.value}",
                f"- **Action Required:** {'Yes' if email.classification.action_required else 'No'}",
                "",
            ]
            sections = [
                ("Action Items", email.classification.action_items),
                ("Summary", email.summary.summary),
                ("Key Points", email.summary.key_points),
                ("Deadlines", email.summary.deadlines),
            ]
            for title, items in sections:
                if items:
                    lines += [f"#### {title}", ""] + [f"- {item}" for item in items] + [""]
            if email.suggested_response:
                lines += ["#### Suggested Response", "", "```", email.suggested_response, "```", ""]
            lines += ["---", ""]

    return "\n".join(lines)


def export_markdown(emails: Sequence[EmailRecord], reports_dir: Path, now: datetime | None = None) -> Path:
    path = timestamped_path(reports_dir, "emails", "md", now)
    return _write_text(path, render_markdown(emails, now))


def render_daily_summary(summary: DailySummary) -> str:
    lines = [
        "# Daily Email Summary",
        "",
        f"Date: {summary.generated_at:%Y-%m-%d}",
        "",
        "## Email Counts",
        "",
    ]
    lines += [f"- {p.value}: {summary.priority_counts.get(p, 0)}" for p in Priority]
    lines += [f"- **Total: {summary.total_emails}**", ""]

    if summary.actionable:
        lines += [
            "## Actionable Emails",
            "",
            "| Priority | Subject | From | Action Items |",
            "| -------- | ------- | ---- | ------------ |",
        ]
        for e in summary.actionable:
            items = ", ".join(e.classification.action_items)
            lines.append(
                f"| {e.classification.priority.value} | {_cell(e.subject)} | {_cell(e.sender)} | {_cell(items)} |"
            )
        lines.append("")

    if summary.time_sensitive:
        lines += [
            "## Time-Sensitive Emails",
            "",
            "| Priority | Subject | From | Deadlines |",
            "| -------- | ------- | ---- | --------- |",
        ]
        for e in summary.time_sensitive:
            deadlines = ", ".join(e.summary.deadlines)
            lines.append(
                f"| {e.classification.priority.value} | {_cell(e.subject)} | {_cell(e.sender)} | {_cell(deadlines)} |"
            )
        lines.append("")

    return "\n".join(lines)


def export_daily_summary(summary: DailySummary, reports_dir: Path, now: datetime | None = None) -> Path:
    path = timestamped_path(reports_dir, "daily_summary", "md", now)
    return _write_text(path, render_daily_summary(summary))


def render_mood_report(report: MoodTrendReport) -> str:
    lines = [
        "# Email Mood Trend Report",
        "",
        f"Generated: {report.generated_at:%Y-%m-%d %H:%M} UTC",
        "",
        "## Summary",
        "",
        f"- **Overall Trend:** {report.overall_trend}",
        f"- **Stress Level:** {report.stress_category} ({report.average_stress:.1f}/10)",
        f"- **Total Emails Analyzed:** {report.total_emails}",
        "",
        "## Sentiment Distribution",
        "",
    ]
    for sentiment in Sentiment:
        count = report.sentiment_counts.get(sentiment, 0)
        lines.append(f"- {sentiment.value.capitalize()}: {count} ({report.share(count):.1f}%)")
    lines += ["", "## Email Type Distribution", ""]
    for intent in MessageIntent:
        count = report.intent_counts.get(intent, 0)
        lines.append(f"- {intent.value.capitalize()}: {count} ({report.share(count):.1f}%)")

    insights = mood_insights(report)
    if insights:
        lines += ["", "## Insights", ""] + [f"- {insight}" for insight in insights]

    return "\n".join(lines) + "\n"


def export_mood_report(report: MoodTrendReport, reports_dir: Path, now: datetime | None = None) -> Path:
    path = timestamped_path(reports_dir, "mood_trend", "md", now)
    return _write_text(path, render_mood_report(report))
