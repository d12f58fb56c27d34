"""Aggregate reports over analyzed emails and sentiment results."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from emailmaster.models import EmailRecord, MessageIntent, Priority, Sentiment, SentimentResult


@dataclass(frozen=True)
class DailySummary:
    """Priority breakdown plus the emails that need attention."""

    generated_at: datetime
    total_emails: int
    priority_counts: dict[Priority, int]
    actionable: list[EmailRecord] = field(default_factory=list)
    time_sensitive: list[EmailRecord] = field(default_factory=list)


@dataclass(frozen=True)
class MoodTrendReport:
    """Sentiment distribution across a set of emails."""

    generated_at: datetime
    total_emails: int
    sentiment_counts: dict[Sentiment, int]
    intent_counts: dict[MessageIntent, int]
    average_stress: float
    overall_trend: str
    stress_category: str

    def share(self, count: int) -> float:
        """Percentage of total_emails, 0 for an empty report."""
        return 0.0 if self.total_emails == 0 else count / self.total_emails * 100


def generate_daily_summary(emails: Sequence[EmailRecord]) -> DailySummary:
    counts = {p: 0 for p in Priority}
    actionable: list[EmailRecord] = []
    time_sensitive: list[EmailRecord] = []

    for email in emails:
        counts[email.classification.priority] += 1
        if email.classification.action_required:
            actionable.append(email)
        if email.summary.deadlines:
            time_sensitive.append(email)

    return DailySummary(
        generated_at=datetime.now(timezone.utc),
        total_emails=len(emails),
        priority_counts=counts,
        actionable=actionable,
        time_sensitive=time_sensitive,
    )


def _overall_trend(counts: dict[Sentiment, int]) -> str:
    positive = counts[Sentiment.POSITIVE]
    negative = counts[Sentiment.NEGATIVE]
    neutral = counts[Sentiment.NEUTRAL]
    if positive > negative and positive > neutral:
        return "Positive"
    if negative > positive and negative > neutral:
        return "Negative"
    return "Neutral"


def stress_category(average: float) -> str:
    if average < 3:
        return "Low"
    if average < 7:
        return "Moderate"
    return "High"


def generate_mood_report(results: Sequence[SentimentResult]) -> MoodTrendReport:
    """Summarize sentiment results into a trend and a stress category.

    The trend is the sentiment holding a strict majority over each of the other
    two; ties read as Neutral. An empty input has zero average stress.
    """

    sentiments = Counter(r.sentiment for r in results)
    intents = Counter(r.intent for r in results)
    sentiment_counts = {s: sentiments.get(s, 0) for s in Sentiment}
    intent_counts = {i: intents.get(i, 0) for i in MessageIntent}
    average = sum(r.stress_level for r in results) / len(results) if results else 0.0

    return MoodTrendReport(
        generated_at=datetime.now(timezone.utc),
        total_emails=len(results),
        sentiment_counts=sentiment_counts,
        intent_counts=intent_counts,
        average_stress=average,
        overall_trend=_overall_trend(sentiment_counts),
        stress_category=stress_category(average),
    )


def mood_insights(report: MoodTrendReport) -> list[str]:
    insights = []
    if report.sentiment_counts[Sentiment.NEGATIVE] > report.sentiment_counts[Sentiment.POSITIVE]:
        insights.append("Your inbox is trending more negative than positive.")
    if report.intent_counts[MessageIntent.REQUEST] > report.intent_counts[MessageIntent.APPRECIATION]:
        insights.append("You are receiving more requests than appreciation emails.")
    if report.average_stress > 6:
        insights.append("Stress levels are high; consider blocking time to work through the inbox.")
    if report.intent_counts[MessageIntent.COMPLAINT] > report.total_emails * 0.3:
        insights.append("A significant share of emails are complaints.")
    return insights
