"""Prompt builders for the analysis passes.

Each batch prompt embeds the emails as a JSON array of
``{id, subject, from, date, content}`` and asks for a JSON array keyed by id.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import date

from emailmaster.models import EmailRecord

PROMPT_VERSION = "v1"

# Bodies can be huge (HTML newsletters); the model only needs the gist.
MAX_CONTENT_CHARS = 4000


def _emails_json(emails: Sequence[EmailRecord]) -> str:
    items = []
    for email in emails:
        item = email.to_prompt_dict()
        item["content"] = item["content"][:MAX_CONTENT_CHARS]
        items.append(item)
    return json.dumps(items, indent=2, ensure_ascii=False)


def build_classification_prompt(emails: Sequence[EmailRecord]) -> str:
    return f"""
Analyze these emails and classify each one's priority as either "Urgent", "Important", or "Normal".
Also determine if each contains any action items that require a response or action.

Emails:
{_emails_json(emails)}

Respond in JSON format only with an array of results, one for each email:
[
  {{
    "id": "email_id",
    "priority": "Urgent|Important|Normal",
    "priorityConfidence": <number between 0-100>,
    "type": "Personal|Work|Marketing|Updates|Others",
    "actionRequired": true|false,
    "actionConfidence": <number between 0-100>,
    "actionItems": ["list", "of", "action", "items"]
  }}
]
""".strip()


def build_summary_prompt(emails: Sequence[EmailRecord]) -> str:
    return f"""
Summarize each of these emails in bullet points. Extract key points, deadlines, and important information.

Emails:
{_emails_json(emails)}

Respond in JSON format only with an array of results, one for each email:
[
  {{
    "id": "email_id",
    "summary": ["bullet point 1", "bullet point 2"],
    "keyPoints": ["key point 1"],
    "deadlines": ["deadline 1"],
    "estimatedReadingTime": <number in minutes>
  }}
]
""".strip()


def build_response_prompt(emails: Sequence[EmailRecord]) -> str:
    return f"""
Generate professional responses to each of these emails. The responses should be concise,
address any questions or action items, and maintain a professional tone.

Emails:
{_emails_json(emails)}

Respond in JSON format only with an array of results, one for each email:
[
  {{"id": "email_id", "suggestedResponse": "Response text here..."}}
]
""".strip()


def build_sentiment_prompt(emails: Sequence[EmailRecord]) -> str:
    return f"""
Analyze the sentiment of these emails. Determine if each is positive, negative, or neutral.
Also identify if each is an appreciation, complaint, request, or information.

Emails:
{_emails_json(emails)}

Respond in JSON format only with an array of results, one for each email:
[
  {{
    "id": "email_id",
    "sentiment": "positive|negative|neutral",
    "sentimentScore": <number between -1 and 1>,
    "type": "appreciation|complaint|request|information|other",
    "stressLevel": <number between 0-10>
  }}
]
""".strip()


def build_follow_up_prompt(emails: Sequence[EmailRecord]) -> str:
    return f"""
Analyze these emails and determine if each requires a follow-up response.
Consider whether it asks questions, requests information or action, or whether
the tone suggests the sender expects a reply.

Emails:
{_emails_json(emails)}

Respond in JSON format only with an array of results, one for each email:
[
  {{
    "id": "email_id",
    "needsFollowUp": true|false,
    "confidence": <number between 0-100>,
    "reason": "brief explanation",
    "suggestedFollowUp": "suggested follow-up message"
  }}
]
""".strip()


def build_calendar_prompt(emails: Sequence[EmailRecord], today: date) -> str:
    return f"""
Extract any date/time-based tasks or meetings from these emails. Only extract important dates,
not every date mentioned. Name the events properly based on context. Today is {today.isoformat()};
resolve relative dates ("next Friday") against each email's date.

Emails:
{_emails_json(emails)}

Respond in JSON format only with an array of results, one for each email:
[
  {{
    "id": "email_id",
    "events": [
      {{
        "title": "Event title",
        "date": "YYYY-MM-DD",
        "time": "HH:MM or null",
        "endTime": "HH:MM or null",
        "description": "Brief description of the event"
      }}
    ]
  }}
]
""".strip()


def build_search_prompt(emails: Sequence[EmailRecord], query: str) -> str:
    return f"""
Find the emails that match this request: "{query}"

Emails:
{_emails_json(emails)}

Respond in JSON format only with an array of matches (an empty array if none match):
[
  {{"id": "email_id", "reason": "why this email matches"}}
]
""".strip()


def build_reply_draft_prompt(email: EmailRecord) -> str:
    return f"""
Generate a full professional reply draft for this email, including greeting, body, and closing.
The reply should reflect the appropriate urgency, tone (friendly or formal based on context),
and address all questions or expected outcomes mentioned.

Email Subject: {email.subject}
From: {email.sender}
Date: {email.date_iso}
Content: {email.content[:MAX_CONTENT_CHARS]}

Generate only the reply text, without any additional formatting or explanation.
""".strip()
