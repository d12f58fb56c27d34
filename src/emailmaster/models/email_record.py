"""Email record model.

One record per fetched message. Content fields come from the mail provider,
identity fields (unique_id, assigned_index) are stamped by the identity store
and the enrichment fields are filled in by later analysis passes. Records are
persisted with camelCase keys so emails.json stays readable by other tools.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from emailmaster.models.enrichment import Classification, EmailSummary


class EmailRecord(BaseModel):
    """A fetched email plus its identity and optional AI enrichment."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = Field(default="", description="Provider-native message ID")
    thread_id: str | None = Field(default=None, description="Provider thread ID")
    subject: str = Field(default="", description="Subject header")
    sender: str = Field(default="", alias="from", description="Raw From header")
    to: str = Field(default="", description="Raw To header")
    message_id: str | None = Field(default=None, description="RFC 5322 Message-ID header")
    date: datetime | None = Field(default=None, description="Parsed Date header")
    body: str = Field(default="", description="Decoded plain-text (or HTML) body")
    snippet: str = Field(default="", description="Provider-supplied snippet")
    label_ids: list[str] = Field(default_factory=list, description="Provider label IDs")

    unique_id: str | None = Field(default=None, description="Stable reference ID")
    assigned_index: int | None = Field(
        default=None, ge=1, description="Stable human-friendly index"
    )

    classification: Classification = Field(default_factory=Classification)
    summary: EmailSummary = Field(default_factory=EmailSummary)
    suggested_response: str = Field(default="")
    analyzed_at: datetime | None = Field(
        default=None, description="When the last analysis pass ran; None if never"
    )

    @property
    def content(self) -> str:
        """Text handed to the model: the body, or the snippet when the body is empty."""
        return self.body or self.snippet

    @property
    def date_iso(self) -> str:
        return self.date.isoformat() if self.date else ""

    @property
    def reference_id(self) -> str:
        """Key used to match model output back to this record."""
        return self.id or self.unique_id or ""

    def to_prompt_dict(self) -> dict[str, str]:
        """The subset of fields embedded in analysis prompts."""
        return {
            "id": self.reference_id,
            "subject": self.subject,
            "from": self.sender,
            "date": self.date_iso,
            "content": self.content,
        }

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
