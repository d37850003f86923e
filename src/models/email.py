"""Pydantic models for normalized mail records and fetch filters."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ProviderName = Literal["gmail", "outlook", "imap", "unknown"]
MessageFormat = Literal["raw", "full", "metadata"]


class Attachment(BaseModel):
    """Attachment metadata carried by a normalized email."""

    filename: str = Field(default=..., description="Attachment file name")
    mime_type: str = Field(
        default="application/octet-stream", description="MIME type of the attachment"
    )
    size: int = Field(default=0, ge=0, description="Attachment size in bytes")
    content_id: str | None = Field(
        default=None, description="Content-ID for inline attachments"
    )


class NormalizedEmail(BaseModel):
    """Provider-independent representation of one message."""

    id: str = Field(default=..., description="Provider-specific message identifier")
    thread_id: str | None = Field(default=None, description="Conversation identifier")
    sender: str = Field(default="", description="Raw From header value")
    to: list[str] = Field(default_factory=list, description="Recipient addresses")
    cc: list[str] = Field(default_factory=list, description="Carbon-copy addresses")
    bcc: list[str] = Field(default_factory=list, description="Blind carbon-copy addresses")
    subject: str | None = Field(default=None, description="Subject line")
    body_text: str | None = Field(default=None, description="Plain text body")
    body_html: str | None = Field(default=None, description="HTML body")
    attachments: list[Attachment] = Field(default_factory=list, description="Attachments")
    date: datetime = Field(default=..., description="Received date")
    labels: list[str] = Field(
        default_factory=list, description="Provider labels, folders or categories"
    )
    provider: ProviderName = Field(default="unknown", description="Originating provider")

    @property
    def is_unread(self) -> bool:
        """Check whether the message carries the UNREAD label."""
        return "UNREAD" in self.labels

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "18c2f0a1b2c3d4e5",
                "thread_id": "18c2f0a1b2c3d4e5",
                "sender": "Jane Doe <jane@example.com>",
                "to": ["team@example.com"],
                "subject": "Quarterly report",
                "body_text": "Please find the report attached.",
                "date": "2024-01-15T14:30:00Z",
                "labels": ["INBOX", "UNREAD"],
                "provider": "gmail",
            }
        }
    }


class FetchOptions(BaseModel):
    """Filter options passed through to every provider fetch.

    Dates are inclusive bounds on the received date. ``format`` overrides the
    fetch strategy that would otherwise be inferred from ``include_body`` and
    ``include_attachments``.
    """

    query: str | None = Field(default=None, description="Provider-specific search query")
    since: datetime | None = Field(default=None, description="Inclusive lower date bound")
    before: datetime | None = Field(default=None, description="Inclusive upper date bound")
    unread_only: bool = Field(default=False, description="Only return unread messages")
    include_body: bool = Field(default=True, description="Fetch message bodies")
    include_attachments: bool = Field(default=True, description="Fetch attachment metadata")
    format: MessageFormat | None = Field(default=None, description="Explicit message format")
    labels: list[str] = Field(
        default_factory=list, description="Only return messages carrying any of these labels"
    )
    page_size: int | None = Field(default=None, gt=0, description="Preferred page size")
