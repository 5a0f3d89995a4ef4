"""Pydantic models for the mail provider's JSON shapes and local messages."""

from typing import Optional

from pydantic import BaseModel, Field


class RemoteMessage(BaseModel):
    """One entry of the provider's message listing."""

    remote_id: str | int = Field(..., alias="id")
    from_: str = Field("", alias="from")
    subject: str = ""
    date: str = ""

    model_config = {"populate_by_name": True, "extra": "ignore"}


class Attachment(BaseModel):
    """Attachment metadata reported with a message detail."""

    filename: str = ""
    content_type: str = Field("", alias="contentType")
    size: int = 0

    model_config = {"populate_by_name": True, "extra": "ignore"}


class MessageDetail(BaseModel):
    """Provider response to a read-message request."""

    text_body: str = Field("", alias="textBody")
    html_body: str = Field("", alias="htmlBody")
    attachments: list[Attachment] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "extra": "ignore"}


class MessageBody(BaseModel):
    """Message content, present only after an explicit read."""

    text: str = ""
    html: str = ""


class Message(BaseModel):
    """A message in a mailbox session, keyed by its local identifier."""

    local_id: str
    remote_id: str | int
    from_: str = Field("", alias="from")
    subject: str = ""
    date: str = ""
    body: Optional[MessageBody] = None  # None until read
    attachments: list[Attachment] = Field(default_factory=list)

    model_config = {"populate_by_name": True}
