"""Ticket and comment data models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from coprodesk.core.types import (
    CommentType,
    TicketPriority,
    TicketStatus,
    UserRole,
    new_id,
    utcnow,
)


class Ticket(BaseModel):
    """A request routed through the role escalation chain."""

    id: str = Field(default_factory=new_id)
    code: str
    title: str
    description: str
    category: str = ""
    building: str
    creator_id: str
    recipient_role: UserRole
    status: TicketStatus = TicketStatus.OPEN
    priority: TicketPriority = TicketPriority.NORMAL
    attachments: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = None
    closed_by: str | None = None
    closed_at: datetime | None = None


class Comment(BaseModel):
    """An append-only message on a ticket."""

    id: str = Field(default_factory=new_id)
    ticket_id: str
    author_id: str
    message: str
    type: CommentType = CommentType.REPLY
    target_role: UserRole | None = None
    created_at: datetime = Field(default_factory=utcnow)


class Attachment(BaseModel):
    """A file to upload before it is referenced by a ticket or comment."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


class TicketDraft(BaseModel):
    """Form input for a new ticket."""

    title: str
    description: str
    category: str = ""
    building: str | None = None
    recipient_role: UserRole | None = None
    priority: TicketPriority = TicketPriority.NORMAL
    attachments: list[Attachment] = Field(default_factory=list)
