"""FastAPI router for tickets, comments, routing and filter selection."""

from __future__ import annotations

import base64
import binascii
from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from coprodesk.auth.models import User
from coprodesk.auth.middleware import current_user
from coprodesk.core.errors import InputValidationError
from coprodesk.core.types import TicketPriority, UserRole
from coprodesk.tickets.filters import TicketFilters
from coprodesk.tickets.models import Attachment, Comment, Ticket, TicketDraft
from coprodesk.tickets.routing import allowed_destinations
from coprodesk.tickets.service import TicketService

router = APIRouter()


# --- Request models ---


class AttachmentUpload(BaseModel):
    filename: str
    content_base64: str
    content_type: str = "application/octet-stream"

    def decode(self) -> Attachment:
        try:
            content = base64.b64decode(self.content_base64, validate=True)
        except (binascii.Error, ValueError):
            raise InputValidationError(f"Pièce jointe {self.filename!r} mal encodée")
        return Attachment(filename=self.filename, content=content, content_type=self.content_type)


class CreateTicketRequest(BaseModel):
    title: str
    description: str
    category: str = ""
    building: str | None = None
    recipient_role: UserRole | None = None
    priority: TicketPriority = TicketPriority.NORMAL
    attachments: list[AttachmentUpload] = Field(default_factory=list)


class ReplyRequest(BaseModel):
    message: str = ""
    attachments: list[AttachmentUpload] = Field(default_factory=list)


class TransferRequest(BaseModel):
    target_role: UserRole
    note: str = ""


class FilterRequest(BaseModel):
    status: str | None = None
    building: str | None = None
    period: str | None = None


# --- Helpers ---


def _service(request: Request) -> TicketService:
    return request.app.state.ticket_service


def ticket_payload(ticket: Ticket) -> dict[str, Any]:
    return ticket.model_dump(mode="json")


def comment_payload(comment: Comment) -> dict[str, Any]:
    return comment.model_dump(mode="json")


# --- Tickets ---


@router.get("/api/tickets")
async def list_tickets(
    request: Request,
    status: str | None = None,
    building: str | None = None,
    period: str | None = None,
    user: User = Depends(current_user),
) -> list[dict[str, Any]]:
    """List visible tickets using the stored filters, overridden by query params."""
    stored = request.app.state.filter_store.get(user.id)
    filters = stored.merged(status=status, building=building, period=period)
    tickets = await _service(request).list_visible(user, filters)
    return [ticket_payload(t) for t in tickets]


@router.post("/api/tickets", status_code=201)
async def create_ticket(
    body: CreateTicketRequest,
    request: Request,
    user: User = Depends(current_user),
) -> dict[str, Any]:
    draft = TicketDraft(
        title=body.title,
        description=body.description,
        category=body.category,
        building=body.building,
        recipient_role=body.recipient_role,
        priority=body.priority,
        attachments=[a.decode() for a in body.attachments],
    )
    ticket = await _service(request).create(user, draft)
    return ticket_payload(ticket)


@router.get("/api/tickets/{ticket_id}")
async def get_ticket(
    ticket_id: str, request: Request, user: User = Depends(current_user)
) -> dict[str, Any]:
    """Fetch one ticket. Opening a ticket marks it read for the caller."""
    ticket = await _service(request).get(user, ticket_id)
    tracker = await request.app.state.notification_center.get(user)
    tracker.mark_read(ticket.id)
    return ticket_payload(ticket)


@router.get("/api/tickets/{ticket_id}/comments")
async def list_comments(
    ticket_id: str, request: Request, user: User = Depends(current_user)
) -> list[dict[str, Any]]:
    comments = await _service(request).comments(user, ticket_id)
    return [comment_payload(c) for c in comments]


@router.post("/api/tickets/{ticket_id}/replies", status_code=201)
async def reply(
    ticket_id: str,
    body: ReplyRequest,
    request: Request,
    user: User = Depends(current_user),
) -> dict[str, Any]:
    comment = await _service(request).reply(
        user, ticket_id, body.message, [a.decode() for a in body.attachments]
    )
    return comment_payload(comment)


@router.post("/api/tickets/{ticket_id}/close")
async def close_ticket(
    ticket_id: str, request: Request, user: User = Depends(current_user)
) -> dict[str, Any]:
    return ticket_payload(await _service(request).close(user, ticket_id))


@router.post("/api/tickets/{ticket_id}/reopen")
async def reopen_ticket(
    ticket_id: str, request: Request, user: User = Depends(current_user)
) -> dict[str, Any]:
    return ticket_payload(await _service(request).reopen(user, ticket_id))


@router.post("/api/tickets/{ticket_id}/transfer")
async def transfer_ticket(
    ticket_id: str,
    body: TransferRequest,
    request: Request,
    user: User = Depends(current_user),
) -> dict[str, Any]:
    ticket, comment = await _service(request).transfer(
        user, ticket_id, body.target_role, body.note
    )
    return {"ticket": ticket_payload(ticket), "comment": comment_payload(comment)}


@router.get("/api/routing/destinations")
async def routing_destinations(user: User = Depends(current_user)) -> list[dict[str, str]]:
    """Roles the current user may address a ticket to."""
    return [
        {"role": role.value, "label": role.label}
        for role in allowed_destinations(user.role)
    ]


# --- Filter selection ---


@router.get("/api/filters")
async def get_filters(request: Request, user: User = Depends(current_user)) -> dict[str, str]:
    return request.app.state.filter_store.get(user.id).model_dump()


@router.put("/api/filters")
async def set_filters(
    body: FilterRequest, request: Request, user: User = Depends(current_user)
) -> dict[str, str]:
    store = request.app.state.filter_store
    filters: TicketFilters = store.update(
        user.id, status=body.status, building=body.building, period=body.period
    )
    return filters.model_dump()
