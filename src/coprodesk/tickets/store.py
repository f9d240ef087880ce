"""In-memory store for tickets and their comments."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from coprodesk.core.types import TicketStatus, UserRole
from coprodesk.tickets.models import Comment, Ticket
from coprodesk.tickets.visibility import TicketQuery


class TicketStore:
    """In-memory dict store for tickets and comments.

    Suitable for single-instance deployment and tests. ``save_ticket``
    replaces a ticket wholesale; the narrow writes update only the
    columns their operation owns. Comments are append-only.
    """

    def __init__(self) -> None:
        self._tickets: dict[str, Ticket] = {}
        self._comments: dict[str, list[Comment]] = {}

    # -- Tickets --

    def save_ticket(self, ticket: Ticket) -> Ticket:
        self._tickets[ticket.id] = ticket
        return ticket

    def get_ticket(self, ticket_id: str) -> Ticket | None:
        return self._tickets.get(ticket_id)

    def list_tickets(self, query: TicketQuery) -> list[Ticket]:
        return sorted(
            (t for t in self._tickets.values() if query.matches(t)),
            key=lambda t: t.created_at,
            reverse=True,
        )

    def list_related(self, user_id: str, role: UserRole) -> list[Ticket]:
        return [
            t for t in self._tickets.values()
            if t.creator_id == user_id or t.recipient_role == role
        ]

    @property
    def ticket_count(self) -> int:
        return len(self._tickets)

    # -- Comments --

    def add_comment(self, comment: Comment) -> Comment:
        self._comments.setdefault(comment.ticket_id, []).append(comment)
        return comment

    def list_comments(self, ticket_id: str) -> list[Comment]:
        return sorted(self._comments.get(ticket_id, []), key=lambda c: c.created_at)

    def latest_comment(self, ticket_id: str) -> Comment | None:
        comments = self.list_comments(ticket_id)
        return comments[-1] if comments else None

    # -- Narrow writes --

    def touch_ticket(self, ticket_id: str, updated_at: datetime) -> Ticket | None:
        """Refresh ``updated_at`` only. Returns the stored ticket or None."""
        return self._update(ticket_id, {"updated_at": updated_at})

    def set_status(
        self,
        ticket_id: str,
        status: TicketStatus,
        closed_by: str | None,
        closed_at: datetime | None,
        updated_at: datetime,
    ) -> Ticket | None:
        """Write the status and closing columns, leaving routing untouched."""
        return self._update(
            ticket_id,
            {
                "status": status,
                "closed_by": closed_by,
                "closed_at": closed_at,
                "updated_at": updated_at,
            },
        )

    def apply_transfer(self, ticket: Ticket, comment: Comment) -> Ticket:
        """Write the routing columns and the transfer comment together.

        Only ``recipient_role``, ``status`` and ``updated_at`` are taken from
        ``ticket``; the stored ticket is returned.
        """
        if comment.ticket_id != ticket.id:
            raise ValueError("Transfer comment does not belong to the ticket")
        if ticket.id not in self._tickets:
            raise KeyError(f"Ticket {ticket.id!r} not found")
        stored = self._update(
            ticket.id,
            {
                "recipient_role": ticket.recipient_role,
                "status": ticket.status,
                "updated_at": ticket.updated_at,
            },
        )
        self._comments.setdefault(ticket.id, []).append(comment)
        return stored

    def _update(self, ticket_id: str, changes: dict[str, Any]) -> Ticket | None:
        current = self._tickets.get(ticket_id)
        if current is None:
            return None
        updated = current.model_copy(update=changes)
        self._tickets[ticket_id] = updated
        return updated
