"""PostgreSQL ticket repository for tickets and comments."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Select, or_, select, update

from coprodesk.core.types import (
    CommentType,
    TicketPriority,
    TicketStatus,
    UserRole,
    ensure_utc,
)
from coprodesk.db.engine import DatabaseManager
from coprodesk.db.models import CommentRow, TicketRow
from coprodesk.tickets.models import Comment, Ticket
from coprodesk.tickets.visibility import TicketQuery


class PostgresTicketRepository:
    """Postgres-backed ticket and comment storage."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def save_ticket(self, ticket: Ticket) -> Ticket:
        async with self._db.session() as db:
            existing = await db.get(TicketRow, ticket.id)
            if existing:
                self._copy_to_row(ticket, existing)
            else:
                row = TicketRow(id=ticket.id)
                self._copy_to_row(ticket, row)
                db.add(row)
            await db.commit()
        return ticket

    async def get_ticket(self, ticket_id: str) -> Ticket | None:
        async with self._db.session() as db:
            row = await db.get(TicketRow, ticket_id)
            if row is None:
                return None
            return self._row_to_ticket(row)

    async def list_tickets(self, query: TicketQuery) -> list[Ticket]:
        async with self._db.session() as db:
            result = await db.execute(self._build_select(query))
            return [self._row_to_ticket(r) for r in result.scalars().all()]

    async def list_related(self, user_id: str, role: UserRole) -> list[Ticket]:
        async with self._db.session() as db:
            result = await db.execute(
                select(TicketRow).where(
                    or_(
                        TicketRow.creator_id == user_id,
                        TicketRow.recipient_role == role.value,
                    )
                )
            )
            return [self._row_to_ticket(r) for r in result.scalars().all()]

    async def add_comment(self, comment: Comment) -> Comment:
        async with self._db.session() as db:
            db.add(self._comment_to_row(comment))
            await db.commit()
        return comment

    async def list_comments(self, ticket_id: str) -> list[Comment]:
        async with self._db.session() as db:
            result = await db.execute(
                select(CommentRow)
                .where(CommentRow.ticket_id == ticket_id)
                .order_by(CommentRow.created_at.asc())
            )
            return [self._row_to_comment(r) for r in result.scalars().all()]

    async def latest_comment(self, ticket_id: str) -> Comment | None:
        async with self._db.session() as db:
            result = await db.execute(
                select(CommentRow)
                .where(CommentRow.ticket_id == ticket_id)
                .order_by(CommentRow.created_at.desc())
                .limit(1)
            )
            row = result.scalars().first()
            return self._row_to_comment(row) if row else None

    async def touch_ticket(self, ticket_id: str, updated_at: datetime) -> Ticket | None:
        return await self._update_columns(ticket_id, {"updated_at": updated_at})

    async def set_status(
        self,
        ticket_id: str,
        status: TicketStatus,
        closed_by: str | None,
        closed_at: datetime | None,
        updated_at: datetime,
    ) -> Ticket | None:
        return await self._update_columns(
            ticket_id,
            {
                "status": status.value,
                "closed_by": closed_by,
                "closed_at": closed_at,
                "updated_at": updated_at,
            },
        )

    async def apply_transfer(self, ticket: Ticket, comment: Comment) -> Ticket:
        """Update the routing columns and insert the transfer comment in one transaction."""
        if comment.ticket_id != ticket.id:
            raise ValueError("Transfer comment does not belong to the ticket")
        async with self._db.session() as db:
            async with db.begin():
                result = await db.execute(
                    update(TicketRow)
                    .where(TicketRow.id == ticket.id)
                    .values(
                        recipient_role=ticket.recipient_role.value,
                        status=ticket.status.value,
                        updated_at=ticket.updated_at,
                    )
                )
                if result.rowcount == 0:
                    raise KeyError(f"Ticket {ticket.id!r} not found")
                db.add(self._comment_to_row(comment))
            row = await db.get(TicketRow, ticket.id)
            return self._row_to_ticket(row)

    async def _update_columns(self, ticket_id: str, values: dict[str, Any]) -> Ticket | None:
        async with self._db.session() as db:
            result = await db.execute(
                update(TicketRow).where(TicketRow.id == ticket_id).values(**values)
            )
            await db.commit()
            if result.rowcount == 0:
                return None
            row = await db.get(TicketRow, ticket_id)
            return self._row_to_ticket(row)

    # -- mapping --

    @staticmethod
    def _build_select(query: TicketQuery) -> Select:
        stmt = select(TicketRow)
        if query.creator_id is not None:
            stmt = stmt.where(TicketRow.creator_id == query.creator_id)
        if query.building is not None:
            stmt = stmt.where(TicketRow.building == query.building)
        if query.recipient_roles is not None:
            stmt = stmt.where(
                TicketRow.recipient_role.in_([r.value for r in query.recipient_roles])
            )
        if query.status is not None:
            stmt = stmt.where(TicketRow.status == query.status)
        if query.filter_building is not None:
            stmt = stmt.where(TicketRow.building == query.filter_building)
        if query.created_after is not None:
            stmt = stmt.where(TicketRow.created_at >= query.created_after)
        return stmt.order_by(TicketRow.created_at.desc())

    @staticmethod
    def _copy_to_row(ticket: Ticket, row: TicketRow) -> None:
        row.code = ticket.code
        row.title = ticket.title
        row.description = ticket.description
        row.category = ticket.category
        row.building = ticket.building
        row.creator_id = ticket.creator_id
        row.recipient_role = ticket.recipient_role.value
        row.status = ticket.status.value
        row.priority = ticket.priority.value
        row.attachments = list(ticket.attachments)
        row.created_at = ticket.created_at
        row.updated_at = ticket.updated_at
        row.closed_by = ticket.closed_by
        row.closed_at = ticket.closed_at

    @staticmethod
    def _row_to_ticket(row: TicketRow) -> Ticket:
        return Ticket(
            id=row.id,
            code=row.code,
            title=row.title,
            description=row.description,
            category=row.category or "",
            building=row.building,
            creator_id=row.creator_id,
            recipient_role=UserRole(row.recipient_role),
            status=TicketStatus(row.status),
            priority=TicketPriority(row.priority),
            attachments=row.attachments or [],
            created_at=ensure_utc(row.created_at),
            updated_at=ensure_utc(row.updated_at),
            closed_by=row.closed_by,
            closed_at=ensure_utc(row.closed_at),
        )

    @staticmethod
    def _comment_to_row(comment: Comment) -> CommentRow:
        return CommentRow(
            id=comment.id,
            ticket_id=comment.ticket_id,
            author_id=comment.author_id,
            message=comment.message,
            type=comment.type.value,
            target_role=comment.target_role.value if comment.target_role else None,
            created_at=comment.created_at,
        )

    @staticmethod
    def _row_to_comment(row: CommentRow) -> Comment:
        return Comment(
            id=row.id,
            ticket_id=row.ticket_id,
            author_id=row.author_id,
            message=row.message,
            type=CommentType(row.type),
            target_role=UserRole(row.target_role) if row.target_role else None,
            created_at=ensure_utc(row.created_at),
        )
