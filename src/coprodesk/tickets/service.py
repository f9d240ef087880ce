"""Ticket lifecycle operations.

Every operation validates its input and the caller's role before writing,
then performs the write plus its derived side effect (status change,
timestamp refresh, comment insert). Inserted comments are published on
the comment feed so notification trackers can pick them up.
"""

from __future__ import annotations

import asyncio
import logging

from coprodesk.auth.models import User
from coprodesk.core.config import TicketConfig
from coprodesk.core.errors import (
    AuthorizationError,
    BackendError,
    InputValidationError,
    NotFoundError,
)
from coprodesk.core.types import CommentType, TicketStatus, UserRole, utcnow
from coprodesk.notifications.feed import CommentFeed, CommentInserted
from coprodesk.repositories import resolve
from coprodesk.repositories.protocols import TicketRepository
from coprodesk.storage.attachments import AttachmentStorage, safe_filename
from coprodesk.tickets.codes import generate_ticket_code
from coprodesk.tickets.filters import TicketFilters
from coprodesk.tickets.models import Attachment, Comment, Ticket, TicketDraft
from coprodesk.tickets.routing import allowed_destinations
from coprodesk.tickets.visibility import is_visible, resolve_ticket_query

logger = logging.getLogger(__name__)


class TicketService:
    """Create, list, reply to, close, reopen and transfer tickets."""

    def __init__(
        self,
        tickets: TicketRepository,
        storage: AttachmentStorage,
        feed: CommentFeed | None = None,
        config: TicketConfig | None = None,
    ) -> None:
        self._tickets = tickets
        self._storage = storage
        self._feed = feed
        self._config = config or TicketConfig()

    # -- queries --

    async def list_visible(
        self, user: User, filters: TicketFilters | None = None
    ) -> list[Ticket]:
        """Tickets visible to ``user`` under ``filters``, newest first.

        A failing store is retried ``list_retries`` times before the error
        is surfaced.
        """
        query = resolve_ticket_query(user, filters)
        if query is None:
            return []

        attempts = max(1, self._config.list_retries + 1)
        for attempt in range(attempts):
            try:
                return await resolve(self._tickets.list_tickets(query))
            except (BackendError, OSError, ConnectionError) as exc:
                if attempt == attempts - 1:
                    logger.error("Ticket list failed after %d attempts: %s", attempts, exc)
                    if isinstance(exc, BackendError):
                        raise
                    raise BackendError("Impossible de charger les tickets") from exc
                delay = self._config.retry_delay_seconds * (2 ** attempt)
                logger.warning(
                    "Ticket list failed: %s, retrying in %.1fs (%d/%d)",
                    exc, delay, attempt + 1, attempts,
                )
                await asyncio.sleep(delay)
        return []  # pragma: no cover

    async def get(self, user: User, ticket_id: str) -> Ticket:
        """Return a ticket the user may see, or raise NotFoundError."""
        ticket = await resolve(self._tickets.get_ticket(ticket_id))
        if ticket is None or not is_visible(ticket, user):
            raise NotFoundError(f"Ticket {ticket_id!r} introuvable")
        return ticket

    async def comments(self, user: User, ticket_id: str) -> list[Comment]:
        await self.get(user, ticket_id)
        return await resolve(self._tickets.list_comments(ticket_id))

    # -- mutations --

    async def create(self, user: User, draft: TicketDraft) -> Ticket:
        _require_active(user)
        title = draft.title.strip()
        description = draft.description.strip()
        if not title:
            raise InputValidationError("Le titre est obligatoire")
        if not description:
            raise InputValidationError("La description est obligatoire")

        if user.role is UserRole.OWNER:
            if not user.building:
                raise InputValidationError("Aucune copropriété associée à votre compte")
            building = user.building
            recipient = UserRole.COUNCIL
        else:
            building = (draft.building or user.building or "").strip()
            if not building:
                raise InputValidationError("La copropriété est obligatoire")
            if draft.recipient_role is None:
                raise InputValidationError("Le destinataire est obligatoire")
            recipient = draft.recipient_role
            if recipient not in allowed_destinations(user.role):
                raise AuthorizationError(
                    f"Un {user.role.label} ne peut pas adresser un ticket à {recipient.label}"
                )

        names: list[str] = []
        for attachment in draft.attachments:
            self._upload(attachment)
            names.append(safe_filename(attachment.filename))

        ticket = Ticket(
            code=generate_ticket_code(self._config.code_prefix),
            title=title,
            description=description,
            category=draft.category.strip(),
            building=building,
            creator_id=user.id,
            recipient_role=recipient,
            priority=draft.priority,
            attachments=names,
        )
        await resolve(self._tickets.save_ticket(ticket))
        logger.info(
            "User %s created ticket %s for %s in %s",
            user.id, ticket.code, recipient.value, building,
        )
        return ticket

    async def reply(
        self,
        user: User,
        ticket_id: str,
        message: str,
        attachments: list[Attachment] | None = None,
    ) -> Comment:
        """Append a reply; attachment URLs are appended to the message body.

        The chain upload -> insert comment -> touch ticket is not atomic.
        """
        _require_active(user)
        ticket = await self.get(user, ticket_id)
        attachments = attachments or []
        body = message.strip()
        if not body and not attachments:
            raise InputValidationError("Le message est obligatoire")

        urls = [self._upload(a) for a in attachments]
        if urls:
            links = "\n".join(f"Pièce jointe : {url}" for url in urls)
            body = f"{body}\n\n{links}" if body else links

        comment = Comment(
            ticket_id=ticket.id,
            author_id=user.id,
            message=body,
            type=CommentType.REPLY,
        )
        await resolve(self._tickets.add_comment(comment))
        touched = await resolve(self._tickets.touch_ticket(ticket.id, comment.created_at))
        self._publish(comment, _stored(touched, ticket_id))
        return comment

    async def close(self, user: User, ticket_id: str) -> Ticket:
        _require_active(user)
        ticket = await self.get(user, ticket_id)
        if ticket.status is TicketStatus.CLOSED:
            return ticket
        now = utcnow()
        closed = await resolve(
            self._tickets.set_status(
                ticket.id,
                TicketStatus.CLOSED,
                closed_by=user.id,
                closed_at=now,
                updated_at=now,
            )
        )
        logger.info("User %s closed ticket %s", user.id, ticket.code)
        return _stored(closed, ticket_id)

    async def reopen(self, user: User, ticket_id: str) -> Ticket:
        _require_active(user)
        ticket = await self.get(user, ticket_id)
        if ticket.status is not TicketStatus.CLOSED:
            return ticket
        reopened = await resolve(
            self._tickets.set_status(
                ticket.id,
                TicketStatus.OPEN,
                closed_by=None,
                closed_at=None,
                updated_at=utcnow(),
            )
        )
        logger.info("User %s reopened ticket %s", user.id, ticket.code)
        return _stored(reopened, ticket_id)

    async def toggle_closed(self, user: User, ticket_id: str) -> Ticket:
        ticket = await self.get(user, ticket_id)
        if ticket.status is TicketStatus.CLOSED:
            return await self.reopen(user, ticket_id)
        return await self.close(user, ticket_id)

    async def transfer(
        self,
        user: User,
        ticket_id: str,
        target: UserRole,
        note: str = "",
    ) -> tuple[Ticket, Comment]:
        """Route the ticket to ``target``.

        The recipient change, the ``transmis`` status, the timestamp refresh
        and the transfer comment are written in one repository call.
        """
        _require_active(user)
        ticket = await self.get(user, ticket_id)
        if ticket.status is TicketStatus.CLOSED:
            raise InputValidationError("Un ticket clôturé ne peut pas être transmis")
        if target not in allowed_destinations(user.role):
            raise AuthorizationError(
                f"Un {user.role.label} ne peut pas transmettre à {target.label}"
            )

        now = utcnow()
        message = f"Ticket transmis à {target.label}"
        if note.strip():
            message = f"{message}\n\n{note.strip()}"
        comment = Comment(
            ticket_id=ticket.id,
            author_id=user.id,
            message=message,
            type=CommentType.TRANSFER,
            target_role=target,
            created_at=now,
        )
        transferred = ticket.model_copy(
            update={
                "recipient_role": target,
                "status": TicketStatus.TRANSFERRED,
                "updated_at": now,
            }
        )
        transferred = await resolve(self._tickets.apply_transfer(transferred, comment))
        logger.info(
            "User %s transferred ticket %s from %s to %s",
            user.id, ticket.code, ticket.recipient_role.value, target.value,
        )
        self._publish(comment, transferred)
        return transferred, comment

    # -- helpers --

    def _upload(self, attachment: Attachment) -> str:
        return self._storage.upload(attachment)

    def _publish(self, comment: Comment, ticket: Ticket) -> None:
        if self._feed is not None:
            self._feed.publish(CommentInserted(comment=comment, ticket=ticket))


def _require_active(user: User) -> None:
    if user.role is UserRole.PENDING:
        raise AuthorizationError("Votre compte est en attente de validation")
    if not user.active:
        raise AuthorizationError("Votre compte est désactivé")


def _stored(ticket: Ticket | None, ticket_id: str) -> Ticket:
    # None means the row vanished between the read and the write
    if ticket is None:
        raise NotFoundError(f"Ticket {ticket_id!r} introuvable")
    return ticket
