"""Unread-activity tracking for one signed-in user.

The tracker keeps a counter of tickets with activity from someone else that
the user has not opened yet. The counter is computed once on load and then
incremented per qualifying comment event. A ticket that receives several
qualifying comments between loads is counted once per comment, so the live
counter may run ahead of a fresh load until the next :meth:`load`.
"""

from __future__ import annotations

import logging

from coprodesk.auth.models import User
from coprodesk.notifications.feed import CommentInserted, FeedSubscription
from coprodesk.notifications.read_state import ReadStatePort
from coprodesk.repositories import resolve
from coprodesk.repositories.protocols import TicketRepository
from coprodesk.tickets.visibility import is_relevant

logger = logging.getLogger(__name__)


class NotificationTracker:
    """Unread counter and read set for ``user``."""

    def __init__(self, user: User, read_store: ReadStatePort) -> None:
        self._user = user
        self._store = read_store
        self._read: set[str] = read_store.load(user.id)
        self._count = 0
        self._new_activity: list[str] = []

    @property
    def user(self) -> User:
        return self._user

    @property
    def count(self) -> int:
        return self._count

    @property
    def read_ids(self) -> frozenset[str]:
        return frozenset(self._read)

    @property
    def tickets_with_new_activity(self) -> list[str]:
        return list(self._new_activity)

    def has_new_activity(self, ticket_id: str) -> bool:
        return ticket_id in self._new_activity

    async def load(self, tickets: TicketRepository) -> int:
        """Recompute the counter from the latest comment of each relevant ticket."""
        related = await resolve(tickets.list_related(self._user.id, self._user.role))
        count = 0
        flagged: list[str] = []
        for ticket in related:
            if not is_relevant(ticket, self._user) or ticket.id in self._read:
                continue
            latest = await resolve(tickets.latest_comment(ticket.id))
            if latest is not None and latest.author_id != self._user.id:
                count += 1
                flagged.append(ticket.id)
        self._count = count
        self._new_activity = flagged
        logger.debug("User %s has %d unread tickets", self._user.id, count)
        return count

    def apply(self, event: CommentInserted) -> bool:
        """Fold one comment event into the counter. Returns True when counted."""
        if event.comment.author_id == self._user.id:
            return False
        if event.ticket.id in self._read:
            return False
        if not is_relevant(event.ticket, self._user):
            return False
        self._count += 1
        if event.ticket.id not in self._new_activity:
            self._new_activity.append(event.ticket.id)
        return True

    def apply_pending(self, subscription: FeedSubscription) -> int:
        """Fold every event already waiting on ``subscription``."""
        return sum(1 for event in subscription.drain() if self.apply(event))

    async def follow(self, subscription: FeedSubscription) -> None:
        """Consume ``subscription`` until it is closed."""
        async for event in subscription:
            self.apply(event)

    def mark_read(self, ticket_id: str) -> int:
        """Record ``ticket_id`` as seen.

        Only a newly added id lowers the counter, by one, and never below
        zero.
        """
        if ticket_id in self._read:
            return self._count
        self._read.add(ticket_id)
        self._store.save(self._user.id, self._read)
        if self._count > 0:
            self._count -= 1
        if ticket_id in self._new_activity:
            self._new_activity.remove(ticket_id)
        return self._count

    def reset(self) -> None:
        """Forget the in-memory read set and zero the counter."""
        self._read.clear()
        self._new_activity.clear()
        self._count = 0
