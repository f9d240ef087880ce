"""Per-user notification trackers wired to the comment feed."""

from __future__ import annotations

import logging
import time
from typing import Callable

from coprodesk.auth.models import User
from coprodesk.notifications.feed import CommentFeed, FeedSubscription
from coprodesk.notifications.read_state import ReadStatePort
from coprodesk.notifications.tracker import NotificationTracker
from coprodesk.repositories.protocols import TicketRepository

logger = logging.getLogger(__name__)


class NotificationCenter:
    """Owns one tracker and one feed subscription per signed-in user.

    Entries not polled for ``idle_timeout_seconds`` are closed on the next
    ``open`` or ``get`` of any user, so sessions that end without a
    sign-out stop receiving events. An evicted user gets a fresh tracker,
    loaded from the store, the next time they poll.
    """

    def __init__(
        self,
        feed: CommentFeed,
        tickets: TicketRepository,
        read_store: ReadStatePort,
        idle_timeout_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._feed = feed
        self._tickets = tickets
        self._read_store = read_store
        self._idle_timeout = idle_timeout_seconds
        self._clock = clock
        self._open: dict[str, tuple[NotificationTracker, FeedSubscription]] = {}
        self._last_seen: dict[str, float] = {}

    @property
    def open_users(self) -> list[str]:
        return list(self._open)

    async def open(self, user: User) -> NotificationTracker:
        """Subscribe to the feed, then load the initial count."""
        self.close(user.id)
        self.evict_idle()
        subscription = self._feed.subscribe()
        tracker = NotificationTracker(user, self._read_store)
        self._open[user.id] = (tracker, subscription)
        self._last_seen[user.id] = self._clock()
        await tracker.load(self._tickets)
        return tracker

    async def get(self, user: User) -> NotificationTracker:
        """Return the user's tracker with every pending event applied.

        When the subscription dropped events, the count is recomputed from
        the store instead.
        """
        self.evict_idle(keep=user.id)
        entry = self._open.get(user.id)
        if entry is None or entry[0].user.role != user.role:
            return await self.open(user)
        tracker, subscription = entry
        self._last_seen[user.id] = self._clock()
        overflowed = subscription.overflowed
        tracker.apply_pending(subscription)
        if overflowed:
            logger.info("Recounting notifications for user %s after dropped events", user.id)
            await tracker.load(self._tickets)
        return tracker

    async def refresh(self, user: User) -> NotificationTracker:
        tracker = await self.get(user)
        await tracker.load(self._tickets)
        return tracker

    def evict_idle(self, keep: str | None = None) -> list[str]:
        """Close every entry idle for longer than the timeout."""
        cutoff = self._clock() - self._idle_timeout
        stale = [
            user_id
            for user_id, seen in self._last_seen.items()
            if seen < cutoff and user_id != keep
        ]
        for user_id in stale:
            self.close(user_id)
        if stale:
            logger.info("Evicted %d idle notification trackers", len(stale))
        return stale

    def close(self, user_id: str) -> None:
        """Reset and drop the user's tracker. Used on sign-out."""
        self._last_seen.pop(user_id, None)
        entry = self._open.pop(user_id, None)
        if entry is None:
            return
        tracker, subscription = entry
        subscription.close()
        tracker.reset()
        logger.info("Closed notifications for user %s", user_id)
