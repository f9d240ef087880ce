"""In-process change feed for inserted comments.

Publishers push :class:`CommentInserted` events; every open
:class:`FeedSubscription` receives them in order. A subscription is an
async iterator that waits for the next event and ends once the
subscription is closed. Subscribing again starts a fresh sequence.
Backlogs are bounded so a listener that never reads cannot grow without
limit.
"""

from __future__ import annotations

import asyncio
import logging

from pydantic import BaseModel

from coprodesk.tickets.models import Comment, Ticket

logger = logging.getLogger(__name__)

_CLOSED = object()


class CommentInserted(BaseModel):
    """Insert event on the comments table, with the ticket it belongs to."""

    comment: Comment
    ticket: Ticket


class FeedSubscription:
    """One listener's ordered view of the feed.

    At most ``max_pending`` events wait in the backlog. Further events are
    dropped and :attr:`overflowed` is set, so the owner knows its view is
    incomplete and must recount from the store.
    """

    def __init__(self, feed: CommentFeed, max_pending: int = 1000) -> None:
        self._feed = feed
        self._max_pending = max_pending
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False
        self._overflowed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def overflowed(self) -> bool:
        return self._overflowed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def _deliver(self, event: CommentInserted) -> None:
        if self._closed:
            return
        if self._queue.qsize() >= self._max_pending:
            if not self._overflowed:
                logger.warning(
                    "Feed subscription backlog full (%d events), dropping", self._max_pending
                )
            self._overflowed = True
            return
        self._queue.put_nowait(event)

    def drain(self) -> list[CommentInserted]:
        """Return every pending event without waiting and clear the overflow flag."""
        events: list[CommentInserted] = []
        self._overflowed = False
        while True:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return events
            if isinstance(item, CommentInserted):
                events.append(item)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._feed._unsubscribe(self)
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> FeedSubscription:
        return self

    async def __anext__(self) -> CommentInserted:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item  # type: ignore[return-value]


class CommentFeed:
    """Publish/subscribe channel for comment insert events."""

    def __init__(self, max_pending: int = 1000) -> None:
        self._max_pending = max_pending
        self._subscriptions: list[FeedSubscription] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self) -> FeedSubscription:
        subscription = FeedSubscription(self, self._max_pending)
        self._subscriptions.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: FeedSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def publish(self, event: CommentInserted) -> None:
        logger.debug(
            "Publishing comment %s on ticket %s to %d subscribers",
            event.comment.id, event.ticket.id, len(self._subscriptions),
        )
        for subscription in list(self._subscriptions):
            subscription._deliver(event)
