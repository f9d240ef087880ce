"""Unread-activity notifications.

Tracks, per user, tickets with comments from someone else that the user
has not opened yet. Read ticket ids persist through a ReadStatePort;
live updates arrive on the CommentFeed.
"""

from coprodesk.notifications.center import NotificationCenter
from coprodesk.notifications.feed import CommentFeed, CommentInserted, FeedSubscription
from coprodesk.notifications.read_state import (
    InMemoryReadStore,
    JsonFileReadStore,
    ReadStatePort,
    read_state_key,
)
from coprodesk.notifications.tracker import NotificationTracker

__all__ = [
    "CommentFeed",
    "CommentInserted",
    "FeedSubscription",
    "InMemoryReadStore",
    "JsonFileReadStore",
    "NotificationCenter",
    "NotificationTracker",
    "ReadStatePort",
    "read_state_key",
]
