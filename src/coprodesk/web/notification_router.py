"""FastAPI router for the unread-activity counter."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from coprodesk.auth.middleware import current_user
from coprodesk.auth.models import User
from coprodesk.notifications.tracker import NotificationTracker

router = APIRouter()


def tracker_payload(tracker: NotificationTracker) -> dict[str, Any]:
    return {
        "count": tracker.count,
        "tickets": tracker.tickets_with_new_activity,
    }


@router.get("/api/notifications")
async def get_notifications(
    request: Request,
    refresh: bool = False,
    user: User = Depends(current_user),
) -> dict[str, Any]:
    """Unread count and the tickets with new activity.

    With ``refresh=true`` the counter is recomputed from the store instead
    of only folding in the pending comment events.
    """
    center = request.app.state.notification_center
    tracker = await (center.refresh(user) if refresh else center.get(user))
    return tracker_payload(tracker)


@router.post("/api/notifications/{ticket_id}/read")
async def mark_read(
    ticket_id: str, request: Request, user: User = Depends(current_user)
) -> dict[str, Any]:
    tracker = await request.app.state.notification_center.get(user)
    tracker.mark_read(ticket_id)
    return tracker_payload(tracker)


@router.post("/api/notifications/reset")
async def reset(request: Request, user: User = Depends(current_user)) -> dict[str, Any]:
    tracker = await request.app.state.notification_center.get(user)
    tracker.reset()
    return tracker_payload(tracker)
