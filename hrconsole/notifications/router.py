"""Notification endpoints — inbox list, unread count, mark read."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from hrconsole.common.constants import MAX_PAGE_SIZE, NotificationType
from hrconsole.dependencies import get_notification_client
from hrconsole.notifications.client import PushNotificationClient
from hrconsole.notifications.schemas import NotificationInbox

router = APIRouter(prefix="", tags=["notifications"])


# ── GET / — list current user's notifications ───────────────────────

@router.get("", response_model=NotificationInbox)
async def list_notifications(
    status: Optional[Literal["unread", "read"]] = Query(
        default=None, description="Filter by read status",
    ),
    type: Optional[NotificationType] = Query(
        default=None, alias="type", description="Filter by notification type",
    ),
    limit: Optional[int] = Query(default=None, ge=1, le=MAX_PAGE_SIZE),
    inbox: PushNotificationClient = Depends(get_notification_client),
):
    """List notifications for the authenticated user."""
    return await inbox.list_notifications(
        status=status,
        notification_type=type.value if type else None,
        limit=limit,
    )


# ── GET /unread-count — badge count ─────────────────────────────────
# NOTE: registered before /{notification_id}/read so "unread-count" is never
# taken for a notification id.

@router.get("/unread-count")
async def unread_count(
    inbox: PushNotificationClient = Depends(get_notification_client),
):
    """Return the number of unread notifications (for header badge)."""
    result = await inbox.list_notifications(status="unread", limit=1)
    return {"data": {"count": result.unread_count}}


# ── PUT /read-all — bulk mark all as read ───────────────────────────

@router.put("/read-all")
async def mark_all_read(
    inbox: PushNotificationClient = Depends(get_notification_client),
):
    """Mark all unread notifications as read for the authenticated user."""
    ack = await inbox.mark_all_read()
    return {"message": ack.message or "All notifications marked as read", "data": ack.data}


# ── PUT /{notification_id}/read — mark single as read ───────────────

@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    inbox: PushNotificationClient = Depends(get_notification_client),
):
    """Mark a single notification as read."""
    ack = await inbox.mark_read(notification_id)
    return {"message": ack.message or "Notification marked as read", "data": ack.data}
