"""
Notifications Router

In-app notification center.
"""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ridehub.dependencies import get_current_user
from ridehub.models.notification import NotificationResponse
from ridehub.models.user import CurrentUser
from ridehub.services.notification_service import NotificationService


router = APIRouter()
notification_service = NotificationService()


class NotificationListResponse(BaseModel):
    """List of notifications with unread count."""
    notifications: List[NotificationResponse]
    unread_count: int


@router.get("", response_model=NotificationListResponse)
async def get_notifications(
    limit: int = 50,
    unread_only: bool = False,
    current_user: CurrentUser = Depends(get_current_user)
):
    """Get user's notifications."""
    notifications = await notification_service.get_notifications(
        user_id=current_user.user_id,
        limit=limit,
        unread_only=unread_only
    )

    unread_count = await notification_service.get_unread_count(
        current_user.user_id
    )

    return NotificationListResponse(
        notifications=[
            NotificationResponse(
                notification_id=n.notification_id,
                type=n.type,
                title=n.title,
                body=n.body,
                data=n.data,
                read=n.read,
                created_at=n.created_at
            )
            for n in notifications
        ],
        unread_count=unread_count
    )


@router.post("/{notification_id}/read")
async def mark_notification_read(
    notification_id: str,
    current_user: CurrentUser = Depends(get_current_user)
):
    """Mark a notification as read."""
    success = await notification_service.mark_read(
        user_id=current_user.user_id,
        notification_id=notification_id
    )

    return {
        "success": success,
        "message": "Notification marked as read" if success else "Notification not found"
    }


@router.post("/read-all")
async def mark_all_read(
    current_user: CurrentUser = Depends(get_current_user)
):
    """Mark all notifications as read."""
    count = await notification_service.mark_all_read(current_user.user_id)

    return {
        "success": True,
        "count": count,
        "message": f"Marked {count} notifications as read"
    }
