"""
Notification Model - Defines the notification schema for in-app and push
notifications.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    """Type of notification."""

    ATTENDANCE_SURVEY = "attendance_survey"
    ATTENDANCE_SURVEY_REMINDER = "attendance_survey_reminder"
    PAYMENT_AMOUNT_ENTERED = "payment_amount_entered"
    MEETING_POINT_TIE = "meeting_point_tie"


class Notification(BaseModel):
    """
    Notification model for MongoDB.

    Stores in-app notifications. Push notifications are sent via FCM
    but also stored here for the notification center.

    Fields:
    - notification_id: Unique UUID
    - user_id: Target user
    - ride_id: Ride the notification is about, if any
    - type: Notification type for UI rendering
    - title: Notification title
    - body: Notification body
    - data: Additional data (e.g., survey_id, split_amount)
    - read: Whether user has read the notification
    - created_at: When notification was created
    """

    notification_id: str = Field(..., description="Unique notification ID")
    user_id: str = Field(..., description="Target user ID")
    ride_id: Optional[str] = Field(None)
    type: NotificationType
    title: str = Field(..., description="Notification title")
    body: str = Field(..., description="Notification body")
    data: Optional[dict] = Field(None, description="Additional data")
    read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        use_enum_values = True


class NotificationResponse(BaseModel):
    """Response model for notification."""

    notification_id: str
    type: str
    title: str
    body: str
    data: Optional[dict]
    read: bool
    created_at: datetime
