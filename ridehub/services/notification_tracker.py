"""
Notification Tracker Service

Prevents duplicate notifications when a sweep is retried or runs on
several workers. Uses Redis for distributed tracking across restarts.
"""

from datetime import timedelta
from typing import Optional
import hashlib

from ridehub.config import settings
from ridehub.database import get_redis
from ridehub.utils.timezone_utils import utc_now


class NotificationTracker:
    """
    Track sent notifications to prevent spam and duplicates.

    Keys are (notification type, target id, user id), e.g.
    ("attendance_survey", survey_id, user_id).
    """

    def __init__(self):
        self._prefix = "notif_sent"

    def _make_key(self, notification_type: str, target_id: str, user_id: str) -> str:
        """
        Create unique key for a notification.

        Args:
            notification_type: Type of notification (e.g., 'attendance_survey')
            target_id: ID of target entity (e.g., survey_id, ride_id)
            user_id: User receiving the notification

        Returns:
            Redis key for tracking
        """
        composite = f"{notification_type}:{target_id}:{user_id}"
        key_hash = hashlib.sha256(composite.encode()).hexdigest()[:16]
        return f"{self._prefix}:{key_hash}"

    async def mark_sent(
        self,
        notification_type: str,
        target_id: str,
        user_id: str,
        ttl_hours: Optional[int] = None,
    ) -> bool:
        """
        Claim a notification slot.

        Returns:
            True if this call claimed it (notification not sent before)
            False if already sent
        """
        ttl_hours = ttl_hours or settings.notification_dedupe_ttl_hours
        key = self._make_key(notification_type, target_id, user_id)

        redis_client = get_redis()
        was_set = await redis_client.set(
            key,
            utc_now().isoformat(),
            ex=int(timedelta(hours=ttl_hours).total_seconds()),
            nx=True,  # Only set if not exists
        )

        return bool(was_set)

    async def release(self, notification_type: str, target_id: str, user_id: str):
        """Forget a claim so a failed send can be retried by the next sweep."""
        key = self._make_key(notification_type, target_id, user_id)
        await get_redis().delete(key)

    async def was_sent(
        self, notification_type: str, target_id: str, user_id: str
    ) -> bool:
        """Check if notification was already sent."""
        key = self._make_key(notification_type, target_id, user_id)
        exists = await get_redis().exists(key)
        return bool(exists)


# Singleton instance
_tracker = None


def get_notification_tracker() -> NotificationTracker:
    """Get singleton notification tracker instance."""
    global _tracker
    if _tracker is None:
        _tracker = NotificationTracker()
    return _tracker
