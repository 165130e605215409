"""
Notification Service - Push notifications via FCM and in-app
notification center.
"""

import logging
import uuid
from typing import Optional, List, Dict, Any

from firebase_admin import exceptions as firebase_exceptions, messaging
from pymongo.errors import PyMongoError
from redis.exceptions import RedisError

from ridehub.database import get_db
from ridehub.exceptions import NotificationError
from ridehub.models.notification import Notification, NotificationType
from ridehub.services.notification_tracker import get_notification_tracker
from ridehub.services import notification_content as content


logger = logging.getLogger(__name__)


class NotificationService:
    """
    Notification service for push and in-app notifications.

    Supports:
    - FCM push notifications (requires Firebase Admin SDK)
    - In-app notification center stored in MongoDB

    The attendance core only talks to ``notify`` and the ``notify_*``
    templates, which never raise: a lost notification must not undo or
    block the write that triggered it.
    """

    def __init__(self):
        self.tracker = get_notification_tracker()

    async def send_notification(
        self,
        user_id: str,
        notification_type: NotificationType,
        title: str,
        body: str,
        ride_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        send_push: bool = True,
    ) -> Notification:
        """
        Send a notification to a user.

        Creates an in-app notification and optionally sends FCM push.
        Raises NotificationError if the in-app record cannot be stored.
        """
        db = get_db()

        notification = Notification(
            notification_id=str(uuid.uuid4()),
            user_id=user_id,
            ride_id=ride_id,
            type=notification_type,
            title=title,
            body=body,
            data=data,
            read=False,
        )

        try:
            await db.notifications.insert_one(notification.model_dump())
        except PyMongoError as e:
            raise NotificationError(
                f"Could not store notification for {user_id}: {e}"
            ) from e

        if send_push:
            await self._send_fcm_push(user_id, title, body, data)

        return notification

    async def notify(
        self,
        user_id: str,
        notification_type: NotificationType,
        title: str,
        body: str,
        ride_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        dedupe_target: Optional[str] = None,
    ) -> bool:
        """
        Best-effort notification. Never raises.

        dedupe_target: when given, the (type, target, user) triple is only
        notified once across retries and workers.

        Returns True if a notification was dispatched.
        """
        type_value = (
            notification_type.value
            if hasattr(notification_type, "value")
            else str(notification_type)
        )

        if dedupe_target:
            try:
                claimed = await self.tracker.mark_sent(type_value, dedupe_target, user_id)
                if not claimed:
                    logger.debug(
                        f"[Notify] Skipping duplicate {type_value} for {user_id}"
                    )
                    return False
            except RedisError as e:
                # Tracker down: prefer a possible duplicate over a lost notice
                logger.warning(f"[Notify] Dedupe tracker unavailable: {e}")

        try:
            await self.send_notification(
                user_id=user_id,
                notification_type=notification_type,
                title=title,
                body=body,
                ride_id=ride_id,
                data=data,
            )
            return True
        except NotificationError as e:
            logger.error(f"[Notify] {type_value} to {user_id} failed: {e}")
            if dedupe_target:
                try:
                    await self.tracker.release(type_value, dedupe_target, user_id)
                except RedisError as release_error:
                    logger.warning(
                        f"[Notify] Could not release dedupe claim: {release_error}"
                    )
            return False

    async def _send_fcm_push(
        self,
        user_id: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Send FCM push notification.

        Returns False (and logs) on any push failure; the in-app record is
        already stored at this point.
        """
        try:
            db = get_db()
            user = await db.users.find_one({"user_id": user_id})
        except PyMongoError as e:
            logger.warning(f"[FCM] Could not load user {user_id}: {e}")
            return False

        if not user:
            logger.debug(f"[FCM] User {user_id} not found in database")
            return False

        if not user.get("fcm_token"):
            logger.debug(f"[FCM] User {user_id} has no FCM token registered")
            return False

        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            data={str(k): str(v) for k, v in (data or {}).items()},
            token=user["fcm_token"],
        )

        try:
            result = messaging.send(message)
            logger.info(f"[FCM] Push sent to {user_id}: {title} (message_id: {result})")
            return True
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            # ValueError: Firebase app not initialized or malformed message
            logger.warning(f"[FCM] Push failed for {user_id}: {e}")
            return False

    # =========================================================================
    # Notification Center
    # =========================================================================

    async def get_notifications(
        self, user_id: str, limit: int = 50, unread_only: bool = False
    ) -> List[Notification]:
        """Get user's notifications."""
        db = get_db()

        query = {"user_id": user_id}
        if unread_only:
            query["read"] = False

        cursor = db.notifications.find(query).sort("created_at", -1).limit(limit)

        notifications = []
        async for doc in cursor:
            doc.pop("_id", None)
            notifications.append(Notification(**doc))

        return notifications

    async def get_unread_count(self, user_id: str) -> int:
        """Get count of unread notifications."""
        db = get_db()
        return await db.notifications.count_documents(
            {"user_id": user_id, "read": False}
        )

    async def mark_read(self, user_id: str, notification_id: str) -> bool:
        """Mark a notification as read."""
        db = get_db()

        result = await db.notifications.update_one(
            {"notification_id": notification_id, "user_id": user_id},
            {"$set": {"read": True}},
        )

        return result.modified_count > 0

    async def mark_all_read(self, user_id: str) -> int:
        """Mark all notifications as read. Returns count marked."""
        db = get_db()

        result = await db.notifications.update_many(
            {"user_id": user_id, "read": False}, {"$set": {"read": True}}
        )

        return result.modified_count

    # =========================================================================
    # Notification Templates
    # =========================================================================

    async def notify_survey_open(
        self, user_id: str, survey_id: str, ride_id: str, event_name: str, deadline
    ) -> bool:
        """Tell a member the attendance survey for their ride is open."""
        return await self.notify(
            user_id=user_id,
            notification_type=NotificationType.ATTENDANCE_SURVEY,
            title=content.pick(content.SURVEY_OPEN_TITLES),
            body=content.pick(content.SURVEY_OPEN_BODIES).format(event=event_name),
            ride_id=ride_id,
            data={
                "survey_id": survey_id,
                "ride_id": ride_id,
                "deadline": deadline.isoformat(),
                "action": "attendance_survey",
            },
            dedupe_target=survey_id,
        )

    async def notify_survey_reminder(
        self, user_id: str, survey_id: str, ride_id: str, event_name: str
    ) -> bool:
        """Remind a non-responder to fill in the attendance survey."""
        return await self.notify(
            user_id=user_id,
            notification_type=NotificationType.ATTENDANCE_SURVEY_REMINDER,
            title=content.pick(content.SURVEY_REMINDER_TITLES),
            body=content.pick(content.SURVEY_REMINDER_BODIES).format(event=event_name),
            ride_id=ride_id,
            data={"survey_id": survey_id, "ride_id": ride_id, "action": "attendance_survey"},
            dedupe_target=survey_id,
        )

    async def notify_payment_share(
        self,
        user_id: str,
        ride_id: str,
        payment: dict,
        payer_name: str,
        split_amount: float,
    ) -> bool:
        """Tell a confirmed attendee what they owe the payer."""
        amount = float(payment["amount"])
        return await self.notify(
            user_id=user_id,
            notification_type=NotificationType.PAYMENT_AMOUNT_ENTERED,
            title=content.PAYMENT_SHARE_TITLE,
            body=content.PAYMENT_SHARE_BODY.format(
                payer=payer_name,
                amount=content.money(amount),
                share=content.money(split_amount),
            ),
            ride_id=ride_id,
            data={
                "payment_id": payment.get("payment_id"),
                "amount": amount,
                "split_amount": split_amount,
                "venmo_username": payment.get("payer_venmo_username"),
            },
            dedupe_target=payment.get("payment_id") or ride_id,
        )

    async def notify_meeting_point_tie(
        self, user_id: str, ride_id: str, options: List[str]
    ) -> bool:
        """Ask a member to break a meeting point tie."""
        return await self.notify(
            user_id=user_id,
            notification_type=NotificationType.MEETING_POINT_TIE,
            title=content.MEETING_POINT_TIE_TITLE,
            body=content.MEETING_POINT_TIE_BODY.format(options=" and ".join(options)),
            ride_id=ride_id,
            data={"ride_id": ride_id, "options": ",".join(options)},
            dedupe_target=f"{ride_id}:{'|'.join(sorted(options))}",
        )
