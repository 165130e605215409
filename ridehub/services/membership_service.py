"""
Membership Service

Read-only lookups into the ride membership store, events and payments.
The attendance core never writes these collections.
"""

import logging
from typing import List, Optional

from pymongo.errors import PyMongoError

from ridehub.database import get_db
from ridehub.exceptions import DependencyError
from ridehub.models.ride_group import MemberStatus


logger = logging.getLogger(__name__)


class MembershipService:
    """Lookups against ride_groups, ride_members, events, ride_payments and users."""

    async def list_joined_members(self, ride_id: str) -> List[str]:
        """
        Return user ids with status ``joined`` for a ride, in join order.

        Raises DependencyError if the membership store cannot be read.
        """
        db = get_db()
        try:
            cursor = db.ride_members.find(
                {"ride_id": ride_id, "status": MemberStatus.JOINED.value},
                {"user_id": 1},
            ).sort("created_at", 1)
            user_ids = []
            async for doc in cursor:
                if doc["user_id"] not in user_ids:
                    user_ids.append(doc["user_id"])
            return user_ids
        except PyMongoError as e:
            raise DependencyError(f"Membership lookup failed for ride {ride_id}: {e}") from e

    async def is_joined_member(self, ride_id: str, user_id: str) -> bool:
        """Check live membership for a single user."""
        db = get_db()
        try:
            doc = await db.ride_members.find_one(
                {
                    "ride_id": ride_id,
                    "user_id": user_id,
                    "status": MemberStatus.JOINED.value,
                }
            )
        except PyMongoError as e:
            raise DependencyError(f"Membership lookup failed for ride {ride_id}: {e}") from e
        return doc is not None

    async def get_ride(self, ride_id: str) -> Optional[dict]:
        """Get a ride group document."""
        db = get_db()
        return await db.ride_groups.find_one({"ride_id": ride_id})

    async def get_payment(self, ride_id: str) -> Optional[dict]:
        """
        Get the cost-split payment recorded for a ride, if any.

        Raises DependencyError if the payment store cannot be read.
        """
        db = get_db()
        try:
            return await db.ride_payments.find_one(
                {"ride_id": ride_id}, sort=[("created_at", -1)]
            )
        except PyMongoError as e:
            raise DependencyError(f"Payment lookup failed for ride {ride_id}: {e}") from e

    async def get_display_name(self, user_id: str, default: str = "A member") -> str:
        """Get a user's display name for notification copy."""
        db = get_db()
        try:
            user = await db.users.find_one({"user_id": user_id}, {"display_name": 1})
        except PyMongoError as e:
            logger.warning(f"[Membership] Could not load profile {user_id}: {e}")
            return default
        if not user:
            return default
        return user.get("display_name") or default
