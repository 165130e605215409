"""
Rating Service

Handles rating submission between members who both completed a ride.
"""

import logging
import uuid
from typing import List, Optional

from pymongo.errors import DuplicateKeyError

from ridehub.database import get_db
from ridehub.exceptions import DuplicateRatingError, NotEligibleError
from ridehub.models.rating import RatingCreate, UserRating
from ridehub.services.reputation_service import ReputationService


logger = logging.getLogger(__name__)


class RatingService:
    """Service for managing user ratings."""

    def __init__(self):
        self.reputation = ReputationService()

    async def submit_rating(self, rater_user_id: str, data: RatingCreate) -> UserRating:
        """
        Submit a rating for another user.

        Validates:
        - Not rating themselves
        - Rater and rated user both have a confirmed completion for the ride
        - Hasn't already rated this user for this ride
        """
        db = get_db()

        if rater_user_id == data.rated_user_id:
            raise ValueError("Cannot rate yourself")

        if not await self.reputation.has_completed_ride(rater_user_id, data.ride_id):
            raise NotEligibleError("You were not confirmed on this ride")

        if not await self.reputation.has_completed_ride(data.rated_user_id, data.ride_id):
            raise NotEligibleError("Rated user was not confirmed on this ride")

        rating = UserRating(
            rating_id=str(uuid.uuid4()),
            ride_id=data.ride_id,
            rater_user_id=rater_user_id,
            rated_user_id=data.rated_user_id,
            rating=data.rating,
            comment=data.comment,
        )

        try:
            await db.user_ratings.insert_one(rating.model_dump())
        except DuplicateKeyError as e:
            raise DuplicateRatingError(
                "You have already rated this user for this ride"
            ) from e

        logger.info(
            f"[Ratings] {rater_user_id} rated {data.rated_user_id} "
            f"{data.rating} stars for ride {data.ride_id}"
        )

        return rating

    async def get_pending_ratings(self, user_id: str, ride_id: str) -> List[dict]:
        """
        Get confirmed co-riders this user has not rated yet for a ride.
        """
        db = get_db()

        cursor = db.ride_completions.find({"ride_id": ride_id}, {"user_id": 1})
        confirmed = [doc["user_id"] async for doc in cursor]
        if user_id not in confirmed:
            return []

        cursor = db.user_ratings.find(
            {"rater_user_id": user_id, "ride_id": ride_id}, {"rated_user_id": 1}
        )
        rated_ids = {doc["rated_user_id"] async for doc in cursor}

        pending = []
        for uid in confirmed:
            if uid == user_id or uid in rated_ids:
                continue
            user = await db.users.find_one({"user_id": uid}, {"display_name": 1})
            pending.append(
                {
                    "user_id": uid,
                    "display_name": (user or {}).get("display_name", "User"),
                }
            )

        return pending

    async def get_user_average_rating(self, user_id: str) -> Optional[float]:
        """Get user's average rating."""
        ratings = await self.reputation.get_rating_values(user_id)
        if not ratings:
            return None
        return round(sum(ratings) / len(ratings), 1)
