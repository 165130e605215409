"""
Reputation Service

Average star rating weighted by how reliably a user shows up to the
rides they join.
"""

import logging
from typing import List

from ridehub.database import get_db
from ridehub.models.rating import ReputationResult, RideStats
from ridehub.models.ride_group import MemberStatus


logger = logging.getLogger(__name__)


def calculate_reputation(
    completed_rides: int, rides_joined: int, ratings: List[int], user_id: str = ""
) -> ReputationResult:
    """
    Compute a reputation from raw counts.

    Unrated when the user has no confirmed rides or no ratings. Otherwise
    ``score = round(average * completion_pct / 100, 1)`` where
    ``completion_pct = completed / max(joined, completed) * 100``, so a user
    confirmed on rides they have since left can never exceed 100%.
    """
    completed_rides = max(completed_rides, 0)
    rides_joined = max(rides_joined, 0)
    rating_count = len(ratings)

    if completed_rides == 0 or rating_count == 0:
        return ReputationResult(
            user_id=user_id,
            unrated=True,
            completed_rides=completed_rides,
            rides_joined=rides_joined,
            rating_count=rating_count,
        )

    denominator = max(rides_joined, completed_rides)
    completion_pct = min(max(completed_rides / denominator * 100, 0.0), 100.0)
    average = sum(ratings) / rating_count

    return ReputationResult(
        user_id=user_id,
        unrated=False,
        score=round(average * completion_pct / 100, 1),
        completed_rides=completed_rides,
        rides_joined=rides_joined,
        completion_pct=round(completion_pct, 1),
        average_rating=round(average, 2),
        rating_count=rating_count,
    )


class ReputationService:
    """Reads the counts behind a user's reputation."""

    calculate_reputation = staticmethod(calculate_reputation)

    async def count_completed_rides(self, user_id: str) -> int:
        db = get_db()
        ride_ids = await db.ride_completions.distinct("ride_id", {"user_id": user_id})
        return len(ride_ids)

    async def count_joined_rides(self, user_id: str) -> int:
        db = get_db()
        ride_ids = await db.ride_members.distinct(
            "ride_id", {"user_id": user_id, "status": MemberStatus.JOINED.value}
        )
        return len(ride_ids)

    async def get_rating_values(self, user_id: str) -> List[int]:
        db = get_db()
        cursor = db.user_ratings.find({"rated_user_id": user_id}, {"rating": 1})
        return [doc["rating"] async for doc in cursor]

    async def compute_reputation(self, user_id: str) -> ReputationResult:
        """Compute a user's reputation from the completion ledger and ratings."""
        completed = await self.count_completed_rides(user_id)
        joined = await self.count_joined_rides(user_id)
        ratings = await self.get_rating_values(user_id)

        result = calculate_reputation(completed, joined, ratings, user_id=user_id)
        logger.debug(f"[Reputation] {user_id}: {result.display}")
        return result

    async def get_ride_stats(self, user_id: str) -> RideStats:
        """Rides joined, rides confirmed and completion percentage."""
        completed = await self.count_completed_rides(user_id)
        joined = await self.count_joined_rides(user_id)

        total = max(joined, completed)
        percentage = round(completed / total * 100, 1) if total > 0 else 0.0

        return RideStats(
            user_id=user_id,
            total_rides=total,
            completed_rides=completed,
            completion_percentage=percentage,
        )

    async def has_completed_ride(self, user_id: str, ride_id: str) -> bool:
        """True if consensus confirmed the user on this ride."""
        db = get_db()
        doc = await db.ride_completions.find_one(
            {"user_id": user_id, "ride_id": ride_id}, {"_id": 1}
        )
        return doc is not None
