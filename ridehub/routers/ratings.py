"""
Ratings Router

API endpoints for rating system.
"""

from typing import List

from fastapi import APIRouter, Depends

from ridehub.dependencies import get_current_user
from ridehub.models.user import CurrentUser
from ridehub.models.rating import RatingCreate, RatingResponse
from ridehub.services.rating_service import RatingService


router = APIRouter()
rating_service = RatingService()


@router.post("", response_model=RatingResponse)
async def submit_rating(
    data: RatingCreate, current_user: CurrentUser = Depends(get_current_user)
):
    """
    Submit a rating for another user after a ride.

    - Both users must be confirmed attendees of the ride
    - Can only rate once per user per ride
    - Rating must be 1-5 stars
    """
    rating = await rating_service.submit_rating(
        rater_user_id=current_user.user_id, data=data
    )
    return RatingResponse(
        rating_id=rating.rating_id,
        rated_user_id=rating.rated_user_id,
        ride_id=rating.ride_id,
        rating=rating.rating,
        created_at=rating.created_at,
    )


@router.get("/pending/{ride_id}")
async def get_pending_ratings(
    ride_id: str, current_user: CurrentUser = Depends(get_current_user)
) -> List[dict]:
    """Get confirmed co-riders that haven't been rated yet for a ride."""
    return await rating_service.get_pending_ratings(
        user_id=current_user.user_id, ride_id=ride_id
    )


@router.get("/average/{user_id}")
async def get_user_rating(
    user_id: str, current_user: CurrentUser = Depends(get_current_user)
) -> dict:
    """Get a user's average rating."""
    avg = await rating_service.get_user_average_rating(user_id)
    return {"average_rating": avg}
