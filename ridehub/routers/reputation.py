"""
Reputation Router

Reliability-weighted reputation and ride statistics.
"""

from fastapi import APIRouter, Depends

from ridehub.dependencies import get_current_user
from ridehub.models.rating import RideStats
from ridehub.models.user import CurrentUser
from ridehub.services.reputation_service import ReputationService


router = APIRouter()
reputation_service = ReputationService()


@router.get("/{user_id}")
async def get_reputation(
    user_id: str, current_user: CurrentUser = Depends(get_current_user)
) -> dict:
    """
    Get a user's reputation.

    Unrated users (no confirmed rides or no ratings) display "N/A".
    """
    result = await reputation_service.compute_reputation(user_id)
    return {**result.model_dump(), "display": result.display}


@router.get("/{user_id}/stats", response_model=RideStats)
async def get_ride_stats(
    user_id: str, current_user: CurrentUser = Depends(get_current_user)
):
    """Get rides joined, rides confirmed and completion percentage."""
    return await reputation_service.get_ride_stats(user_id)
