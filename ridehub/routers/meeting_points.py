"""
Meeting Points Router

Vote on where a ride meets.
"""

from fastapi import APIRouter, Depends

from ridehub.dependencies import get_current_user
from ridehub.models.meeting_vote import MeetingPointTally, MeetingVoteToggle
from ridehub.models.user import CurrentUser
from ridehub.services.meeting_point_service import MeetingPointService


router = APIRouter()
meeting_point_service = MeetingPointService()


@router.get("/{ride_id}", response_model=MeetingPointTally)
async def get_meeting_point_votes(
    ride_id: str, current_user: CurrentUser = Depends(get_current_user)
):
    """Current vote counts, leader and tie flag."""
    return await meeting_point_service.get_tally(ride_id, current_user.user_id)


@router.post("/{ride_id}/votes", response_model=MeetingPointTally)
async def toggle_meeting_point_vote(
    ride_id: str,
    data: MeetingVoteToggle,
    current_user: CurrentUser = Depends(get_current_user),
):
    """Add or remove the caller's vote for an option."""
    return await meeting_point_service.toggle_vote(
        ride_id, current_user.user_id, data.vote_option
    )
