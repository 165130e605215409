"""
Surveys Router

Attendance survey endpoints for ride members.
"""

from fastapi import APIRouter, Depends

from ridehub.dependencies import get_admin_user, get_current_user
from ridehub.models.survey import (
    AttendanceReportCreate,
    AttendanceResponse,
    ConsensusResult,
    SurveyView,
)
from ridehub.models.user import CurrentUser
from ridehub.services.consensus_service import ConsensusService
from ridehub.services.response_service import ResponseService


router = APIRouter()
response_service = ResponseService()
consensus_service = ConsensusService()


@router.get("/ride/{ride_id}", response_model=SurveyView)
async def get_ride_survey(
    ride_id: str, current_user: CurrentUser = Depends(get_current_user)
):
    """Get the attendance survey of a ride the caller belongs to."""
    return await response_service.get_survey_for_ride(ride_id, current_user.user_id)


@router.post("/{survey_id}/responses", response_model=AttendanceResponse)
async def submit_attendance_report(
    survey_id: str,
    data: AttendanceReportCreate,
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Report who showed up for the ride.

    - Only members of the ride when the survey opened may respond
    - One response per member; it cannot be changed afterwards
    - Reported users must be members of the ride
    """
    return await response_service.submit_attendance_report(
        survey_id=survey_id,
        respondent_user_id=current_user.user_id,
        attended_user_ids=data.attended_user_ids,
    )


@router.post(
    "/{survey_id}/resolve",
    response_model=ConsensusResult,
    dependencies=[Depends(get_admin_user)],
)
async def resolve_survey(survey_id: str):
    """
    Resolve a survey now instead of waiting for its deadline.

    **Admin only**
    """
    return await consensus_service.resolve_consensus(survey_id)
