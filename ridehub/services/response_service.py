"""
Response Service - Collects attendance reports from ride members.
"""

import logging
import uuid
from typing import List

from pymongo.errors import DuplicateKeyError

from ridehub.database import get_db, start_transaction
from ridehub.exceptions import (
    DuplicateResponseError,
    InvalidReportError,
    NotEligibleError,
    SurveyClosedError,
    SurveyNotFoundError,
)
from ridehub.models.survey import AttendanceResponse, SurveyStatus, SurveyView
from ridehub.utils.timezone_utils import ensure_utc, utc_now


logger = logging.getLogger(__name__)


class ResponseService:
    """Service for submitting and reading attendance reports."""

    async def submit_attendance_report(
        self,
        survey_id: str,
        respondent_user_id: str,
        attended_user_ids: List[str],
    ) -> AttendanceResponse:
        """
        Record one respondent's report of who was present.

        The response insert and the ``responses_received`` increment commit
        together. The increment only matches while the survey is still
        in progress and before its deadline, so a report racing the expiry
        sweep is rejected instead of landing in a closed survey.

        Raises:
            SurveyNotFoundError: unknown survey
            SurveyClosedError: survey not in progress or past its deadline
            NotEligibleError: respondent not in the member snapshot
            InvalidReportError: attended ids outside the member snapshot
            DuplicateResponseError: respondent already responded
        """
        db = get_db()

        survey = await db.ride_attendance_surveys.find_one({"survey_id": survey_id})
        if not survey:
            raise SurveyNotFoundError(f"Survey {survey_id} not found")

        if survey["status"] != SurveyStatus.IN_PROGRESS.value:
            raise SurveyClosedError("This survey is no longer accepting responses")

        # The sweep may not have flipped the status yet
        now = utc_now()
        if ensure_utc(survey["survey_deadline"]) <= now:
            raise SurveyClosedError("The response window for this survey has closed")

        members = set(survey.get("member_ids") or [])
        if respondent_user_id not in members:
            raise NotEligibleError("You are not a member of this ride")

        attended = list(dict.fromkeys(attended_user_ids))
        outsiders = [uid for uid in attended if uid not in members]
        if outsiders:
            raise InvalidReportError(
                f"Users {', '.join(outsiders)} are not members of this ride"
            )

        response = AttendanceResponse(
            response_id=str(uuid.uuid4()),
            survey_id=survey_id,
            ride_id=survey["ride_id"],
            respondent_user_id=respondent_user_id,
            attended_user_ids=attended,
            responded_at=utc_now(),
        )

        try:
            async with start_transaction() as session:
                await db.ride_attendance_responses.insert_one(
                    response.model_dump(), session=session
                )

                result = await db.ride_attendance_surveys.update_one(
                    {
                        "survey_id": survey_id,
                        "status": SurveyStatus.IN_PROGRESS.value,
                        "survey_deadline": {"$gt": now},
                    },
                    {
                        "$inc": {"responses_received": 1},
                        "$set": {"updated_at": utc_now()},
                    },
                    session=session,
                )

                if result.matched_count == 0:
                    raise SurveyClosedError("This survey is no longer accepting responses")
        except DuplicateKeyError as e:
            raise DuplicateResponseError(
                "You have already responded to this survey"
            ) from e

        logger.info(
            f"[Survey] Response recorded for survey {survey_id} by "
            f"{respondent_user_id} ({len(attended)} attended)"
        )

        return response

    async def get_survey_for_ride(self, ride_id: str, user_id: str) -> SurveyView:
        """
        Get the attendance survey of a ride as seen by one of its members.

        Raises:
            SurveyNotFoundError: ride has no survey yet
            NotEligibleError: caller not in the member snapshot
        """
        db = get_db()

        survey = await db.ride_attendance_surveys.find_one({"ride_id": ride_id})
        if not survey:
            raise SurveyNotFoundError(f"No attendance survey for ride {ride_id}")

        member_ids = survey.get("member_ids") or []
        if user_id not in member_ids:
            raise NotEligibleError("You are not a member of this ride")

        existing = await db.ride_attendance_responses.find_one(
            {"survey_id": survey["survey_id"], "respondent_user_id": user_id},
            {"_id": 1},
        )

        return SurveyView(
            survey_id=survey["survey_id"],
            ride_id=ride_id,
            event_name=survey.get("event_name"),
            status=survey["status"],
            survey_deadline=survey["survey_deadline"],
            total_members=survey.get("total_members", len(member_ids)),
            responses_received=survey.get("responses_received", 0),
            member_ids=member_ids,
            has_responded=existing is not None,
        )
