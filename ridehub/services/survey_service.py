"""
Survey Service - Attendance survey lifecycle.

Opens a survey for each ride whose event has started, reminds members who
have not answered, and closes overdue surveys by handing them to the
consensus resolver. Every step is safe to re-run: creation is guarded by the
unique ride index, reminders by ``reminder_sent_at`` and resolution by
``consensus_processed``.
"""

import logging
import uuid
from datetime import timedelta
from typing import Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from ridehub.config import settings
from ridehub.database import get_db
from ridehub.models.survey import AttendanceSurvey, SurveyStatus
from ridehub.services.consensus_service import ConsensusService
from ridehub.services.membership_service import MembershipService
from ridehub.services.notification_service import NotificationService
from ridehub.utils.timezone_utils import ensure_utc, utc_now


logger = logging.getLogger(__name__)


class SurveyService:
    """Service for creating, reminding and expiring attendance surveys."""

    def __init__(self):
        self.membership = MembershipService()
        self.notification_service = NotificationService()
        self.consensus = ConsensusService()

    # =========================================================================
    # Creation
    # =========================================================================

    async def _find_rides_without_survey(self, cutoff) -> List[dict]:
        """Rides whose event started before ``cutoff`` and which have no survey."""
        db = get_db()

        pipeline = [
            {
                "$lookup": {
                    "from": "events",
                    "localField": "event_id",
                    "foreignField": "event_id",
                    "as": "event",
                }
            },
            {"$unwind": "$event"},
            {"$match": {"event.date_time": {"$lte": cutoff}}},
            {
                "$lookup": {
                    "from": "ride_attendance_surveys",
                    "localField": "ride_id",
                    "foreignField": "ride_id",
                    "as": "surveys",
                }
            },
            {"$match": {"surveys": {"$size": 0}}},
            {"$sort": {"event.date_time": 1}},
            {"$limit": settings.sweep_batch_limit},
            {
                "$project": {
                    "_id": 0,
                    "ride_id": 1,
                    "event_name": "$event.name",
                    "event_time": "$event.date_time",
                }
            },
        ]

        return await db.ride_groups.aggregate(pipeline).to_list(None)

    async def create_survey_for_ride(self, ride: dict) -> Optional[AttendanceSurvey]:
        """
        Open the attendance survey for one ride and notify its members.

        Returns None when the ride has no joined members or a survey already
        exists. Raises DependencyError if membership cannot be read.
        """
        db = get_db()
        ride_id = ride["ride_id"]

        member_ids = await self.membership.list_joined_members(ride_id)
        if not member_ids:
            logger.info(f"[SurveySweep] No joined members for ride {ride_id}, skipping")
            return None

        now = utc_now()
        event_time = ensure_utc(ride["event_time"])
        survey = AttendanceSurvey(
            survey_id=str(uuid.uuid4()),
            ride_id=ride_id,
            event_name=ride.get("event_name"),
            status=SurveyStatus.IN_PROGRESS,
            member_ids=member_ids,
            total_members=len(member_ids),
            responses_received=0,
            survey_sent_at=now,
            survey_deadline=event_time + timedelta(hours=settings.survey_window_hours),
            created_at=now,
            updated_at=now,
        )

        try:
            await db.ride_attendance_surveys.insert_one(survey.model_dump())
        except DuplicateKeyError:
            logger.info(f"[SurveySweep] Survey for ride {ride_id} already exists")
            return None

        logger.info(
            f"[SurveySweep] Created survey {survey.survey_id} for ride {ride_id} "
            f"({len(member_ids)} members)"
        )

        event_name = survey.event_name or "your event"
        for user_id in member_ids:
            await self.notification_service.notify_survey_open(
                user_id=user_id,
                survey_id=survey.survey_id,
                ride_id=ride_id,
                event_name=event_name,
                deadline=survey.survey_deadline,
            )

        return survey

    async def create_surveys_for_eligible_rides(self) -> Dict[str, int]:
        """Open surveys for every ride whose event started at least the grace period ago."""
        cutoff = utc_now() - timedelta(minutes=settings.survey_grace_minutes)
        rides = await self._find_rides_without_survey(cutoff)

        if not rides:
            logger.debug("[SurveySweep] No rides need a survey")
            return {"created": 0}

        created = 0
        for ride in rides:
            try:
                if await self.create_survey_for_ride(ride):
                    created += 1
            except Exception as e:
                logger.error(
                    f"[SurveySweep] Failed to create survey for ride {ride.get('ride_id')}: {e}"
                )

        logger.info(f"[SurveySweep] Created {created}/{len(rides)} surveys")
        return {"created": created}

    # =========================================================================
    # Reminders
    # =========================================================================

    async def _claim_reminder(self, survey_id: str) -> bool:
        """Stamp ``reminder_sent_at`` if nobody has. True if this call won."""
        db = get_db()
        now = utc_now()
        result = await db.ride_attendance_surveys.update_one(
            {
                "survey_id": survey_id,
                "status": SurveyStatus.IN_PROGRESS.value,
                "reminder_sent_at": None,
            },
            {"$set": {"reminder_sent_at": now, "updated_at": now}},
        )
        return result.modified_count == 1

    async def _respondent_ids(self, survey_id: str) -> set:
        db = get_db()
        docs = await db.ride_attendance_responses.find(
            {"survey_id": survey_id}, {"respondent_user_id": 1}
        ).to_list(None)
        return {doc["respondent_user_id"] for doc in docs}

    async def send_survey_reminders(self) -> Dict[str, int]:
        """
        Remind non-responders once per survey.

        The reminder is claimed before anyone is notified, so a restart or
        a second worker never sends it twice. Members who answer later are
        simply not reminded.
        """
        db = get_db()
        cutoff = utc_now() - timedelta(hours=settings.survey_reminder_hours)

        surveys = await db.ride_attendance_surveys.find(
            {
                "status": SurveyStatus.IN_PROGRESS.value,
                "reminder_sent_at": None,
                "survey_sent_at": {"$lte": cutoff},
            }
        ).to_list(settings.sweep_batch_limit)

        reminded = 0
        for survey in surveys:
            survey_id = survey["survey_id"]
            try:
                if not await self._claim_reminder(survey_id):
                    continue

                responded = await self._respondent_ids(survey_id)
                pending = [
                    uid for uid in survey.get("member_ids") or [] if uid not in responded
                ]

                for user_id in pending:
                    if await self.notification_service.notify_survey_reminder(
                        user_id=user_id,
                        survey_id=survey_id,
                        ride_id=survey["ride_id"],
                        event_name=survey.get("event_name") or "your event",
                    ):
                        reminded += 1

                logger.info(
                    f"[SurveySweep] Reminded {len(pending)} non-responders for survey {survey_id}"
                )
            except Exception as e:
                logger.error(f"[SurveySweep] Reminder failed for survey {survey_id}: {e}")

        return {"reminded": reminded}

    # =========================================================================
    # Expiry
    # =========================================================================

    async def expire_overdue_surveys(self) -> Dict[str, int]:
        """
        Close surveys past their deadline and resolve them.

        Surveys already marked expired but not yet processed are picked up
        again, so a resolution that crashed after the status flip is retried.
        """
        db = get_db()
        now = utc_now()

        surveys = await db.ride_attendance_surveys.find(
            {
                "status": {
                    "$in": [SurveyStatus.IN_PROGRESS.value, SurveyStatus.EXPIRED.value]
                },
                "consensus_processed": False,
                "survey_deadline": {"$lt": now},
            },
            {"survey_id": 1, "status": 1},
        ).to_list(settings.sweep_batch_limit)

        expired = 0
        resolved = 0
        failed = 0

        for survey in surveys:
            survey_id = survey["survey_id"]
            try:
                if survey["status"] == SurveyStatus.IN_PROGRESS.value:
                    result = await db.ride_attendance_surveys.update_one(
                        {
                            "survey_id": survey_id,
                            "status": SurveyStatus.IN_PROGRESS.value,
                        },
                        {
                            "$set": {
                                "status": SurveyStatus.EXPIRED.value,
                                "updated_at": utc_now(),
                            }
                        },
                    )
                    if result.modified_count:
                        expired += 1
                        logger.info(f"[SurveySweep] Survey {survey_id} expired")

                outcome = await self.consensus.resolve_consensus(survey_id)
                if not outcome.already_processed:
                    resolved += 1
            except Exception as e:
                failed += 1
                logger.error(f"[SurveySweep] Failed to resolve survey {survey_id}: {e}")

        if surveys:
            logger.info(
                f"[SurveySweep] Expiry: {expired} expired, {resolved} resolved, "
                f"{failed} failed"
            )

        return {"expired": expired, "resolved": resolved, "failed": failed}

    # =========================================================================
    # Sweep
    # =========================================================================

    async def run_sweep(self) -> Dict[str, Dict[str, int]]:
        """Run creation, reminders and expiry in order, each isolated from the others."""
        results: Dict[str, Dict[str, int]] = {}

        steps = [
            ("creation", self.create_surveys_for_eligible_rides),
            ("reminders", self.send_survey_reminders),
            ("expiry", self.expire_overdue_surveys),
        ]

        for name, step in steps:
            try:
                results[name] = await step()
            except Exception as e:
                logger.error(f"[SurveySweep] Step {name} failed: {e}")
                results[name] = {"error": 1}

        return results
