"""
Scheduled Jobs for RideHub Backend

Attendance survey sweeps with:
- Per-job error handling and logging
- Job status tracking
- Alerting on repeated failures
"""

import logging
from typing import Dict, Optional

from ridehub.services.survey_service import SurveyService
from ridehub.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)


class ScheduledJob:
    """Base class for scheduled jobs with error handling and logging."""

    def __init__(self, name: str):
        self.name = name
        self.execution_count = 0
        self.failure_count = 0
        self.consecutive_failures = 0
        self.last_execution = None
        self.last_error: Optional[str] = None
        self.last_result: Optional[Dict] = None

    async def execute(self):
        """Execute the job with error handling and metrics."""
        self.execution_count += 1
        start_time = utc_now()

        try:
            logger.info(f"[{self.name}] Starting execution #{self.execution_count}")
            self.last_result = await self._run()
            self.last_execution = utc_now()
            self.consecutive_failures = 0
            duration = (self.last_execution - start_time).total_seconds()
            logger.info(f"[{self.name}] Completed in {duration:.2f}s: {self.last_result}")

        except Exception as e:
            # Top-level boundary: the scheduler must keep running the next tick
            self.failure_count += 1
            self.consecutive_failures += 1
            self.last_error = str(e)
            logger.error(f"[{self.name}] Failed: {e}", exc_info=True)

            if self.consecutive_failures >= 3:
                self._alert_failure(e)

    async def _run(self) -> Dict:
        """Override this method in subclasses."""
        raise NotImplementedError

    def _alert_failure(self, error: Exception):
        """Alert admins about repeated job failures."""
        # CRITICAL records reach the ops chat through the Telegram log handler
        logger.critical(
            f"[{self.name}] CRITICAL: Failed {self.consecutive_failures} times in a row. "
            f"Last error: {error}"
        )

    def status(self) -> Dict:
        return {
            "name": self.name,
            "execution_count": self.execution_count,
            "failure_count": self.failure_count,
            "consecutive_failures": self.consecutive_failures,
            "last_execution": (
                self.last_execution.isoformat() if self.last_execution else None
            ),
            "last_error": self.last_error,
            "last_result": self.last_result,
            "health": "healthy" if self.consecutive_failures < 3 else "unhealthy",
        }

    def reset(self):
        self.execution_count = 0
        self.failure_count = 0
        self.consecutive_failures = 0
        self.last_error = None


class AttendanceSurveyJob(ScheduledJob):
    """
    Open attendance surveys and remind non-responders.

    Frequency: every SURVEY_SWEEP_INTERVAL_MINUTES
    Purpose: ask every ride's members who actually showed up
    """

    def __init__(self):
        super().__init__("AttendanceSurvey")
        self.survey_service = SurveyService()

    async def _run(self) -> Dict:
        created = await self.survey_service.create_surveys_for_eligible_rides()
        reminded = await self.survey_service.send_survey_reminders()
        return {**created, **reminded}


class SurveyExpiryJob(ScheduledJob):
    """
    Close overdue surveys and run consensus on them.

    Frequency: every SURVEY_SWEEP_INTERVAL_MINUTES
    Purpose: turn collected reports into ride completions
    """

    def __init__(self):
        super().__init__("SurveyExpiry")
        self.survey_service = SurveyService()

    async def _run(self) -> Dict:
        return await self.survey_service.expire_overdue_surveys()


# Job instances (singleton pattern)
attendance_survey_job = AttendanceSurveyJob()
survey_expiry_job = SurveyExpiryJob()

ALL_JOBS = [attendance_survey_job, survey_expiry_job]
