"""
Scheduler Package

Attendance survey jobs with monitoring and error handling.
"""

from ridehub.scheduler.jobs import (
    ALL_JOBS,
    attendance_survey_job,
    survey_expiry_job,
)

__all__ = [
    "ALL_JOBS",
    "attendance_survey_job",
    "survey_expiry_job",
]
