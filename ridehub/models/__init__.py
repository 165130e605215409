"""RideHub Models Package"""

from ridehub.models.user import UserRole, CurrentUser
from ridehub.models.ride_group import MemberStatus
from ridehub.models.survey import (
    AttendanceSurvey, AttendanceResponse, AttendanceReportCreate, SurveyStatus,
    SurveyView, RideCompletion, MemberVerdict, ConsensusResult,
)
from ridehub.models.rating import (
    UserRating, RatingCreate, RatingResponse, ReputationResult, RideStats,
)
from ridehub.models.meeting_vote import MeetingVote, MeetingVoteToggle, MeetingPointTally
from ridehub.models.notification import Notification, NotificationType

__all__ = [
    "UserRole", "CurrentUser", "MemberStatus",
    "AttendanceSurvey", "AttendanceResponse", "AttendanceReportCreate", "SurveyStatus",
    "SurveyView", "RideCompletion", "MemberVerdict", "ConsensusResult",
    "UserRating", "RatingCreate", "RatingResponse", "ReputationResult", "RideStats",
    "MeetingVote", "MeetingVoteToggle", "MeetingPointTally",
    "Notification", "NotificationType",
]
