"""RideHub Services Package"""

from ridehub.services.membership_service import MembershipService
from ridehub.services.notification_service import NotificationService
from ridehub.services.consensus_service import ConsensusService
from ridehub.services.response_service import ResponseService
from ridehub.services.survey_service import SurveyService
from ridehub.services.reputation_service import ReputationService
from ridehub.services.rating_service import RatingService
from ridehub.services.meeting_point_service import MeetingPointService

__all__ = [
    "MembershipService",
    "NotificationService",
    "ConsensusService",
    "ResponseService",
    "SurveyService",
    "ReputationService",
    "RatingService",
    "MeetingPointService",
]
