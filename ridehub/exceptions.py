"""
RideHub Exceptions

Domain error taxonomy shared by services and mapped to HTTP responses in
``ridehub.main``.
"""


class RideHubError(Exception):
    """Base exception for RideHub domain errors."""

    pass


# ===========================================
# Not Found
# ===========================================


class NotFoundError(RideHubError):
    """Referenced survey, ride or user does not exist. Never retried."""

    pass


class SurveyNotFoundError(NotFoundError):
    """No attendance survey with this id (or for this ride)."""

    pass


class RideNotFoundError(NotFoundError):
    """No ride group with this id."""

    pass


# ===========================================
# State Conflicts
# ===========================================


class StateConflictError(RideHubError):
    """Operation conflicts with the current state of a record."""

    pass


class SurveyClosedError(StateConflictError):
    """Survey is no longer accepting responses."""

    pass


class DuplicateResponseError(StateConflictError):
    """Respondent already submitted a report for this survey."""

    pass


class NotEligibleError(StateConflictError):
    """Caller is not part of the survey's member snapshot or the ride."""

    pass


class DuplicateRatingError(StateConflictError):
    """Rater already rated this user for this ride."""

    pass


# ===========================================
# Validation
# ===========================================


class InvalidReportError(RideHubError):
    """Attendance report names users outside the ride's membership."""

    pass


# ===========================================
# Collaborator Failures
# ===========================================


class DependencyError(RideHubError):
    """Membership or payment lookup failed for a single ride/survey."""

    pass


class NotificationError(RideHubError):
    """Notification dispatch failed. Always logged and swallowed."""

    pass
