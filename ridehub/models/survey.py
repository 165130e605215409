"""Attendance Survey Models - Surveys, responses and consensus outcomes."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class SurveyStatus(str, Enum):
    """Status of an attendance survey."""
    IN_PROGRESS = "in_progress"  # Accepting responses
    EXPIRED = "expired"          # Deadline passed, consensus pending
    COMPLETED = "completed"      # Consensus processed


class AttendanceSurvey(BaseModel):
    """
    One attendance-confirmation round for one ride.

    Created once per ride after the event has started. ``member_ids`` is the
    frozen snapshot of joined members at creation time: it decides who may
    respond and who can be confirmed, and later membership changes never
    alter it. ``consensus_processed`` guards single-shot resolution.
    """
    survey_id: str = Field(..., description="Unique survey id")
    ride_id: str = Field(..., description="Ride this survey belongs to")
    event_name: Optional[str] = Field(None)
    status: SurveyStatus = Field(default=SurveyStatus.IN_PROGRESS)
    member_ids: List[str] = Field(default_factory=list)
    total_members: int = Field(..., ge=0)
    responses_received: int = Field(default=0, ge=0)
    survey_sent_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    survey_deadline: datetime = Field(...)
    reminder_sent_at: Optional[datetime] = Field(None)
    consensus_processed: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        use_enum_values = True


class AttendanceResponse(BaseModel):
    """One respondent's report of who was present."""
    response_id: str
    survey_id: str
    ride_id: str
    respondent_user_id: str
    attended_user_ids: List[str] = Field(default_factory=list)
    responded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AttendanceReportCreate(BaseModel):
    """Data required to submit an attendance report."""
    attended_user_ids: List[str] = Field(default_factory=list)

    @field_validator("attended_user_ids")
    @classmethod
    def dedupe(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(uid for uid in value if uid))


class SurveyView(BaseModel):
    """Survey as shown to one member of the ride."""
    survey_id: str
    ride_id: str
    event_name: Optional[str]
    status: str
    survey_deadline: datetime
    total_members: int
    responses_received: int
    member_ids: List[str]
    has_responded: bool


class RideCompletion(BaseModel):
    """
    Immutable ledger entry confirming a member attended a ride.

    Written only by the consensus resolver and never updated or deleted.
    """
    completion_id: str
    ride_id: str
    survey_id: str
    user_id: str
    vote_count: int = Field(..., ge=0)
    total_voters: int = Field(..., ge=0)
    confirmed_by_consensus: bool = Field(default=True)
    completed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class MemberVerdict(BaseModel):
    """Per-member outcome of the attendance vote."""
    user_id: str
    vote_count: int
    total_voters: int
    percentage: float
    self_reported: bool
    confirmed: bool


class ConsensusResult(BaseModel):
    """Outcome of resolving one survey."""
    survey_id: str
    already_processed: bool = False
    completions: int = 0
    total_responses: int = 0
    total_members: int = 0
    confirmed_user_ids: List[str] = Field(default_factory=list)
    payment_notifications_sent: int = 0
