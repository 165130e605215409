"""Rating Model - Star ratings members give each other after a confirmed ride."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class UserRating(BaseModel):
    """
    Rating submitted by one member for another after a ride.

    Each row is one data point of the rated user's reputation.
    """
    rating_id: str = Field(..., description="Unique rating ID")
    ride_id: str = Field(..., description="Ride this rating is for")
    rater_user_id: str = Field(..., description="User who gave the rating")
    rated_user_id: str = Field(..., description="User who received the rating")
    rating: int = Field(..., ge=1, le=5, description="1-5 star rating")
    comment: Optional[str] = Field(None, max_length=500, description="Optional comment")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RatingCreate(BaseModel):
    """Data required to submit a rating."""
    rated_user_id: str
    ride_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)


class RatingResponse(BaseModel):
    """Rating response for API."""
    rating_id: str
    rated_user_id: str
    ride_id: str
    rating: int
    created_at: datetime


class ReputationResult(BaseModel):
    """
    Reputation of a user: average stars weighted by completion rate.

    ``unrated`` is True when the user has no confirmed rides or no ratings;
    ``score`` is then None and clients display "N/A".
    """
    user_id: str
    unrated: bool
    score: Optional[float] = None
    completed_rides: int = 0
    rides_joined: int = 0
    completion_pct: Optional[float] = None
    average_rating: Optional[float] = None
    rating_count: int = 0

    @property
    def display(self) -> str:
        return "N/A" if self.unrated else f"{self.score:.1f}"


class RideStats(BaseModel):
    """Ride participation summary for a user."""
    user_id: str
    total_rides: int
    completed_rides: int
    completion_percentage: float
