"""Meeting Point Vote Model - Plurality votes on where a ride meets."""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class MeetingVote(BaseModel):
    """One member's vote for one meeting point option. Members may back several options."""
    ride_id: str
    user_id: str
    vote_option: str = Field(..., min_length=1, max_length=200)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class MeetingVoteToggle(BaseModel):
    """Toggle a vote: adds it if absent, removes it if present."""
    vote_option: str = Field(..., min_length=1, max_length=200)


class MeetingPointTally(BaseModel):
    """Derived view of the current meeting point vote."""
    ride_id: str
    counts: Dict[str, int] = Field(default_factory=dict)
    leaders: List[str] = Field(default_factory=list)
    leader: Optional[str] = None
    is_tie: bool = False
    total_votes: int = 0
    my_votes: List[str] = Field(default_factory=list)
