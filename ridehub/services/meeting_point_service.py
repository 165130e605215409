"""
Meeting Point Service - Plurality voting on where a ride meets.

Members toggle votes on free-text options. The option with the most votes
becomes the ride's ``meeting_point``; a tie is left unresolved and the
members are asked to break it.
"""

import logging
from typing import Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from ridehub.database import get_db
from ridehub.exceptions import NotEligibleError, RideNotFoundError
from ridehub.models.meeting_vote import MeetingPointTally, MeetingVote
from ridehub.services.membership_service import MembershipService
from ridehub.services.notification_service import NotificationService


logger = logging.getLogger(__name__)


def tally_meeting_votes(
    ride_id: str, votes: List[dict], user_id: Optional[str] = None
) -> MeetingPointTally:
    """
    Project vote rows into counts and leaders.

    Options are ordered by count, then alphabetically, so the projection is
    stable for equal counts.
    """
    counts: Dict[str, int] = {}
    my_votes = []
    for vote in votes:
        option = vote["vote_option"]
        counts[option] = counts.get(option, 0) + 1
        if user_id and vote.get("user_id") == user_id:
            my_votes.append(option)

    ordered = dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))

    leaders: List[str] = []
    if ordered:
        top = next(iter(ordered.values()))
        leaders = [option for option, count in ordered.items() if count == top]

    return MeetingPointTally(
        ride_id=ride_id,
        counts=ordered,
        leaders=leaders,
        leader=leaders[0] if len(leaders) == 1 else None,
        is_tie=len(leaders) > 1,
        total_votes=sum(ordered.values()),
        my_votes=sorted(my_votes),
    )


class MeetingPointService:
    """Service for meeting point votes."""

    def __init__(self):
        self.membership = MembershipService()
        self.notification_service = NotificationService()

    async def get_tally(self, ride_id: str, user_id: Optional[str] = None) -> MeetingPointTally:
        """Current vote counts for a ride."""
        db = get_db()
        votes = await db.meeting_votes.find(
            {"ride_id": ride_id}, {"vote_option": 1, "user_id": 1}
        ).to_list(None)
        return tally_meeting_votes(ride_id, votes, user_id)

    async def toggle_vote(self, ride_id: str, user_id: str, vote_option: str) -> MeetingPointTally:
        """
        Add the caller's vote for an option, or remove it if already cast.

        Raises RideNotFoundError for an unknown ride and NotEligibleError if
        the caller has not joined it.
        """
        db = get_db()

        ride = await self.membership.get_ride(ride_id)
        if not ride:
            raise RideNotFoundError(f"Ride {ride_id} not found")

        if not await self.membership.is_joined_member(ride_id, user_id):
            raise NotEligibleError("You are not a member of this ride")

        option = vote_option.strip()
        if not option:
            raise ValueError("Meeting point option cannot be empty")

        removed = await db.meeting_votes.delete_one(
            {"ride_id": ride_id, "user_id": user_id, "vote_option": option}
        )
        if removed.deleted_count == 0:
            vote = MeetingVote(ride_id=ride_id, user_id=user_id, vote_option=option)
            try:
                await db.meeting_votes.insert_one(vote.model_dump())
            except DuplicateKeyError:
                # Concurrent double-tap; the vote is already there
                logger.debug(f"[MeetingPoint] Vote by {user_id} already recorded")

        tally = await self.get_tally(ride_id, user_id)
        await self._apply_tally(ride, tally)
        return tally

    async def _apply_tally(self, ride: dict, tally: MeetingPointTally):
        """Write a clear leader to the ride; ask members to break a tie."""
        db = get_db()
        ride_id = ride["ride_id"]

        if tally.leader:
            if ride.get("meeting_point") != tally.leader:
                await db.ride_groups.update_one(
                    {"ride_id": ride_id}, {"$set": {"meeting_point": tally.leader}}
                )
                logger.info(f"[MeetingPoint] Ride {ride_id} meets at {tally.leader}")
            return

        if not tally.is_tie:
            return

        member_ids = await self.membership.list_joined_members(ride_id)
        for member_id in member_ids:
            await self.notification_service.notify_meeting_point_tie(
                user_id=member_id, ride_id=ride_id, options=tally.leaders
            )
        logger.info(
            f"[MeetingPoint] Ride {ride_id} tied between {', '.join(tally.leaders)}"
        )
