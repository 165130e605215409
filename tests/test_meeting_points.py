"""
Tests for Meeting Point Service

Vote tally projection, toggling and tie handling.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from ridehub.exceptions import NotEligibleError, RideNotFoundError
from ridehub.services.meeting_point_service import MeetingPointService, tally_meeting_votes


def vote(user_id, option):
    return {"user_id": user_id, "vote_option": option}


class TestTallyMeetingVotes:
    """Tests for the pure tally projection."""

    def test_single_leader(self):
        tally = tally_meeting_votes(
            "ride_1",
            [vote("a", "Library"), vote("b", "Library"), vote("c", "Gym")],
            user_id="a",
        )

        assert tally.counts == {"Library": 2, "Gym": 1}
        assert tally.leader == "Library"
        assert tally.is_tie is False
        assert tally.total_votes == 3
        assert tally.my_votes == ["Library"]

    def test_tie_has_no_leader(self):
        tally = tally_meeting_votes(
            "ride_1", [vote("a", "Library"), vote("b", "Gym")]
        )

        assert tally.is_tie is True
        assert tally.leader is None
        assert tally.leaders == ["Gym", "Library"]

    def test_no_votes(self):
        tally = tally_meeting_votes("ride_1", [])

        assert tally.counts == {}
        assert tally.leader is None
        assert tally.is_tie is False

    def test_member_may_back_several_options(self):
        tally = tally_meeting_votes(
            "ride_1",
            [vote("a", "Library"), vote("a", "Gym"), vote("b", "Gym")],
            user_id="a",
        )

        assert tally.leader == "Gym"
        assert tally.my_votes == ["Gym", "Library"]


class TestMeetingPointService:
    """Tests for MeetingPointService.toggle_vote."""

    @pytest.fixture
    def mock_db(self):
        with patch("ridehub.services.meeting_point_service.get_db") as mock_get_db:
            db = MagicMock()
            db.meeting_votes.delete_one = AsyncMock(return_value=MagicMock(deleted_count=0))
            db.meeting_votes.insert_one = AsyncMock()
            db.meeting_votes.find.return_value.to_list = AsyncMock(return_value=[])
            db.ride_groups.update_one = AsyncMock()
            mock_get_db.return_value = db
            yield db

    @pytest.fixture
    def service(self):
        with patch("ridehub.services.meeting_point_service.MembershipService") as MockMembership, \
                patch("ridehub.services.meeting_point_service.NotificationService") as MockNotifications:
            membership = MockMembership.return_value
            membership.get_ride = AsyncMock(
                return_value={"ride_id": "ride_1", "meeting_point": None}
            )
            membership.is_joined_member = AsyncMock(return_value=True)
            membership.list_joined_members = AsyncMock(return_value=["a", "b", "c"])

            notifications = MockNotifications.return_value
            notifications.notify_meeting_point_tie = AsyncMock(return_value=True)

            yield MeetingPointService()

    @pytest.mark.asyncio
    async def test_adds_vote_and_sets_leader(self, service, mock_db):
        mock_db.meeting_votes.find.return_value.to_list.return_value = [vote("a", "Library")]

        tally = await service.toggle_vote("ride_1", "a", "  Library ")

        stored = mock_db.meeting_votes.insert_one.call_args[0][0]
        assert stored["vote_option"] == "Library"
        assert tally.leader == "Library"
        mock_db.ride_groups.update_one.assert_awaited_once_with(
            {"ride_id": "ride_1"}, {"$set": {"meeting_point": "Library"}}
        )

    @pytest.mark.asyncio
    async def test_second_toggle_removes_vote(self, service, mock_db):
        mock_db.meeting_votes.delete_one.return_value = MagicMock(deleted_count=1)

        await service.toggle_vote("ride_1", "a", "Library")

        mock_db.meeting_votes.insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_unchanged_leader_not_rewritten(self, service, mock_db):
        service.membership.get_ride.return_value = {
            "ride_id": "ride_1", "meeting_point": "Library"
        }
        mock_db.meeting_votes.find.return_value.to_list.return_value = [vote("a", "Library")]

        await service.toggle_vote("ride_1", "a", "Library")

        mock_db.ride_groups.update_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_tie_notifies_members(self, service, mock_db):
        mock_db.meeting_votes.find.return_value.to_list.return_value = [
            vote("a", "Library"), vote("b", "Gym"),
        ]

        tally = await service.toggle_vote("ride_1", "b", "Gym")

        assert tally.is_tie is True
        mock_db.ride_groups.update_one.assert_not_called()
        notify = service.notification_service.notify_meeting_point_tie
        assert notify.call_count == 3
        assert all(c.kwargs["options"] == ["Gym", "Library"] for c in notify.call_args_list)

    @pytest.mark.asyncio
    async def test_non_member_rejected(self, service, mock_db):
        service.membership.is_joined_member.return_value = False

        with pytest.raises(NotEligibleError):
            await service.toggle_vote("ride_1", "mallory", "Library")

        mock_db.meeting_votes.insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_ride(self, service, mock_db):
        service.membership.get_ride.return_value = None

        with pytest.raises(RideNotFoundError):
            await service.toggle_vote("missing", "a", "Library")

    @pytest.mark.asyncio
    async def test_blank_option_rejected(self, service, mock_db):
        with pytest.raises(ValueError):
            await service.toggle_vote("ride_1", "a", "   ")
