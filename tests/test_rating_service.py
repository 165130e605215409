"""
Tests for Rating Service

Ratings are only accepted between confirmed attendees of the same ride.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from pymongo.errors import DuplicateKeyError

from ridehub.exceptions import DuplicateRatingError, NotEligibleError
from ridehub.models.rating import RatingCreate
from ridehub.services.rating_service import RatingService


class TestRatingService:
    """Tests for RatingService."""

    @pytest.fixture
    def mock_db(self):
        with patch("ridehub.services.rating_service.get_db") as mock_get_db:
            db = MagicMock()
            db.user_ratings.insert_one = AsyncMock()
            mock_get_db.return_value = db
            yield db

    @pytest.fixture
    def service(self):
        with patch("ridehub.services.rating_service.ReputationService") as MockReputation:
            reputation = MockReputation.return_value
            reputation.has_completed_ride = AsyncMock(return_value=True)
            reputation.get_rating_values = AsyncMock(return_value=[])
            yield RatingService()

    def rating(self, **overrides):
        data = {"rated_user_id": "bob", "ride_id": "ride_1", "rating": 5}
        data.update(overrides)
        return RatingCreate(**data)

    @pytest.mark.asyncio
    async def test_submit_rating_success(self, service, mock_db):
        rating = await service.submit_rating("alice", self.rating(comment="Great"))

        assert rating.rater_user_id == "alice"
        assert rating.rated_user_id == "bob"
        assert rating.rating == 5

        stored = mock_db.user_ratings.insert_one.call_args[0][0]
        assert stored["ride_id"] == "ride_1"
        assert stored["comment"] == "Great"

    @pytest.mark.asyncio
    async def test_cannot_rate_yourself(self, service, mock_db):
        with pytest.raises(ValueError):
            await service.submit_rating("bob", self.rating())

        mock_db.user_ratings.insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_rater_must_be_confirmed(self, service, mock_db):
        service.reputation.has_completed_ride.side_effect = (
            lambda user_id, ride_id: user_id != "alice"
        )

        with pytest.raises(NotEligibleError):
            await service.submit_rating("alice", self.rating())

    @pytest.mark.asyncio
    async def test_rated_user_must_be_confirmed(self, service, mock_db):
        """A no-show cannot be rated for the ride they skipped."""
        service.reputation.has_completed_ride.side_effect = (
            lambda user_id, ride_id: user_id != "bob"
        )

        with pytest.raises(NotEligibleError):
            await service.submit_rating("alice", self.rating())

        mock_db.user_ratings.insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_rating_rejected(self, service, mock_db):
        mock_db.user_ratings.insert_one.side_effect = DuplicateKeyError("E11000")

        with pytest.raises(DuplicateRatingError):
            await service.submit_rating("alice", self.rating())

    @pytest.mark.asyncio
    async def test_average_rating(self, service, mock_db):
        service.reputation.get_rating_values.return_value = [5, 4, 4]

        assert await service.get_user_average_rating("bob") == 4.3

    @pytest.mark.asyncio
    async def test_average_rating_without_ratings(self, service, mock_db):
        assert await service.get_user_average_rating("bob") is None

    def test_rating_out_of_range(self):
        with pytest.raises(ValueError):
            RatingCreate(rated_user_id="bob", ride_id="ride_1", rating=6)
