"""
Tests for Reputation Service

Unit tests for the reliability-weighted score and ride statistics.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from ridehub.services.reputation_service import ReputationService, calculate_reputation


class TestCalculateReputation:
    """Tests for the pure reputation formula."""

    def test_reliable_rider(self):
        """8 of 10 rides completed with a 4.5 average scores 3.6."""
        result = calculate_reputation(8, 10, [5, 4, 5, 4])

        assert result.unrated is False
        assert result.completion_pct == 80.0
        assert result.average_rating == 4.5
        assert result.score == 3.6
        assert result.display == "3.6"

    def test_no_completed_rides_is_unrated(self):
        result = calculate_reputation(0, 5, [5, 5])

        assert result.unrated is True
        assert result.score is None
        assert result.display == "N/A"

    def test_no_ratings_is_unrated(self):
        """Confirmed rides without any rating never show a zero score."""
        result = calculate_reputation(3, 3, [])

        assert result.unrated is True
        assert result.completed_rides == 3
        assert result.display == "N/A"

    def test_completion_capped_at_hundred_percent(self):
        """Completions on rides the user has since left do not inflate the score."""
        result = calculate_reputation(4, 2, [5])

        assert result.completion_pct == 100.0
        assert result.score == 5.0

    def test_perfect_record(self):
        result = calculate_reputation(5, 5, [5, 5, 5])

        assert result.score == 5.0

    def test_score_rounded_to_one_decimal(self):
        # 4.0 * 2/3 = 2.666...
        result = calculate_reputation(2, 3, [4])

        assert result.score == 2.7
        assert result.completion_pct == 66.7

    def test_score_never_exceeds_average(self):
        result = calculate_reputation(7, 9, [3, 4, 5])

        assert 0.0 <= result.score <= result.average_rating

    def test_exposed_on_service(self):
        assert ReputationService.calculate_reputation(1, 1, [4]).score == 4.0


class TestReputationService:
    """Tests for ReputationService reads."""

    @pytest.fixture
    def mock_db(self):
        with patch("ridehub.services.reputation_service.get_db") as mock_get_db:
            db = MagicMock()
            db.ride_completions.distinct = AsyncMock(return_value=[])
            db.ride_members.distinct = AsyncMock(return_value=[])
            db.user_ratings.find.return_value.__aiter__.return_value = []
            mock_get_db.return_value = db
            yield db

    @pytest.fixture
    def service(self):
        return ReputationService()

    @pytest.mark.asyncio
    async def test_compute_reputation_counts_distinct_rides(self, service, mock_db):
        mock_db.ride_completions.distinct.return_value = [f"ride_{i}" for i in range(8)]
        mock_db.ride_members.distinct.return_value = [f"ride_{i}" for i in range(10)]
        mock_db.user_ratings.find.return_value.__aiter__.return_value = [
            {"rating": 5}, {"rating": 4}, {"rating": 5}, {"rating": 4},
        ]

        result = await service.compute_reputation("alice")

        assert result.user_id == "alice"
        assert result.score == 3.6
        assert result.rating_count == 4

        completed_filter = mock_db.ride_completions.distinct.call_args[0]
        assert completed_filter == ("ride_id", {"user_id": "alice"})
        joined_filter = mock_db.ride_members.distinct.call_args[0]
        assert joined_filter == ("ride_id", {"user_id": "alice", "status": "joined"})

    @pytest.mark.asyncio
    async def test_new_user_unrated(self, service, mock_db):
        result = await service.compute_reputation("newbie")

        assert result.unrated is True
        assert result.completed_rides == 0

    @pytest.mark.asyncio
    async def test_ride_stats(self, service, mock_db):
        mock_db.ride_completions.distinct.return_value = ["r1", "r2"]
        mock_db.ride_members.distinct.return_value = ["r1", "r2", "r3"]

        stats = await service.get_ride_stats("alice")

        assert stats.total_rides == 3
        assert stats.completed_rides == 2
        assert stats.completion_percentage == 66.7

    @pytest.mark.asyncio
    async def test_ride_stats_without_rides(self, service, mock_db):
        stats = await service.get_ride_stats("newbie")

        assert stats.total_rides == 0
        assert stats.completion_percentage == 0.0

    @pytest.mark.asyncio
    async def test_has_completed_ride(self, service, mock_db):
        mock_db.ride_completions.find_one = AsyncMock(return_value={"_id": "c1"})

        assert await service.has_completed_ride("alice", "ride_1") is True

        mock_db.ride_completions.find_one.return_value = None
        assert await service.has_completed_ride("alice", "ride_2") is False
