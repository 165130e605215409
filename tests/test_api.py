"""
API Tests

Route wiring and domain error to HTTP status mapping.
"""

import pytest
from datetime import datetime, timezone
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, patch

from ridehub.dependencies import get_admin_user, get_current_user
from ridehub.exceptions import (
    DependencyError,
    DuplicateResponseError,
    InvalidReportError,
    SurveyClosedError,
    SurveyNotFoundError,
)
from ridehub.main import app, run
from ridehub.models.rating import ReputationResult
from ridehub.models.survey import AttendanceResponse, ConsensusResult
from ridehub.models.user import CurrentUser, UserRole


@pytest.fixture
def client():
    app.dependency_overrides[get_current_user] = lambda: CurrentUser(user_id="alice")
    app.dependency_overrides[get_admin_user] = lambda: CurrentUser(
        user_id="admin", role=UserRole.ADMIN
    )
    # No lifespan: the database is never touched and rate limiting fails open
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


class TestSurveyRoutes:
    """Tests for /api/v1/surveys."""

    def test_submit_report(self, client):
        response = AttendanceResponse(
            response_id="resp_1",
            survey_id="survey_1",
            ride_id="ride_1",
            respondent_user_id="alice",
            attended_user_ids=["alice", "bob"],
            responded_at=datetime(2026, 3, 15, tzinfo=timezone.utc),
        )
        with patch("ridehub.routers.surveys.response_service") as mock_service:
            mock_service.submit_attendance_report = AsyncMock(return_value=response)

            res = client.post(
                "/api/v1/surveys/survey_1/responses",
                json={"attended_user_ids": ["alice", "bob", "bob"]},
            )

            assert res.status_code == 200
            assert res.json()["response_id"] == "resp_1"
            kwargs = mock_service.submit_attendance_report.call_args.kwargs
            assert kwargs["respondent_user_id"] == "alice"
            assert kwargs["attended_user_ids"] == ["alice", "bob"]

    @pytest.mark.parametrize(
        "error, status_code",
        [
            (SurveyNotFoundError("missing"), 404),
            (SurveyClosedError("closed"), 409),
            (DuplicateResponseError("again"), 409),
            (InvalidReportError("outsider"), 400),
            (DependencyError("down"), 503),
        ],
    )
    def test_domain_errors_mapped(self, client, error, status_code):
        with patch("ridehub.routers.surveys.response_service") as mock_service:
            mock_service.submit_attendance_report = AsyncMock(side_effect=error)

            res = client.post(
                "/api/v1/surveys/survey_1/responses",
                json={"attended_user_ids": []},
            )

            assert res.status_code == status_code
            assert res.json()["error"] == type(error).__name__

    def test_resolve_admin_route(self, client):
        with patch("ridehub.routers.surveys.consensus_service") as mock_service:
            mock_service.resolve_consensus = AsyncMock(
                return_value=ConsensusResult(survey_id="survey_1", completions=2)
            )

            res = client.post("/api/v1/surveys/survey_1/resolve")

            assert res.status_code == 200
            assert res.json()["completions"] == 2


class TestReputationRoutes:
    """Tests for /api/v1/reputation."""

    def test_unrated_displays_na(self, client):
        with patch("ridehub.routers.reputation.reputation_service") as mock_service:
            mock_service.compute_reputation = AsyncMock(
                return_value=ReputationResult(user_id="bob", unrated=True)
            )

            res = client.get("/api/v1/reputation/bob")

            assert res.status_code == 200
            assert res.json()["unrated"] is True
            assert res.json()["display"] == "N/A"


class TestHealth:
    def test_health(self, client):
        res = client.get("/health")

        assert res.status_code == 200
        assert res.json()["status"] == "healthy"


class TestRunner:
    def test_run_serves_app_with_uvicorn(self):
        with patch("ridehub.main.uvicorn") as mock_uvicorn, \
                patch("ridehub.main.settings") as mock_settings:
            mock_settings.host = "127.0.0.1"
            mock_settings.port = 9000
            mock_settings.debug = False

            run()

            mock_uvicorn.run.assert_called_once_with(
                "ridehub.main:app", host="127.0.0.1", port=9000, reload=False
            )
