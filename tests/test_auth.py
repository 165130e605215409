"""
Tests for Authentication Service

Unit tests for token verification and admin access.
"""

import pytest
from fastapi import HTTPException
from unittest.mock import AsyncMock, MagicMock, patch

from ridehub.dependencies import get_admin_user, get_current_user
from ridehub.models.user import CurrentUser, UserRole
from ridehub.services.auth_service import AuthService


class TestAuthService:
    """Tests for AuthService."""

    @pytest.fixture
    def service(self):
        return AuthService()

    # =========================================================================
    # Token Verification Tests
    # =========================================================================

    def test_verify_token_invalid(self, service):
        """Invalid token should return None."""
        with patch('firebase_admin.auth.verify_id_token') as mock_verify:
            from firebase_admin.auth import InvalidIdTokenError
            mock_verify.side_effect = InvalidIdTokenError("Invalid")

            result = service.verify_firebase_token("invalid_token")

            assert result is None

    def test_verify_token_expired(self, service):
        """Expired token should return None."""
        with patch('firebase_admin.auth.verify_id_token') as mock_verify:
            from firebase_admin.auth import ExpiredIdTokenError
            mock_verify.side_effect = ExpiredIdTokenError("Expired", None)

            result = service.verify_firebase_token("expired_token")

            assert result is None

    def test_verify_token_without_firebase_app(self, service):
        """Uninitialized Firebase rejects every token."""
        with patch('firebase_admin.auth.verify_id_token') as mock_verify:
            mock_verify.side_effect = ValueError("The default Firebase app does not exist")

            assert service.verify_firebase_token("any") is None

    def test_verify_token_valid(self, service):
        """Valid token should return claims."""
        expected_claims = {
            "uid": "firebase_uid_123",
            "email": "rider@example.com",
        }

        with patch('firebase_admin.auth.verify_id_token') as mock_verify:
            mock_verify.return_value = expected_claims

            result = service.verify_firebase_token("valid_token")

            assert result == expected_claims

    # =========================================================================
    # Caller Resolution Tests
    # =========================================================================

    @pytest.mark.asyncio
    async def test_resolve_admin_role(self, service):
        with patch('ridehub.services.auth_service.get_db') as mock_get_db:
            db = MagicMock()
            db.users.find_one = AsyncMock(return_value={"role": "admin"})
            mock_get_db.return_value = db

            user = await service.resolve_user({"uid": "u1", "email": "a@b.c"})

            assert user.user_id == "u1"
            assert user.is_admin is True

    @pytest.mark.asyncio
    async def test_resolve_unknown_profile_is_regular_user(self, service):
        with patch('ridehub.services.auth_service.get_db') as mock_get_db:
            db = MagicMock()
            db.users.find_one = AsyncMock(return_value=None)
            mock_get_db.return_value = db

            user = await service.resolve_user({"uid": "u2"})

            assert user.role == UserRole.USER
            assert user.is_admin is False


class TestDependencies:
    """Tests for the FastAPI auth dependencies."""

    @pytest.mark.asyncio
    async def test_missing_header_rejected(self):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(authorization=None)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_non_bearer_header_rejected(self):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(authorization="Basic abc")

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token_rejected(self):
        with patch('ridehub.dependencies.auth_service') as mock_auth:
            mock_auth.verify_firebase_token.return_value = None

            with pytest.raises(HTTPException) as exc_info:
                await get_current_user(authorization="Bearer bad")

            assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_valid_token_resolves_user(self):
        with patch('ridehub.dependencies.auth_service') as mock_auth:
            mock_auth.verify_firebase_token.return_value = {"uid": "u1"}
            mock_auth.resolve_user = AsyncMock(return_value=CurrentUser(user_id="u1"))

            user = await get_current_user(authorization="Bearer good")

            assert user.user_id == "u1"
            mock_auth.verify_firebase_token.assert_called_once_with("good")

    @pytest.mark.asyncio
    async def test_admin_by_role(self):
        admin = CurrentUser(user_id="u1", role=UserRole.ADMIN)

        assert await get_admin_user(user=admin, x_admin_secret=None) is admin

    @pytest.mark.asyncio
    async def test_admin_by_secret(self):
        user = CurrentUser(user_id="u1")
        with patch('ridehub.dependencies.settings') as mock_settings:
            mock_settings.admin_api_secret = "s3cret"

            assert await get_admin_user(user=user, x_admin_secret="s3cret") is user

    @pytest.mark.asyncio
    async def test_regular_user_denied(self):
        user = CurrentUser(user_id="u1")

        with pytest.raises(HTTPException) as exc_info:
            await get_admin_user(user=user, x_admin_secret="wrong")

        assert exc_info.value.status_code == 403
