"""
Authentication Service

Firebase Admin SDK integration for token verification.
"""

import logging
from typing import Optional

import firebase_admin
from firebase_admin import auth as firebase_auth, credentials
from pymongo.errors import PyMongoError

from ridehub.config import settings
from ridehub.database import get_db
from ridehub.models.user import CurrentUser, UserRole


logger = logging.getLogger(__name__)


# =============================================================================
# Firebase Initialization
# =============================================================================

_firebase_app = None


def init_firebase():
    """
    Initialize Firebase Admin SDK.

    SECURITY: The service account credentials must be kept secure.
    Never log or expose the credentials.
    """
    global _firebase_app

    if _firebase_app is not None:
        return _firebase_app

    creds = settings.firebase_credentials
    if creds is None:
        raise RuntimeError(
            "Firebase credentials not configured. "
            "Set FIREBASE_SERVICE_ACCOUNT_JSON or FIREBASE_SERVICE_ACCOUNT_PATH in .env"
        )

    cred = credentials.Certificate(creds)
    _firebase_app = firebase_admin.initialize_app(cred)
    return _firebase_app


class AuthService:
    """
    Resolves the caller of a request from a Firebase ID token.

    Account creation and profile management live in the account layer; this
    service only needs the caller's id and role.
    """

    def __init__(self):
        try:
            init_firebase()
        except (RuntimeError, ValueError) as e:
            # Allow startup without credentials; every token is then rejected
            logger.warning(f"[Auth] Firebase initialization failed: {e}")

    def verify_firebase_token(self, id_token: str) -> Optional[dict]:
        """
        Verify a Firebase ID token and return the decoded claims.

        Returns None for invalid, expired or revoked tokens and when
        Firebase is not initialized.
        """
        try:
            return firebase_auth.verify_id_token(id_token)
        except (
            firebase_auth.InvalidIdTokenError,
            firebase_auth.ExpiredIdTokenError,
            firebase_auth.RevokedIdTokenError,
            firebase_auth.CertificateFetchError,
        ) as e:
            logger.info(f"[Auth] Token rejected: {type(e).__name__}")
            return None
        except ValueError as e:
            logger.warning(f"[Auth] Token verification unavailable: {e}")
            return None

    async def resolve_user(self, claims: dict) -> CurrentUser:
        """Build the caller identity, reading the role from the user profile."""
        user_id = claims["uid"]
        role = UserRole.USER

        try:
            doc = await get_db().users.find_one({"user_id": user_id}, {"role": 1})
        except PyMongoError as e:
            logger.warning(f"[Auth] Could not load role for {user_id}: {e}")
            doc = None

        if doc and doc.get("role") == UserRole.ADMIN.value:
            role = UserRole.ADMIN

        return CurrentUser(user_id=user_id, email=claims.get("email"), role=role)
