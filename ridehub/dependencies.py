"""
Authentication Dependencies

FastAPI dependencies for authentication and authorization.
"""

from typing import Optional

from fastapi import Depends, HTTPException, status, Header

from ridehub.config import settings
from ridehub.models.user import CurrentUser
from ridehub.services.auth_service import AuthService


auth_service = AuthService()


async def get_current_user(
    authorization: Optional[str] = Header(None)
) -> CurrentUser:
    """
    Get current authenticated user from Firebase token.

    SECURITY: This is the primary authentication gate.
    All protected endpoints should depend on this.

    Expects Authorization header: Bearer <firebase_id_token>
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"}
        )

    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization format. Use: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"}
        )

    token = authorization[7:]  # Remove "Bearer " prefix

    claims = auth_service.verify_firebase_token(token)
    if not claims:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return await auth_service.resolve_user(claims)


async def get_admin_user(
    user: CurrentUser = Depends(get_current_user),
    x_admin_secret: Optional[str] = Header(None)
) -> CurrentUser:
    """
    Get current user with admin privileges.

    SECURITY: Admin access requires a valid Firebase token plus either the
    admin role or the ADMIN_API_SECRET in the X-Admin-Secret header.
    """
    # Service key access
    if x_admin_secret and x_admin_secret == settings.admin_api_secret:
        return user

    # RBAC
    if user.is_admin:
        return user

    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Admin access required"
    )
