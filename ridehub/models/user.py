"""User Model - Caller identity and roles."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class UserRole(str, Enum):
    """User roles for RBAC."""
    USER = "user"
    ADMIN = "admin"


class CurrentUser(BaseModel):
    """Identity of the caller resolved from a verified Firebase ID token."""
    user_id: str
    email: Optional[str] = None
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
