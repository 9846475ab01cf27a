"""
Pydantic schemas for user management and authentication.
"""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from ..core.config import settings
from ..models.user import UserRole
from .common import APIModel


def _check_password_length(value: str) -> str:
    if len(value) < settings.password_min_length:
        raise ValueError(
            f"Please enter a password with {settings.password_min_length} or more characters"
        )
    return value


# =============================================================================
# User responses (defined first, referenced by auth responses below)
# =============================================================================


class UserSummary(APIModel):
    """Compact user reference embedded in lead and interaction payloads."""
    id: UUID
    name: str
    email: str


class UserResponse(APIModel):
    id: UUID
    name: str
    email: str
    role: UserRole
    phone: Optional[str] = None
    department: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserListResponse(APIModel):
    items: List[UserResponse]
    total: int


# =============================================================================
# Registration / creation
# =============================================================================


class _NewAccount(APIModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return _check_password_length(v)


class RegisterRequest(_NewAccount):
    """Public staff self-registration. Admin accounts cannot be created here."""
    role: Literal["agent", "lead"] = "lead"
    phone: Optional[str] = Field(default=None, max_length=30)
    department: Optional[str] = Field(default=None, max_length=100)


class FirstAdminRequest(_NewAccount):
    pass


class LeadUserRegisterRequest(_NewAccount):
    phone: Optional[str] = Field(default=None, max_length=30)


class UserCreate(_NewAccount):
    """Admin-only: create a user of any role."""
    role: UserRole
    phone: Optional[str] = Field(default=None, max_length=30)
    department: Optional[str] = Field(default=None, max_length=100)


class UserUpdate(APIModel):
    """Profile fields. Role is fixed at creation."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=30)
    department: Optional[str] = Field(default=None, max_length=100)


class PasswordChangeRequest(APIModel):
    current_password: Optional[str] = None
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return _check_password_length(v)


# =============================================================================
# Auth Request / Response
# =============================================================================


class LoginRequest(APIModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(APIModel):
    token: str
    user: UserResponse
