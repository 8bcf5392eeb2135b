"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import EmailStr, Field, field_validator

from ascend.schemas import CamelModel


class RegisterRequest(CamelModel):
    """Email registration request."""

    name: str = Field(..., max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=1024)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Trim and enforce 2-100 characters."""
        v = v.strip()
        if not 2 <= len(v) <= 100:  # noqa: PLR2004
            msg = "Name must be 2-100 characters"
            raise ValueError(msg)
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class LoginRequest(CamelModel):
    """Login with email + password."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=1024)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class UserResponse(CamelModel):
    """The signed-in user's own record, minus the password hash."""

    id: int
    name: str
    email: str
    total_xp: int = Field(alias="totalXP")
    level: int
    streak: int
    last_active_date: date | None = None
    body_xp: int = Field(alias="bodyXP")
    skills_xp: int = Field(alias="skillsXP")
    mindset_xp: int = Field(alias="mindsetXP")
    career_xp: int = Field(alias="careerXP")
    custom_xp: int = Field(alias="customXP")
    is_profile_public: bool
    allow_close_friend_requests: bool
    follower_count: int
    close_friend_count: int
    created_at: datetime | None = None


class AuthResponse(CamelModel):
    """Returned by register and login; the token is also set as a cookie."""

    user: UserResponse
    token: str


class MeResponse(CamelModel):
    user: UserResponse
