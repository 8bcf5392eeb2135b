"""Request/response schemas for settings and user search."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from ascend.schemas import CamelModel


class SettingsResponse(CamelModel):
    user_id: int
    name: str
    email: str
    is_profile_public: bool
    allow_close_friend_requests: bool
    follower_count: int
    close_friend_count: int
    total_xp: int = Field(alias="totalXP")
    level: int
    streak: int
    member_since: datetime


class SettingsUpdateRequest(CamelModel):
    name: str | None = Field(None, max_length=100)
    is_profile_public: bool | None = Field(None, strict=True)
    allow_close_friend_requests: bool | None = Field(None, strict=True)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            msg = "Name cannot be empty"
            raise ValueError(msg)
        return v


class SettingsUpdateResponse(CamelModel):
    success: bool = True
    name: str
    email: str
    is_profile_public: bool
    allow_close_friend_requests: bool


class UserSearchResult(CamelModel):
    user_id: int
    name: str
    level: int
    total_xp: int = Field(alias="totalXP")
    is_profile_public: bool


class UserSearchResponse(CamelModel):
    users: list[UserSearchResult]
