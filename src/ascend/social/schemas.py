"""Pydantic schemas for connection and profile endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from ascend.schemas import CamelModel


# --- Connections ---


class TargetUserRequest(CamelModel):
    target_user_id: int


class FollowResponse(CamelModel):
    following: bool
    follower_count: int


class RespondRequest(CamelModel):
    request_id: int
    action: Literal["accept", "decline"]


class RespondResponse(CamelModel):
    success: bool = True
    status: str


class RemoveConnectionResponse(CamelModel):
    success: bool = True
    action: str


class ConnectionStatusResponse(CamelModel):
    is_me: bool
    following: bool
    follower_count: int
    friend_status: Literal["none", "pending_sent", "pending_received", "accepted"]
    close_friend_count: int
    allow_close_friend_requests: bool
    my_close_friend_count: int


class IncomingRequestResponse(CamelModel):
    request_id: int
    sender_id: int
    sender_name: str
    sender_level: int
    sender_xp: int = Field(alias="senderXP")
    sent_at: datetime


class IncomingRequestListResponse(CamelModel):
    requests: list[IncomingRequestResponse]
    count: int


# --- Profile ---


class ProfileRoadmap(CamelModel):
    id: int
    title: str
    goal: str
    difficulty: str
    duration: int
    progress: int
    skill_level: str
    created_at: datetime


class PrivateProfile(CamelModel):
    name: str


class ProfileStats(CamelModel):
    user_id: int
    name: str
    total_xp: int = Field(alias="totalXP")
    level: int
    body_xp: int = Field(alias="bodyXP")
    skills_xp: int = Field(alias="skillsXP")
    mindset_xp: int = Field(alias="mindsetXP")
    career_xp: int = Field(alias="careerXP")
    streak: int
    member_since: datetime
    is_me: bool


class PrivateProfileResponse(CamelModel):
    """All a non-owner sees of a private profile."""

    is_private: Literal[True] = True
    profile: PrivateProfile


class PublicProfileResponse(CamelModel):
    is_private: Literal[False] = False
    profile: ProfileStats
    public_roadmaps: list[ProfileRoadmap]
