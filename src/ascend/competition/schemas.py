"""Pydantic schemas for leaderboard endpoints."""

from __future__ import annotations

from pydantic import Field

from ascend.schemas import CamelModel


class LeaderboardEntryResponse(CamelModel):
    rank: int
    user_id: int
    name: str
    total_xp: int = Field(alias="totalXP")
    level: int
    body_xp: int = Field(alias="bodyXP")
    skills_xp: int = Field(alias="skillsXP")
    mindset_xp: int = Field(alias="mindsetXP")
    career_xp: int = Field(alias="careerXP")
    streak: int
    is_me: bool


class LeaderboardResponse(CamelModel):
    leaderboard: list[LeaderboardEntryResponse]
    my_rank: int
    total_users: int
