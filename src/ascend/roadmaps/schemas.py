"""Request/response schemas for roadmap endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import Field, HttpUrl, TypeAdapter, ValidationError, field_validator

from ascend.schemas import CamelModel

Difficulty = Literal["easy", "medium", "hard"]
SkillLevel = Literal["beginner", "intermediate", "advanced"]
ResourceType = Literal["video", "audio", "website", "article", "book", "other"]

_http_url = TypeAdapter(HttpUrl)


# ---------------------------------------------------------------------------
# Plan documents
# ---------------------------------------------------------------------------


class PlanTask(CamelModel):
    title: str
    description: str = ""
    duration_minutes: int
    xp: int
    category: str


class PlanDay(CamelModel):
    day: str
    tasks: list[PlanTask] = []


class PlanWeek(CamelModel):
    week: int
    focus: str
    milestone: str
    days: list[PlanDay] = []


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class GenerateRoadmapRequest(CamelModel):
    """Ask the generator for a new roadmap."""

    goal: str
    duration_weeks: int = Field(..., ge=1, le=52)
    difficulty: Difficulty
    hours_per_day: float = Field(..., ge=0.5, le=16)
    skill_level: SkillLevel

    @field_validator("goal")
    @classmethod
    def validate_goal(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:  # noqa: PLR2004
            msg = "Goal must be at least 3 characters"
            raise ValueError(msg)
        return v[:500]


class RegenerateRoadmapRequest(CamelModel):
    """Optional overrides for regeneration; omitted fields keep the stored values."""

    difficulty: Difficulty | None = None
    hours_per_day: float | None = Field(None, ge=0.5, le=16)
    skill_level: SkillLevel | None = None


class CustomRoadmapRequest(CamelModel):
    """Hand-authored roadmap. The plan is sanitized server-side, not schema-validated."""

    title: str = Field(..., max_length=10_000)
    goal: str = Field(..., max_length=10_000)
    difficulty: Difficulty
    skill_level: SkillLevel
    weekly_plan: list[Any]

    @field_validator("title", "goal")
    @classmethod
    def require_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "must not be empty"
            raise ValueError(msg)
        return v


class VisibilityRequest(CamelModel):
    is_public: bool = Field(..., strict=True)


class CreateResourceRequest(CamelModel):
    roadmap_id: int
    week: int = Field(..., ge=1, le=52)
    type: ResourceType
    url: str = Field(..., max_length=2000)
    label: str = Field(..., max_length=10_000)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Must parse as an absolute http(s) URL; stored as given (trimmed)."""
        v = v.strip()
        try:
            _http_url.validate_python(v)
        except ValidationError as e:
            msg = "Invalid URL format"
            raise ValueError(msg) from e
        return v

    @field_validator("label")
    @classmethod
    def validate_label(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Label is required"
            raise ValueError(msg)
        return v[:200]


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class RoadmapSummary(CamelModel):
    """Roadmap without its plan, for listings."""

    id: int
    user_id: int
    goal: str
    title: str
    skill_level: str
    difficulty: str
    duration: int
    progress: int
    is_public: bool
    is_custom: bool
    star_count: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RoadmapDetail(RoadmapSummary):
    weekly_plan: list[PlanWeek]


class RoadmapEnvelope(CamelModel):
    roadmap: RoadmapDetail


class RoadmapListResponse(CamelModel):
    roadmaps: list[RoadmapSummary]


class TaskProgressResponse(CamelModel):
    id: int
    roadmap_id: int
    week: int
    day: str
    task_title: str
    completed: bool
    xp_earned: int
    category: str
    completed_at: datetime | None = None


class RoadmapWithProgressResponse(CamelModel):
    roadmap: RoadmapDetail
    task_progress: list[TaskProgressResponse]


class DeleteRoadmapResponse(CamelModel):
    success: bool = True
    xp_deducted: int
    new_total_xp: int = Field(alias="newTotalXP")
    new_level: int
    new_body_xp: int = Field(alias="newBodyXP")
    new_skills_xp: int = Field(alias="newSkillsXP")
    new_mindset_xp: int = Field(alias="newMindsetXP")
    new_career_xp: int = Field(alias="newCareerXP")


class VisibilityResponse(CamelModel):
    is_public: bool


class StarToggleResponse(CamelModel):
    starred: bool
    star_count: int


class StarStatusResponse(StarToggleResponse):
    is_owner: bool


class CreatorInfo(CamelModel):
    user_id: int
    name: str
    level: int


class PublicRoadmapResponse(CamelModel):
    roadmap: RoadmapDetail
    creator: CreatorInfo | None = None


class ResourceResponse(CamelModel):
    id: int
    roadmap_id: int
    week: int
    type: str
    url: str
    label: str
    created_at: datetime | None = None


class ResourceEnvelope(CamelModel):
    resource: ResourceResponse


class ResourceListResponse(CamelModel):
    resources: list[ResourceResponse]


class WeekCountsResponse(CamelModel):
    week_counts: dict[int, int]
