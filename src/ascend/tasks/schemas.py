"""Request/response schemas for task endpoints."""

from __future__ import annotations

from pydantic import Field

from ascend.schemas import CamelModel


class ToggleTaskRequest(CamelModel):
    roadmap_id: int
    week: int = Field(..., ge=1)
    day: str = Field(..., min_length=1)
    task_title: str = Field(..., min_length=1)
    completed: bool = Field(..., strict=True)


class ToggleTaskResponse(CamelModel):
    """Ledger numbers after the toggle; deltas are zero when nothing changed."""

    success: bool = True
    xp_delta: int
    custom_xp_delta: int
    is_custom_roadmap: bool
    new_total_xp: int = Field(alias="newTotalXP")
    new_level: int
    new_streak: int
    roadmap_progress: int
