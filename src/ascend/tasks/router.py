"""Task router: completion toggles and module resources under /api/tasks."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ascend.auth.dependencies import get_current_user_id
from ascend.database import get_session
from ascend.errors import InvalidInput
from ascend.roadmaps import resource_service
from ascend.roadmaps.schemas import (
    CreateResourceRequest,
    ResourceEnvelope,
    ResourceListResponse,
    ResourceResponse,
    WeekCountsResponse,
)
from ascend.schemas import SuccessResponse
from ascend.tasks.schemas import ToggleTaskRequest, ToggleTaskResponse
from ascend.tasks.service import toggle_task

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])


@router.post("", response_model=ToggleTaskResponse)
async def set_task_completion(
    body: ToggleTaskRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> ToggleTaskResponse:
    """Mark a task completed or not completed."""
    result = await toggle_task(
        db,
        user_id=user_id,
        roadmap_id=body.roadmap_id,
        week=body.week,
        day=body.day,
        task_title=body.task_title,
        completed=body.completed,
    )
    await db.commit()
    return ToggleTaskResponse(
        xp_delta=result.xp_delta,
        custom_xp_delta=result.custom_xp_delta,
        is_custom_roadmap=result.is_custom_roadmap,
        new_total_xp=result.total_xp,
        new_level=result.level,
        new_streak=result.streak,
        roadmap_progress=result.roadmap_progress,
    )


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


@router.get("/resources", response_model=ResourceListResponse | WeekCountsResponse)
async def get_resources(
    roadmap_id: int = Query(..., alias="roadmapId"),
    week: int | None = Query(None),
    counts_only: bool = Query(False, alias="countsOnly"),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> ResourceListResponse | WeekCountsResponse:
    """The caller's resources for one module, or per-week counts for the whole roadmap."""
    if counts_only:
        return WeekCountsResponse(week_counts=await resource_service.week_counts(db, user_id, roadmap_id))
    if week is None:
        msg = "Missing week param"
        raise InvalidInput(msg)
    resources = await resource_service.list_resources(db, user_id, roadmap_id, week)
    return ResourceListResponse(resources=[ResourceResponse.model_validate(r) for r in resources])


@router.post("/resources", response_model=ResourceEnvelope, status_code=201)
async def create_resource(
    body: CreateResourceRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> ResourceEnvelope:
    resource = await resource_service.create_resource(db, user_id, body)
    await db.commit()
    return ResourceEnvelope(resource=ResourceResponse.model_validate(resource))


@router.delete("/resources/{resource_id}", response_model=SuccessResponse)
async def delete_resource(
    resource_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> SuccessResponse:
    await resource_service.delete_resource(db, user_id, resource_id)
    await db.commit()
    return SuccessResponse()
