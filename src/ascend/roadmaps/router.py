"""Roadmap router: /api/roadmap/* and the anonymous /api/public/* views."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ascend.auth.dependencies import get_current_user_id
from ascend.database import get_session
from ascend.roadmaps import resource_service, service, star_service
from ascend.roadmaps.generator import BaseRoadmapGenerator, get_roadmap_generator
from ascend.roadmaps.schemas import (
    CreatorInfo,
    CustomRoadmapRequest,
    DeleteRoadmapResponse,
    GenerateRoadmapRequest,
    PublicRoadmapResponse,
    RegenerateRoadmapRequest,
    ResourceListResponse,
    ResourceResponse,
    RoadmapDetail,
    RoadmapEnvelope,
    RoadmapListResponse,
    RoadmapSummary,
    RoadmapWithProgressResponse,
    StarStatusResponse,
    StarToggleResponse,
    TaskProgressResponse,
    VisibilityRequest,
    VisibilityResponse,
    WeekCountsResponse,
)
from ascend.errors import InvalidInput

router = APIRouter(prefix="/api/roadmap", tags=["Roadmaps"])
public_router = APIRouter(prefix="/api/public", tags=["Public"])


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


@router.post("", response_model=RoadmapEnvelope, status_code=201)
async def generate_roadmap(
    body: GenerateRoadmapRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
    generator: BaseRoadmapGenerator = Depends(get_roadmap_generator),
) -> RoadmapEnvelope:
    """Generate a roadmap with the AI provider."""
    roadmap = await service.create_ai_roadmap(db, generator, user_id, body)
    await db.commit()
    return RoadmapEnvelope(roadmap=RoadmapDetail.model_validate(roadmap))


@router.get("", response_model=RoadmapListResponse)
async def list_roadmaps(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> RoadmapListResponse:
    """The caller's newest roadmaps, without plans."""
    roadmaps = await service.list_roadmaps(db, user_id)
    return RoadmapListResponse(roadmaps=[RoadmapSummary.model_validate(r) for r in roadmaps])


@router.post("/custom", response_model=RoadmapEnvelope, status_code=201)
async def create_custom_roadmap(
    body: CustomRoadmapRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> RoadmapEnvelope:
    """Create a hand-authored roadmap; its XP never reaches the leaderboard."""
    roadmap = await service.create_custom_roadmap(db, user_id, body)
    await db.commit()
    return RoadmapEnvelope(roadmap=RoadmapDetail.model_validate(roadmap))


# ---------------------------------------------------------------------------
# Single roadmap
# ---------------------------------------------------------------------------


@router.get("/{roadmap_id}", response_model=RoadmapWithProgressResponse)
async def get_roadmap(
    roadmap_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
    generator: BaseRoadmapGenerator = Depends(get_roadmap_generator),
) -> RoadmapWithProgressResponse:
    roadmap, progress = await service.get_roadmap_with_progress(db, generator, user_id, roadmap_id)
    await db.commit()
    return RoadmapWithProgressResponse(
        roadmap=RoadmapDetail.model_validate(roadmap),
        task_progress=[TaskProgressResponse.model_validate(p) for p in progress],
    )


@router.put("/{roadmap_id}", response_model=RoadmapEnvelope)
async def regenerate_roadmap(
    roadmap_id: int,
    body: RegenerateRoadmapRequest | None = None,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
    generator: BaseRoadmapGenerator = Depends(get_roadmap_generator),
) -> RoadmapEnvelope:
    """Regenerate the plan from the stored goal; progress starts over."""
    roadmap = await service.regenerate_roadmap(
        db, generator, user_id, roadmap_id, body or RegenerateRoadmapRequest()
    )
    await db.commit()
    return RoadmapEnvelope(roadmap=RoadmapDetail.model_validate(roadmap))


@router.delete("/{roadmap_id}", response_model=DeleteRoadmapResponse)
async def delete_roadmap(
    roadmap_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> DeleteRoadmapResponse:
    """Delete a roadmap, reversing the XP it earned."""
    reversal = await service.delete_roadmap(db, user_id, roadmap_id)
    await db.commit()
    user = reversal.user
    return DeleteRoadmapResponse(
        xp_deducted=reversal.xp_deducted,
        new_total_xp=user.total_xp,
        new_level=user.level,
        new_body_xp=user.body_xp,
        new_skills_xp=user.skills_xp,
        new_mindset_xp=user.mindset_xp,
        new_career_xp=user.career_xp,
    )


@router.patch("/{roadmap_id}/visibility", response_model=VisibilityResponse)
async def set_visibility(
    roadmap_id: int,
    body: VisibilityRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> VisibilityResponse:
    roadmap = await service.set_visibility(db, user_id, roadmap_id, body.is_public)
    await db.commit()
    return VisibilityResponse(is_public=roadmap.is_public)


@router.get("/{roadmap_id}/star", response_model=StarStatusResponse)
async def get_star(
    roadmap_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> StarStatusResponse:
    state = await star_service.get_star_status(db, user_id, roadmap_id)
    return StarStatusResponse(starred=state.starred, star_count=state.star_count, is_owner=state.is_owner)


@router.post("/{roadmap_id}/star", response_model=StarToggleResponse)
async def toggle_star(
    roadmap_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> StarToggleResponse:
    state = await star_service.toggle_star(db, user_id, roadmap_id)
    await db.commit()
    return StarToggleResponse(starred=state.starred, star_count=state.star_count)


# ---------------------------------------------------------------------------
# Public (no auth)
# ---------------------------------------------------------------------------


@public_router.get("/roadmap/{roadmap_id}", response_model=PublicRoadmapResponse)
async def get_public_roadmap(
    roadmap_id: int,
    db: AsyncSession = Depends(get_session),
) -> PublicRoadmapResponse:
    """Full plan plus creator name and level, if the roadmap is public."""
    view = await service.get_public_roadmap(db, roadmap_id)
    creator = None
    if view.creator is not None:
        creator = CreatorInfo(user_id=view.creator.id, name=view.creator.name, level=view.creator.level)
    return PublicRoadmapResponse(roadmap=RoadmapDetail.model_validate(view.roadmap), creator=creator)


@public_router.get("/resources", response_model=ResourceListResponse | WeekCountsResponse)
async def get_public_resources(
    roadmap_id: int = Query(..., alias="roadmapId"),
    week: int | None = Query(None),
    counts_only: bool = Query(False, alias="countsOnly"),
    db: AsyncSession = Depends(get_session),
) -> ResourceListResponse | WeekCountsResponse:
    """The owner's resources for a public roadmap: one module, or per-week counts."""
    owner_id = await resource_service.public_roadmap_owner(db, roadmap_id)
    if counts_only:
        return WeekCountsResponse(week_counts=await resource_service.week_counts(db, owner_id, roadmap_id))
    if week is None:
        msg = "Missing week param"
        raise InvalidInput(msg)
    resources = await resource_service.list_resources(db, owner_id, roadmap_id, week)
    return ResourceListResponse(resources=[ResourceResponse.model_validate(r) for r in resources])
