"""Roadmap lifecycle: generation, authoring, reads, regeneration and deletion."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, select

from ascend.config import get_settings
from ascend.db.models import Roadmap, RoadmapStar, TaskProgress, TaskResource, User
from ascend.errors import NotFound
from ascend.gamification.xp_service import ReversalResult, reverse_roadmap_xp
from ascend.roadmaps.plan import fallback_title, sanitize_custom_plan, truncated_goal_title
from ascend.roadmaps.prompts import RoadmapRequest

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from ascend.roadmaps.generator import BaseRoadmapGenerator
    from ascend.roadmaps.schemas import (
        CustomRoadmapRequest,
        GenerateRoadmapRequest,
        RegenerateRoadmapRequest,
    )

logger = structlog.get_logger()

_DEFAULT_HOURS_PER_DAY = 1.0


@dataclass
class PublicRoadmap:
    roadmap: Roadmap
    creator: User | None


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_owned_roadmap(db: AsyncSession, user_id: int, roadmap_id: int) -> Roadmap:
    """Fetch a roadmap owned by ``user_id``; other users' roadmaps are reported as missing."""
    result = await db.execute(
        select(Roadmap).where(Roadmap.id == roadmap_id, Roadmap.user_id == user_id)
    )
    roadmap = result.scalar_one_or_none()
    if roadmap is None:
        msg = "Roadmap not found"
        raise NotFound(msg)
    return roadmap


async def list_roadmaps(db: AsyncSession, user_id: int) -> list[Roadmap]:
    """The caller's newest roadmaps; empty titles get the regex fallback (not persisted)."""
    settings = get_settings()
    result = await db.execute(
        select(Roadmap)
        .where(Roadmap.user_id == user_id)
        .order_by(Roadmap.created_at.desc(), Roadmap.id.desc())
        .limit(settings.roadmap_list_limit)
    )
    roadmaps = list(result.scalars().all())
    for roadmap in roadmaps:
        if not roadmap.title.strip():
            db.expunge(roadmap)
            roadmap.title = fallback_title(roadmap.goal)
    return roadmaps


async def list_progress(db: AsyncSession, user_id: int, roadmap_id: int) -> list[TaskProgress]:
    result = await db.execute(
        select(TaskProgress)
        .where(TaskProgress.user_id == user_id, TaskProgress.roadmap_id == roadmap_id)
        .order_by(TaskProgress.week, TaskProgress.id)
    )
    return list(result.scalars().all())


async def get_roadmap_with_progress(
    db: AsyncSession,
    generator: BaseRoadmapGenerator,
    user_id: int,
    roadmap_id: int,
) -> tuple[Roadmap, list[TaskProgress]]:
    """Owner view of a roadmap plus the caller's progress rows.

    Roadmaps saved without a title get one from the generator on first read.
    """
    roadmap = await get_owned_roadmap(db, user_id, roadmap_id)
    progress = await list_progress(db, user_id, roadmap_id)

    if not roadmap.title.strip():
        title = await generator.extract_title(roadmap.goal)
        if title:
            roadmap.title = title[:200]
            roadmap.updated_at = datetime.now(timezone.utc)
            await db.flush()
            logger.info("roadmap_title_backfilled", roadmap_id=roadmap.id)

    return roadmap, progress


async def get_public_roadmap(db: AsyncSession, roadmap_id: int) -> PublicRoadmap:
    """Anonymous view; private and missing roadmaps are indistinguishable."""
    roadmap = await db.scalar(select(Roadmap).where(Roadmap.id == roadmap_id))
    if roadmap is None or not roadmap.is_public:
        msg = "Roadmap not found or is private"
        raise NotFound(msg)
    creator = await db.scalar(select(User).where(User.id == roadmap.user_id))
    return PublicRoadmap(roadmap=roadmap, creator=creator)


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


async def create_ai_roadmap(
    db: AsyncSession,
    generator: BaseRoadmapGenerator,
    user_id: int,
    body: GenerateRoadmapRequest,
) -> Roadmap:
    """Generate a plan and store it as a new, private, non-custom roadmap."""
    generated = await generator.generate(
        RoadmapRequest(
            goal=body.goal,
            duration_weeks=body.duration_weeks,
            difficulty=body.difficulty,
            hours_per_day=body.hours_per_day,
            skill_level=body.skill_level,
        )
    )
    title = (generated.title or "").strip() or truncated_goal_title(body.goal)

    roadmap = Roadmap(
        user_id=user_id,
        goal=body.goal,
        title=title[:200],
        skill_level=body.skill_level,
        difficulty=body.difficulty,
        duration=body.duration_weeks,
        weekly_plan=generated.plan_document(),
        progress=0,
        is_public=False,
        is_custom=False,
    )
    db.add(roadmap)
    await db.flush()
    logger.info("roadmap_created", user_id=user_id, roadmap_id=roadmap.id, weeks=roadmap.duration)
    return roadmap


async def create_custom_roadmap(db: AsyncSession, user_id: int, body: CustomRoadmapRequest) -> Roadmap:
    """Store a hand-authored plan with server-computed task XP."""
    plan = sanitize_custom_plan(body.weekly_plan, body.difficulty)
    roadmap = Roadmap(
        user_id=user_id,
        goal=body.goal[:500],
        title=body.title[:200],
        skill_level=body.skill_level,
        difficulty=body.difficulty,
        duration=len(plan),
        weekly_plan=plan,
        progress=0,
        is_public=False,
        is_custom=True,
    )
    db.add(roadmap)
    await db.flush()
    logger.info("custom_roadmap_created", user_id=user_id, roadmap_id=roadmap.id, weeks=roadmap.duration)
    return roadmap


# ---------------------------------------------------------------------------
# Mutation
# ---------------------------------------------------------------------------


async def regenerate_roadmap(
    db: AsyncSession,
    generator: BaseRoadmapGenerator,
    user_id: int,
    roadmap_id: int,
    body: RegenerateRoadmapRequest,
) -> Roadmap:
    """Replace the plan, reset progress and drop every progress row.

    XP already earned on the old plan stays on the ledger.
    """
    roadmap = await get_owned_roadmap(db, user_id, roadmap_id)
    difficulty = body.difficulty or roadmap.difficulty
    skill_level = body.skill_level or roadmap.skill_level

    generated = await generator.generate(
        RoadmapRequest(
            goal=roadmap.goal,
            duration_weeks=roadmap.duration,
            difficulty=difficulty,
            hours_per_day=body.hours_per_day or _DEFAULT_HOURS_PER_DAY,
            skill_level=skill_level,
        )
    )

    roadmap.weekly_plan = generated.plan_document()
    roadmap.difficulty = difficulty
    roadmap.skill_level = skill_level
    roadmap.progress = 0
    roadmap.updated_at = datetime.now(timezone.utc)
    await db.execute(
        delete(TaskProgress).where(TaskProgress.user_id == user_id, TaskProgress.roadmap_id == roadmap_id)
    )
    await db.flush()
    logger.info("roadmap_regenerated", user_id=user_id, roadmap_id=roadmap_id, difficulty=difficulty)
    return roadmap


async def set_visibility(db: AsyncSession, user_id: int, roadmap_id: int, is_public: bool) -> Roadmap:
    roadmap = await get_owned_roadmap(db, user_id, roadmap_id)
    roadmap.is_public = is_public
    roadmap.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("roadmap_visibility_changed", roadmap_id=roadmap_id, is_public=is_public)
    return roadmap


async def delete_roadmap(db: AsyncSession, user_id: int, roadmap_id: int) -> ReversalResult:
    """Delete a roadmap and everything hanging off it.

    Order: reverse the XP its completed tasks earned (AI roadmaps only),
    then delete progress rows, resources, stars and the roadmap itself.
    """
    roadmap = await get_owned_roadmap(db, user_id, roadmap_id)

    if roadmap.is_custom:
        user = await db.scalar(select(User).where(User.id == user_id))
        if user is None:
            msg = "User not found"
            raise NotFound(msg)
        reversal = ReversalResult(xp_deducted=0, user=user)
    else:
        reversal = await reverse_roadmap_xp(db, user_id, roadmap_id)

    await db.execute(
        delete(TaskProgress).where(TaskProgress.user_id == user_id, TaskProgress.roadmap_id == roadmap_id)
    )
    await db.execute(
        delete(TaskResource).where(TaskResource.user_id == user_id, TaskResource.roadmap_id == roadmap_id)
    )
    await db.execute(delete(RoadmapStar).where(RoadmapStar.roadmap_id == roadmap_id))
    await db.delete(roadmap)
    await db.flush()
    logger.info(
        "roadmap_deleted",
        user_id=user_id,
        roadmap_id=roadmap_id,
        is_custom=roadmap.is_custom,
        xp_deducted=reversal.xp_deducted,
    )
    return reversal
