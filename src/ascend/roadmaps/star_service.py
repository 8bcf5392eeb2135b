"""Roadmap stars: one endorsement per user on someone else's public roadmap."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from ascend.db.models import Roadmap, RoadmapStar
from ascend.errors import Conflict, Forbidden, NotFound
from ascend.gamification.xp_service import clamped_add

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass
class StarState:
    starred: bool
    star_count: int
    is_owner: bool = False


async def _get_roadmap(db: AsyncSession, roadmap_id: int) -> Roadmap:
    roadmap = await db.scalar(select(Roadmap).where(Roadmap.id == roadmap_id))
    if roadmap is None:
        msg = "Roadmap not found"
        raise NotFound(msg)
    return roadmap


async def _star_count(db: AsyncSession, roadmap_id: int) -> int:
    return int(await db.scalar(select(Roadmap.star_count).where(Roadmap.id == roadmap_id)) or 0)


async def _remove_star(db: AsyncSession, user_id: int, roadmap_id: int) -> bool:
    result = await db.execute(
        delete(RoadmapStar).where(RoadmapStar.user_id == user_id, RoadmapStar.roadmap_id == roadmap_id)
    )
    return bool(result.rowcount)


async def toggle_star(db: AsyncSession, user_id: int, roadmap_id: int) -> StarState:
    """Star or unstar. Only public roadmaps, never your own.

    Raises:
        NotFound: Roadmap missing.
        Forbidden: Roadmap private, or owned by the caller.
        Conflict: A concurrent toggle created the same star first.
    """
    roadmap = await _get_roadmap(db, roadmap_id)
    if not roadmap.is_public:
        msg = "Only public roadmaps can be starred"
        raise Forbidden(msg)
    if roadmap.user_id == user_id:
        msg = "You cannot star your own roadmap"
        raise Forbidden(msg)

    if await _remove_star(db, user_id, roadmap_id):
        delta, starred = -1, False
    else:
        try:
            async with db.begin_nested():
                db.add(RoadmapStar(user_id=user_id, roadmap_id=roadmap_id))
                await db.flush()
        except IntegrityError as e:
            msg = "Star changed concurrently, please retry"
            raise Conflict(msg) from e
        delta, starred = 1, True

    await db.execute(
        update(Roadmap)
        .where(Roadmap.id == roadmap_id)
        .values(star_count=clamped_add(Roadmap.star_count, delta))
        .execution_options(synchronize_session=False)
    )
    count = await _star_count(db, roadmap_id)
    logger.info("roadmap_star_toggled", user_id=user_id, roadmap_id=roadmap_id, starred=starred)
    return StarState(starred=starred, star_count=count)


async def get_star_status(db: AsyncSession, user_id: int, roadmap_id: int) -> StarState:
    """Whether the caller starred the roadmap, its count, and whether they own it."""
    roadmap = await _get_roadmap(db, roadmap_id)
    is_owner = roadmap.user_id == user_id
    starred = False
    if not is_owner:
        starred = (
            await db.scalar(
                select(RoadmapStar.id).where(
                    RoadmapStar.user_id == user_id, RoadmapStar.roadmap_id == roadmap_id
                )
            )
        ) is not None
    return StarState(starred=starred, star_count=roadmap.star_count, is_owner=is_owner)
