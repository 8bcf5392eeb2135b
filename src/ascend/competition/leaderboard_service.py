"""Leaderboard: top users by ``total_xp`` plus the caller's own rank.

Rank is computed per request as (users with strictly more XP) + 1, so tied
users share a rank and nothing is cached between requests. Custom-roadmap
XP lives in ``custom_xp`` and never reaches these numbers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ascend.db.models import User

logger = logging.getLogger(__name__)


@dataclass
class Leaderboard:
    entries: list[User]
    my_rank: int
    total_users: int


async def get_top_users(db: AsyncSession, limit: int) -> list[User]:
    """Highest ``total_xp`` first; ties ordered by id so the order is stable."""
    result = await db.execute(select(User).order_by(User.total_xp.desc(), User.id.asc()).limit(limit))
    return list(result.scalars())


async def get_user_rank(db: AsyncSession, user_id: int) -> int:
    """1 + the number of users with strictly greater ``total_xp``.

    A user id that no longer exists ranks as if it had zero XP.
    """
    own_xp = await db.scalar(select(User.total_xp).where(User.id == user_id)) or 0
    ahead = await db.scalar(select(func.count()).select_from(User).where(User.total_xp > own_xp))
    return int(ahead or 0) + 1


async def count_users(db: AsyncSession) -> int:
    return int(await db.scalar(select(func.count()).select_from(User)) or 0)


async def get_leaderboard(db: AsyncSession, user_id: int, limit: int) -> Leaderboard:
    entries = await get_top_users(db, limit)
    my_rank = await get_user_rank(db, user_id)
    total = await count_users(db)
    logger.debug("Leaderboard read: %d entries, rank %d of %d", len(entries), my_rank, total)
    return Leaderboard(entries=entries, my_rank=my_rank, total_users=total)
