"""XP ledger updates: task completion routing and roadmap deletion reversal.

Every counter update is a relative SQL update with its own floor clamp at
zero, so concurrent requests never lose increments. Level is rewritten from
the freshly read total afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from ascend.db.models import TaskProgress, User
from ascend.errors import NotFound
from ascend.gamification.level import compute_level

logger = structlog.get_logger()

CATEGORY_FIELDS: dict[str, str] = {
    "Body": "body_xp",
    "Skills": "skills_xp",
    "Mindset": "mindset_xp",
    "Career": "career_xp",
}


@dataclass
class ReversalResult:
    """Outcome of reversing a roadmap's earned XP."""

    xp_deducted: int
    user: User


def clamped_add(column: InstrumentedAttribute[int], delta: int):  # noqa: ANN201
    """SQL expression for ``max(column + delta, 0)``."""
    return case((column + delta < 0, 0), else_=column + delta)


def category_field(category: str) -> str:
    """Map a task category to its User column; unknown categories count as Career."""
    return CATEGORY_FIELDS.get(category, "career_xp")


async def _require_user(db: AsyncSession, user_id: int) -> None:
    exists = await db.scalar(select(User.id).where(User.id == user_id))
    if exists is None:
        msg = "User not found"
        raise NotFound(msg)


async def _reload(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _rewrite_level(db: AsyncSession, user_id: int) -> User:
    user = await _reload(db, user_id)
    level = compute_level(user.total_xp)
    if level != user.level:
        await db.execute(
            update(User)
            .where(User.id == user_id)
            .values(level=level)
            .execution_options(synchronize_session=False)
        )
        user = await _reload(db, user_id)
    return user


# ---------------------------------------------------------------------------
# Task completion
# ---------------------------------------------------------------------------


async def apply_task_xp(
    db: AsyncSession,
    user_id: int,
    delta: int,
    category: str,
    *,
    is_custom: bool,
) -> User:
    """Apply a completion delta to the right XP track.

    Custom roadmaps credit only ``custom_xp``; total, category and level are
    untouched so the leaderboard ignores them. AI roadmaps move ``total_xp``
    and the category field, each clamped independently, then recompute level.
    """
    await _require_user(db, user_id)

    if is_custom:
        await db.execute(
            update(User)
            .where(User.id == user_id)
            .values(custom_xp=clamped_add(User.custom_xp, delta))
            .execution_options(synchronize_session=False)
        )
        return await _reload(db, user_id)

    field = category_field(category)
    column = getattr(User, field)
    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values({User.total_xp: clamped_add(User.total_xp, delta), column: clamped_add(column, delta)})
        .execution_options(synchronize_session=False)
    )
    return await _rewrite_level(db, user_id)


# ---------------------------------------------------------------------------
# Roadmap deletion
# ---------------------------------------------------------------------------


async def completed_xp_by_category(db: AsyncSession, user_id: int, roadmap_id: int) -> dict[str, int]:
    """Sum xp_earned of completed progress rows for one roadmap, per category."""
    result = await db.execute(
        select(TaskProgress.category, func.coalesce(func.sum(TaskProgress.xp_earned), 0))
        .where(
            TaskProgress.user_id == user_id,
            TaskProgress.roadmap_id == roadmap_id,
            TaskProgress.completed.is_(True),
        )
        .group_by(TaskProgress.category)
    )
    return {category: int(total) for category, total in result.all()}


async def reverse_roadmap_xp(db: AsyncSession, user_id: int, roadmap_id: int) -> ReversalResult:
    """Subtract everything a roadmap's completed tasks earned from the AI-track ledger.

    Category fields and ``total_xp`` are clamped at zero independently, so the
    category sum can drift from the total when a field was already short.
    """
    await _require_user(db, user_id)

    sums = await completed_xp_by_category(db, user_id, roadmap_id)
    xp_deducted = sum(sums.values())
    if xp_deducted == 0:
        return ReversalResult(xp_deducted=0, user=await _reload(db, user_id))

    per_field: dict[str, int] = {}
    for category, amount in sums.items():
        field = category_field(category)
        per_field[field] = per_field.get(field, 0) + amount

    values = {User.total_xp: clamped_add(User.total_xp, -xp_deducted)}
    for field, amount in per_field.items():
        column = getattr(User, field)
        values[column] = clamped_add(column, -amount)
    await db.execute(
        update(User).where(User.id == user_id).values(values).execution_options(synchronize_session=False)
    )

    user = await _rewrite_level(db, user_id)
    logger.info("roadmap_xp_reversed", user_id=user_id, roadmap_id=roadmap_id, xp_deducted=xp_deducted)
    return ReversalResult(xp_deducted=xp_deducted, user=user)
