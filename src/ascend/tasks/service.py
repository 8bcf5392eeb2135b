"""Task completion toggles and their ledger side-effects.

The progress row is the arbiter: the completion flag only flips through a
conditional update on its previous value, and only the request whose update
hit the row moves the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from ascend.db.models import Roadmap, TaskProgress, User
from ascend.errors import NotFound
from ascend.gamification.streak_service import update_streak
from ascend.gamification.xp_service import apply_task_xp
from ascend.roadmaps.plan import compute_progress, count_tasks, find_task
from ascend.roadmaps.service import get_owned_roadmap

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass
class ToggleResult:
    xp_delta: int
    custom_xp_delta: int
    is_custom_roadmap: bool
    total_xp: int
    level: int
    streak: int
    roadmap_progress: int


async def _progress_row(db: AsyncSession, user_id: int, roadmap_id: int, title: str) -> TaskProgress | None:
    return await db.scalar(
        select(TaskProgress)
        .where(
            TaskProgress.user_id == user_id,
            TaskProgress.roadmap_id == roadmap_id,
            TaskProgress.task_title == title,
        )
        .execution_options(populate_existing=True)
    )


async def _insert_progress(
    db: AsyncSession,
    user_id: int,
    roadmap_id: int,
    week: int,
    day: str,
    title: str,
    category: str,
) -> bool:
    """Create an uncompleted row for the task. Returns False if another request created it first.

    The insert runs in a savepoint; a lost race rolls back only the insert.
    """
    try:
        async with db.begin_nested():
            db.add(
                TaskProgress(
                    user_id=user_id,
                    roadmap_id=roadmap_id,
                    week=week,
                    day=day,
                    task_title=title,
                    completed=False,
                    xp_earned=0,
                    category=category,
                )
            )
            await db.flush()
    except IntegrityError:
        return False
    return True


async def _flip(db: AsyncSession, row_id: int, completed: bool, xp: int) -> bool:
    """Compare-and-set the completion flag. True if this call changed it."""
    now = datetime.now(timezone.utc)
    result = await db.execute(
        update(TaskProgress)
        .where(TaskProgress.id == row_id, TaskProgress.completed.is_(not completed))
        .values(
            completed=completed,
            xp_earned=xp if completed else 0,
            completed_at=now if completed else None,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _rewrite_snapshot(db: AsyncSession, row_id: int, completed: bool, xp: int) -> None:
    """Same-state toggle: refresh xp_earned/completed_at without touching the ledger."""
    now = datetime.now(timezone.utc)
    await db.execute(
        update(TaskProgress)
        .where(TaskProgress.id == row_id, TaskProgress.completed.is_(completed))
        .values(xp_earned=xp if completed else 0, completed_at=now if completed else None, updated_at=now)
        .execution_options(synchronize_session=False)
    )


async def recompute_progress(
    db: AsyncSession, user_id: int, roadmap_id: int, plan: list[dict[str, Any]]
) -> int:
    """Recount completed rows against the plan and store the percentage."""
    completed = await db.scalar(
        select(func.count(TaskProgress.id)).where(
            TaskProgress.user_id == user_id,
            TaskProgress.roadmap_id == roadmap_id,
            TaskProgress.completed.is_(True),
        )
    )
    progress = compute_progress(int(completed or 0), count_tasks(plan))
    await db.execute(
        update(Roadmap)
        .where(Roadmap.id == roadmap_id)
        .values(progress=progress, updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    return progress


async def toggle_task(
    db: AsyncSession,
    user_id: int,
    roadmap_id: int,
    week: int,
    day: str,
    task_title: str,
    completed: bool,
) -> ToggleResult:
    """Set one task's completion state and apply the ledger change it implies.

    XP and category always come from the stored plan. Setting a task to the
    state it already has rewrites the snapshot only.

    Raises:
        NotFound: Roadmap (owned by the caller), week, day or task missing.
    """
    roadmap = await get_owned_roadmap(db, user_id, roadmap_id)
    plan = roadmap.weekly_plan
    is_custom = roadmap.is_custom

    task = find_task(plan, week, day, task_title)
    if task is None:
        msg = "Task not found"
        raise NotFound(msg)
    xp = int(task.get("xp", 0))
    category = str(task.get("category", "Skills"))

    row = await _progress_row(db, user_id, roadmap_id, task_title)
    if row is None:
        # A concurrent first toggle may win the insert; either way a row now exists.
        await _insert_progress(db, user_id, roadmap_id, week, day, task_title, category)
        row = await _progress_row(db, user_id, roadmap_id, task_title)
        if row is None:
            msg = "Task progress could not be recorded"
            raise NotFound(msg)

    changed = await _flip(db, row.id, completed, xp)
    user = await db.scalar(select(User).where(User.id == user_id).execution_options(populate_existing=True))
    if user is None:
        msg = "User not found"
        raise NotFound(msg)

    if not changed:
        await _rewrite_snapshot(db, row.id, completed, xp)
        roadmap_progress = await db.scalar(select(Roadmap.progress).where(Roadmap.id == roadmap_id))
        return ToggleResult(
            xp_delta=0,
            custom_xp_delta=0,
            is_custom_roadmap=is_custom,
            total_xp=user.total_xp,
            level=user.level,
            streak=user.streak,
            roadmap_progress=int(roadmap_progress or 0),
        )

    delta = xp if completed else -xp
    user = await apply_task_xp(db, user_id, delta, category, is_custom=is_custom)
    streak = await update_streak(db, user_id) if completed else user.streak
    roadmap_progress = await recompute_progress(db, user_id, roadmap_id, plan)

    logger.info(
        "task_toggled",
        user_id=user_id,
        roadmap_id=roadmap_id,
        completed=completed,
        delta=delta,
        is_custom=is_custom,
    )
    return ToggleResult(
        xp_delta=0 if is_custom else delta,
        custom_xp_delta=delta if is_custom else 0,
        is_custom_roadmap=is_custom,
        total_xp=user.total_xp,
        level=user.level,
        streak=streak,
        roadmap_progress=roadmap_progress,
    )
