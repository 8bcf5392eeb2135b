"""Daily streak tracking, evaluated lazily on task completion."""

from __future__ import annotations

from datetime import date, datetime, timezone

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ascend.db.models import User

logger = structlog.get_logger()


def utc_today(now: datetime | None = None) -> date:
    """Today's calendar date in UTC."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).date()


def next_streak(streak: int, last_active: date | None, today: date) -> tuple[int, date]:
    """Return the (streak, last_active_date) pair after activity on ``today``.

    - no previous activity: 1
    - same day: unchanged
    - previous day: streak + 1
    - gap of two or more days, or a last-active date in the future: 1
    """
    if last_active is None:
        return 1, today
    gap = (today - last_active).days
    if gap == 0:
        return streak, last_active
    if gap == 1:
        return streak + 1, today
    return 1, today


async def update_streak(db: AsyncSession, user_id: int, now: datetime | None = None) -> int:
    """Record activity for today and return the resulting streak.

    The write is conditional on the last-active date it was computed from;
    if a concurrent completion moved it first, the fresh row is re-evaluated
    (and is then a same-day no-op).
    """
    today = utc_today(now)
    for _ in range(2):
        row = (
            await db.execute(select(User.streak, User.last_active_date).where(User.id == user_id))
        ).one()
        streak, last_active = next_streak(row.streak, row.last_active_date, today)
        if (streak, last_active) == (row.streak, row.last_active_date):
            return streak

        guard = (
            User.last_active_date.is_(None)
            if row.last_active_date is None
            else User.last_active_date == row.last_active_date
        )
        result = await db.execute(
            update(User)
            .where(User.id == user_id, guard)
            .values(streak=streak, last_active_date=last_active)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            if streak > row.streak:
                logger.info("streak_extended", user_id=user_id, streak=streak)
            return streak
    return row.streak
