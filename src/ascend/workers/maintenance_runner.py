"""Standalone maintenance runner for the connection graph.

Recomputes the denormalized ``follower_count`` / ``close_friend_count``
columns from the edge tables and purges friend requests that no longer
gate anything (expired pending requests, declined requests whose resend
cooldown has elapsed). Request handlers evaluate expiry lazily, so this
never needs to have run for the API to behave correctly.

Usage: python -m ascend.workers.maintenance_runner
       ASCEND_MAINTENANCE_INTERVAL=3600 python -m ascend.workers.maintenance_runner
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ascend.config import get_settings
from ascend.database import close_db, get_engine, init_db
from ascend.db.models import Follow, FriendRequest, User

logger = logging.getLogger(__name__)

_running = True


@dataclass
class MaintenanceReport:
    follower_counts_fixed: int = 0
    close_friend_counts_fixed: int = 0
    requests_purged: int = 0


def _follower_count_expr():
    return (
        select(func.count(Follow.id))
        .where(Follow.followed_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )


def _close_friend_count_expr():
    return (
        select(func.count(FriendRequest.id))
        .where(
            FriendRequest.status == "accepted",
            or_(FriendRequest.sender_id == User.id, FriendRequest.receiver_id == User.id),
        )
        .correlate(User)
        .scalar_subquery()
    )


async def reconcile_counters(db: AsyncSession) -> tuple[int, int]:
    """Rewrite drifted counters from the edge tables. Returns (followers fixed, close friends fixed)."""
    followers = _follower_count_expr()
    result = await db.execute(
        update(User)
        .where(User.follower_count != followers)
        .values(follower_count=followers)
        .execution_options(synchronize_session=False)
    )
    followers_fixed = result.rowcount or 0

    friends = _close_friend_count_expr()
    result = await db.execute(
        update(User)
        .where(User.close_friend_count != friends)
        .values(close_friend_count=friends)
        .execution_options(synchronize_session=False)
    )
    friends_fixed = result.rowcount or 0

    if followers_fixed or friends_fixed:
        logger.warning(
            "Counter drift repaired: follower_count=%d close_friend_count=%d",
            followers_fixed, friends_fixed,
        )
    return followers_fixed, friends_fixed


async def purge_stale_requests(db: AsyncSession, now: datetime | None = None) -> int:
    """Delete expired pending requests and declined requests past their cooldown."""
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        delete(FriendRequest).where(
            or_(
                and_(FriendRequest.status == "pending", FriendRequest.expires_at <= now),
                and_(FriendRequest.status == "declined", FriendRequest.resend_after <= now),
            )
        )
    )
    purged = result.rowcount or 0
    if purged:
        logger.info("Purged %d stale friend requests", purged)
    return purged


async def run_once(db: AsyncSession, now: datetime | None = None) -> MaintenanceReport:
    """One full maintenance pass in a single transaction."""
    report = MaintenanceReport()
    report.requests_purged = await purge_stale_requests(db, now)
    report.follower_counts_fixed, report.close_friend_counts_fixed = await reconcile_counters(db)
    await db.commit()
    return report


async def main() -> None:
    """Run maintenance once, or every ``ASCEND_MAINTENANCE_INTERVAL`` seconds."""
    global _running  # noqa: PLW0603

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    settings = get_settings()
    await init_db(settings.database_url)
    session_factory = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)
    interval = int(os.environ.get("ASCEND_MAINTENANCE_INTERVAL", "0"))

    loop = asyncio.get_running_loop()

    def _stop() -> None:
        global _running  # noqa: PLW0603
        _running = False

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _stop)

    try:
        while _running:
            async with session_factory() as db:
                report = await run_once(db)
            logger.info(
                "Maintenance pass done (purged=%d, followers_fixed=%d, close_friends_fixed=%d)",
                report.requests_purged, report.follower_counts_fixed, report.close_friend_counts_fixed,
            )
            if interval <= 0:
                break
            for _ in range(interval):
                if not _running:
                    break
                await asyncio.sleep(1)
    finally:
        await close_db()
        logger.info("Maintenance runner stopped")


if __name__ == "__main__":
    asyncio.run(main())
