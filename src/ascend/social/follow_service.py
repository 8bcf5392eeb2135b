"""Mentor follows: a directed edge plus the target's denormalized follower count."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from ascend.db.models import Follow, User
from ascend.errors import Conflict, Forbidden, NotFound
from ascend.gamification.xp_service import clamped_add

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass
class FollowState:
    following: bool
    follower_count: int


async def is_following(db: AsyncSession, follower_id: int, followed_id: int) -> bool:
    found = await db.scalar(
        select(Follow.id).where(Follow.follower_id == follower_id, Follow.followed_id == followed_id)
    )
    return found is not None


async def _bump_follower_count(db: AsyncSession, user_id: int, delta: int) -> int:
    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(follower_count=clamped_add(User.follower_count, delta))
        .execution_options(synchronize_session=False)
    )
    return int(await db.scalar(select(User.follower_count).where(User.id == user_id)) or 0)


async def _remove_edge(db: AsyncSession, follower_id: int, target_id: int) -> bool:
    """Delete the edge if present. True if a row was removed."""
    result = await db.execute(
        delete(Follow).where(Follow.follower_id == follower_id, Follow.followed_id == target_id)
    )
    return bool(result.rowcount)


async def toggle_follow(db: AsyncSession, follower_id: int, target_id: int) -> FollowState:
    """Follow or unfollow ``target_id``.

    The public-profile requirement applies only when creating an edge, so a
    follower can always leave a profile that has since gone private.

    Raises:
        Forbidden: Self-follow, or following a private profile.
        NotFound: Target user missing.
        Conflict: A concurrent request created the same edge first.
    """
    if follower_id == target_id:
        msg = "You cannot follow yourself"
        raise Forbidden(msg)

    target = await db.scalar(select(User).where(User.id == target_id))
    if target is None:
        msg = "User not found"
        raise NotFound(msg)

    if await _remove_edge(db, follower_id, target_id):
        count = await _bump_follower_count(db, target_id, -1)
        logger.info("user_unfollowed", follower_id=follower_id, followed_id=target_id)
        return FollowState(following=False, follower_count=count)

    if not target.is_profile_public:
        msg = "Cannot follow a private profile"
        raise Forbidden(msg)

    try:
        async with db.begin_nested():
            db.add(Follow(follower_id=follower_id, followed_id=target_id))
            await db.flush()
    except IntegrityError as e:
        msg = "Follow changed concurrently, please retry"
        raise Conflict(msg) from e

    count = await _bump_follower_count(db, target_id, 1)
    logger.info("user_followed", follower_id=follower_id, followed_id=target_id)
    return FollowState(following=True, follower_count=count)
