"""Profile and connection-status views with privacy enforcement.

A private profile viewed by anyone but its owner yields only the display
name: no XP, level, streak or roadmap data.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ascend.config import get_settings
from ascend.db.models import Roadmap, User
from ascend.errors import NotFound
from ascend.roadmaps.plan import fallback_title
from ascend.social.follow_service import is_following
from ascend.social.friend_service import friend_status_for, get_pair_request
from ascend.social.schemas import (
    ConnectionStatusResponse,
    PrivateProfile,
    PrivateProfileResponse,
    ProfileRoadmap,
    ProfileStats,
    PublicProfileResponse,
)


async def _get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.scalar(select(User).where(User.id == user_id))
    if user is None:
        msg = "User not found"
        raise NotFound(msg)
    return user


async def get_profile(
    db: AsyncSession,
    target_id: int,
    viewer_id: int,
) -> PrivateProfileResponse | PublicProfileResponse:
    """Compose the profile of ``target_id`` as seen by ``viewer_id``."""
    user = await _get_user(db, target_id)
    is_me = user.id == viewer_id
    if not user.is_profile_public and not is_me:
        return PrivateProfileResponse(profile=PrivateProfile(name=user.name))

    result = await db.execute(
        select(Roadmap)
        .where(Roadmap.user_id == user.id, Roadmap.is_public.is_(True))
        .order_by(Roadmap.created_at.desc(), Roadmap.id.desc())
        .limit(get_settings().profile_roadmap_limit)
    )
    roadmaps = [
        ProfileRoadmap(
            id=r.id,
            title=r.title or fallback_title(r.goal),
            goal=r.goal,
            difficulty=r.difficulty,
            duration=r.duration,
            progress=r.progress,
            skill_level=r.skill_level,
            created_at=r.created_at,
        )
        for r in result.scalars()
    ]

    return PublicProfileResponse(
        profile=ProfileStats(
            user_id=user.id,
            name=user.name,
            total_xp=user.total_xp,
            level=user.level,
            body_xp=user.body_xp,
            skills_xp=user.skills_xp,
            mindset_xp=user.mindset_xp,
            career_xp=user.career_xp,
            streak=user.streak,
            member_since=user.created_at,
            is_me=is_me,
        ),
        public_roadmaps=roadmaps,
    )


async def get_connection_status(
    db: AsyncSession,
    viewer_id: int,
    target_id: int,
    now: datetime | None = None,
) -> ConnectionStatusResponse:
    """Follow and close-friend state between the viewer and ``target_id``."""
    target = await _get_user(db, target_id)

    if viewer_id == target_id:
        return ConnectionStatusResponse(
            is_me=True,
            following=False,
            follower_count=target.follower_count,
            friend_status="none",
            close_friend_count=target.close_friend_count,
            allow_close_friend_requests=target.allow_close_friend_requests,
            my_close_friend_count=target.close_friend_count,
        )

    viewer = await _get_user(db, viewer_id)
    request = await get_pair_request(db, viewer_id, target_id)
    return ConnectionStatusResponse(
        is_me=False,
        following=await is_following(db, viewer_id, target_id),
        follower_count=target.follower_count,
        friend_status=friend_status_for(request, viewer_id, now or datetime.now(timezone.utc)),
        close_friend_count=target.close_friend_count,
        allow_close_friend_requests=target.allow_close_friend_requests,
        my_close_friend_count=viewer.close_friend_count,
    )
