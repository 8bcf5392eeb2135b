"""User router: /api/settings and /api/users/search."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ascend.auth.dependencies import get_current_user
from ascend.database import get_session
from ascend.db.models import User
from ascend.users.schemas import (
    SettingsResponse,
    SettingsUpdateRequest,
    SettingsUpdateResponse,
    UserSearchResponse,
    UserSearchResult,
)
from ascend.users.service import search_users, update_settings

router = APIRouter(prefix="/api", tags=["Users"])


def _settings_response(user: User) -> SettingsResponse:
    return SettingsResponse(
        user_id=user.id,
        name=user.name,
        email=user.email,
        is_profile_public=user.is_profile_public,
        allow_close_friend_requests=user.allow_close_friend_requests,
        follower_count=user.follower_count,
        close_friend_count=user.close_friend_count,
        total_xp=user.total_xp,
        level=user.level,
        streak=user.streak,
        member_since=user.created_at,
    )


@router.get("/settings", response_model=SettingsResponse)
async def get_settings_view(user: User = Depends(get_current_user)) -> SettingsResponse:
    """The caller's account settings and headline stats."""
    return _settings_response(user)


@router.patch("/settings", response_model=SettingsUpdateResponse)
async def patch_settings(
    body: SettingsUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SettingsUpdateResponse:
    user = await update_settings(
        db,
        user,
        name=body.name,
        is_profile_public=body.is_profile_public,
        allow_close_friend_requests=body.allow_close_friend_requests,
    )
    await db.commit()
    return SettingsUpdateResponse(
        name=user.name,
        email=user.email,
        is_profile_public=user.is_profile_public,
        allow_close_friend_requests=user.allow_close_friend_requests,
    )


@router.get("/users/search", response_model=UserSearchResponse)
async def search(
    q: str = Query("", max_length=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserSearchResponse:
    """Find people to follow by name or user id."""
    users = await search_users(db, q)
    return UserSearchResponse(
        users=[
            UserSearchResult(
                user_id=u.id,
                name=u.name,
                level=u.level,
                total_xp=u.total_xp,
                is_profile_public=u.is_profile_public,
            )
            for u in users
        ]
    )
