"""Social API endpoints: connections (follow + close friends) and profiles."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ascend.auth.dependencies import get_current_user_id
from ascend.database import get_session
from ascend.social import follow_service, friend_service
from ascend.social.public_profile_service import get_connection_status, get_profile
from ascend.social.schemas import (
    ConnectionStatusResponse,
    FollowResponse,
    IncomingRequestListResponse,
    IncomingRequestResponse,
    PrivateProfileResponse,
    PublicProfileResponse,
    RemoveConnectionResponse,
    RespondRequest,
    RespondResponse,
    TargetUserRequest,
)
from ascend.schemas import SuccessResponse

router = APIRouter(prefix="/api/connections", tags=["Connections"])
profile_router = APIRouter(prefix="/api/profile", tags=["Profile"])


# ── Mentor follow ──


@router.post("/follow", response_model=FollowResponse)
async def toggle_follow(
    body: TargetUserRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> FollowResponse:
    """Follow or unfollow a public profile."""
    state = await follow_service.toggle_follow(db, user_id, body.target_user_id)
    await db.commit()
    return FollowResponse(following=state.following, follower_count=state.follower_count)


# ── Close friends ──


@router.post("/friend/request", response_model=SuccessResponse)
async def send_friend_request(
    body: TargetUserRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> SuccessResponse:
    await friend_service.send_request(db, user_id, body.target_user_id)
    await db.commit()
    return SuccessResponse()


@router.post("/friend/respond", response_model=RespondResponse)
async def respond_to_friend_request(
    body: RespondRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> RespondResponse:
    """Accept or decline a request addressed to the caller."""
    status = await friend_service.respond_to_request(db, user_id, body.request_id, body.action)
    await db.commit()
    return RespondResponse(status=status)


@router.delete("/friend/{target_user_id}", response_model=RemoveConnectionResponse)
async def remove_friend(
    target_user_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> RemoveConnectionResponse:
    """Unfriend, or cancel a request the caller sent."""
    outcome = await friend_service.remove_connection(db, user_id, target_user_id)
    await db.commit()
    return RemoveConnectionResponse(action=outcome)


@router.get("/status/{target_user_id}", response_model=ConnectionStatusResponse)
async def connection_status(
    target_user_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> ConnectionStatusResponse:
    return await get_connection_status(db, user_id, target_user_id)


@router.get("/requests", response_model=IncomingRequestListResponse)
async def incoming_requests(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> IncomingRequestListResponse:
    """Live pending requests addressed to the caller, newest first."""
    requests = await friend_service.list_incoming_requests(db, user_id)
    return IncomingRequestListResponse(
        requests=[
            IncomingRequestResponse(
                request_id=r.request_id,
                sender_id=r.sender_id,
                sender_name=r.sender_name,
                sender_level=r.sender_level,
                sender_xp=r.sender_xp,
                sent_at=r.sent_at,
            )
            for r in requests
        ],
        count=len(requests),
    )


# ── Profile ──


@profile_router.get("/{target_user_id}", response_model=PublicProfileResponse | PrivateProfileResponse)
async def view_profile(
    target_user_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> PublicProfileResponse | PrivateProfileResponse:
    """Full stats for public profiles (or the owner); only the name otherwise."""
    return await get_profile(db, target_user_id, user_id)
