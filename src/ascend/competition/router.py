"""Competition API endpoints: the XP leaderboard."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ascend.auth.dependencies import get_current_user_id
from ascend.competition.leaderboard_service import get_leaderboard
from ascend.competition.schemas import LeaderboardEntryResponse, LeaderboardResponse
from ascend.config import get_settings
from ascend.database import get_session

router = APIRouter(prefix="/api", tags=["Competition"])


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> LeaderboardResponse:
    """Top users by total XP, the caller's rank and the user count."""
    board = await get_leaderboard(db, user_id, get_settings().leaderboard_size)
    return LeaderboardResponse(
        leaderboard=[
            LeaderboardEntryResponse(
                rank=i + 1,
                user_id=u.id,
                name=u.name,
                total_xp=u.total_xp,
                level=u.level,
                body_xp=u.body_xp,
                skills_xp=u.skills_xp,
                mindset_xp=u.mindset_xp,
                career_xp=u.career_xp,
                streak=u.streak,
                is_me=u.id == user_id,
            )
            for i, u in enumerate(board.entries)
        ],
        my_rank=board.my_rank,
        total_users=board.total_users,
    )
