"""User settings and search business logic."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import or_, select

from ascend.config import get_settings
from ascend.db.models import User
from ascend.errors import InvalidInput

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

MIN_SEARCH_LENGTH = 2


async def update_settings(
    db: AsyncSession,
    user: User,
    name: str | None = None,
    is_profile_public: bool | None = None,
    allow_close_friend_requests: bool | None = None,
) -> User:
    """
    Update the caller's display name and privacy switches.

    Turning the profile private leaves existing followers in place.

    Raises:
        InvalidInput: If no field was supplied.
    """
    if name is None and is_profile_public is None and allow_close_friend_requests is None:
        msg = "Nothing to update"
        raise InvalidInput(msg)

    changed: list[str] = []
    if name is not None:
        user.name = name
        changed.append("name")
    if is_profile_public is not None:
        user.is_profile_public = is_profile_public
        changed.append("is_profile_public")
    if allow_close_friend_requests is not None:
        user.allow_close_friend_requests = allow_close_friend_requests
        changed.append("allow_close_friend_requests")
    user.updated_at = datetime.now(timezone.utc)

    await db.flush()
    logger.info("settings_updated", user_id=user.id, fields=changed)
    return user


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def search_users(db: AsyncSession, query: str) -> list[User]:
    """Find users by exact id (numeric queries) or case-insensitive name substring."""
    term = query.strip()
    if len(term) < MIN_SEARCH_LENGTH:
        return []

    conditions = [User.name.ilike(f"%{_escape_like(term)}%", escape="\\")]
    if term.isdigit():
        conditions.append(User.id == int(term))

    result = await db.execute(
        select(User)
        .where(or_(*conditions))
        .order_by(User.total_xp.desc(), User.id.asc())
        .limit(get_settings().user_search_limit)
    )
    return list(result.scalars())
