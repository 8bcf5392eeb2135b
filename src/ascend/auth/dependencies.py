"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ascend.auth.jwt import verify_token
from ascend.auth.service import get_user_by_id
from ascend.config import get_settings
from ascend.database import get_session
from ascend.db.models import User
from ascend.errors import Unauthorized

_bearer = HTTPBearer(auto_error=False)


def _extract_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    """Prefer the Authorization header, fall back to the session cookie."""
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(get_settings().session_cookie_name)


async def get_current_user_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> int:
    """Verify the session token and return the user id it names (no DB hit)."""
    token = _extract_token(request, credentials)
    if not token:
        raise Unauthorized
    try:
        payload = verify_token(token)
    except jwt.InvalidTokenError as e:
        raise Unauthorized(str(e)) from e
    return int(payload["sub"])


async def get_current_user(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Resolve the session token to a User row.

    A valid token for a user that no longer exists is treated as unauthenticated.
    """
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise Unauthorized("User not found")
    return user


async def get_optional_user_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> int | None:
    """Like get_current_user_id but anonymous requests (or bad tokens) yield None."""
    token = _extract_token(request, credentials)
    if not token:
        return None
    try:
        return int(verify_token(token)["sub"])
    except jwt.InvalidTokenError:
        return None
