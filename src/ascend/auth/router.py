"""Authentication router: all /api/auth/* endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ascend.auth.dependencies import get_current_user
from ascend.auth.jwt import create_access_token
from ascend.auth.schemas import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    UserResponse,
)
from ascend.auth.service import authenticate_user, register_user
from ascend.config import get_settings
from ascend.database import get_session
from ascend.db.models import User
from ascend.schemas import SuccessResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.jwt_expire_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )


def _auth_response(user: User, response: Response) -> AuthResponse:
    token = create_access_token(user.id, user.email, user.name)
    _set_session_cookie(response, token)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Create an account and start a session."""
    user = await register_user(db, name=body.name, email=body.email, password=body.password)
    await db.commit()
    return _auth_response(user, response)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Login with email + password."""
    user = await authenticate_user(db, body.email, body.password)
    await db.commit()
    logger.info("user_logged_in", user_id=user.id)
    return _auth_response(user, response)


@router.post("/logout", response_model=SuccessResponse)
async def logout(response: Response) -> SuccessResponse:
    """Clear the session cookie. Bearer tokens simply expire."""
    response.delete_cookie(get_settings().session_cookie_name, path="/")
    return SuccessResponse()


@router.get("/me", response_model=MeResponse)
async def me(user: User = Depends(get_current_user)) -> MeResponse:
    """Return the signed-in user."""
    return MeResponse(user=UserResponse.model_validate(user))
