"""Shared test fixtures.

Every test gets a fresh SQLite database (aiosqlite) with the schema created
from ORM metadata. The roadmap generator is replaced with a canned fake
through FastAPI dependency overrides.
"""

from __future__ import annotations

import json
import os
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

os.environ.setdefault("ASCEND_JWT_SECRET", "test-secret-that-is-long-enough-for-hs256")
os.environ.setdefault("ASCEND_LOG_FORMAT", "console")
os.environ.setdefault("ASCEND_LOG_LEVEL", "WARNING")
os.environ.setdefault("ASCEND_PASSWORD_HASH_TIME_COST", "1")
os.environ.setdefault("ASCEND_PASSWORD_HASH_MEMORY_KIB", "1024")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from ascend.config import get_settings  # noqa: E402
from ascend.database import close_db, create_all, get_session, init_db  # noqa: E402
from ascend.db.models import User  # noqa: E402
from ascend.main import create_app  # noqa: E402
from ascend.roadmaps.generator import BaseRoadmapGenerator, get_roadmap_generator  # noqa: E402


def sample_plan(weeks: int = 1) -> list[dict[str, Any]]:
    """Generator-shaped plan: Monday has two tasks, Tuesday one, other days omitted."""
    return [
        {
            "week": w,
            "focus": f"Foundations {w}",
            "milestone": f"Finish week {w}",
            "days": [
                {
                    "day": "Monday",
                    "tasks": [
                        {
                            "title": f"Learn variables w{w}",
                            "description": "Types and assignment",
                            "duration_minutes": 30,
                            "xp": 40,
                            "category": "Skills",
                        },
                        {
                            "title": f"Morning run w{w}",
                            "description": "Easy 3k",
                            "duration_minutes": 25,
                            "xp": 20,
                            "category": "Body",
                        },
                    ],
                },
                {
                    "day": "Tuesday",
                    "tasks": [
                        {
                            "title": f"Journal w{w}",
                            "description": "Reflect on progress",
                            "duration_minutes": 15,
                            "xp": 10,
                            "category": "Mindset",
                        },
                    ],
                },
            ],
        }
        for w in range(1, weeks + 1)
    ]


class FakeGenerator(BaseRoadmapGenerator):
    """Replays queued responses; the default response is a valid one-week plan."""

    def __init__(self) -> None:
        self.responses: list[str | Exception] = []
        self.prompts: list[str] = []
        self.title = "Learn Python"

    def default_response(self) -> str:
        return json.dumps(
            {
                "title": self.title,
                "goal": "Learn Python",
                "total_duration_weeks": 1,
                "difficulty": "medium",
                "weekly_plan": sample_plan(1),
            }
        )

    async def complete(self, prompt: str, *, purpose: str) -> str:
        self.prompts.append(prompt)
        if purpose == "title":
            return self.title
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        return self.default_response()


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest_asyncio.fixture
async def client(tmp_path: Path, fake_generator: FakeGenerator) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client over a fresh app and a fresh SQLite database."""
    os.environ["ASCEND_DATABASE_URL"] = f"sqlite+aiosqlite:///{tmp_path / 'ascend.db'}"
    get_settings.cache_clear()

    app = create_app()
    app.dependency_overrides[get_roadmap_generator] = lambda: fake_generator

    await init_db(get_settings().database_url)
    await create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await close_db()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def db_session(client: AsyncClient) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for arranging state and asserting on it."""
    async for session in get_session():
        yield session
        break


async def register(client: AsyncClient, name: str, email: str | None = None, password: str = "secret123") -> dict:
    """Register a user; returns ``{"id", "token", "headers", "user"}``."""
    email = email or f"{name.lower().replace(' ', '.')}@example.com"
    response = await client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    data = response.json()
    # The register response sets a cookie; keep the client cookie-free so auth is explicit.
    client.cookies.clear()
    return {
        "id": data["user"]["id"],
        "token": data["token"],
        "headers": {"Authorization": f"Bearer {data['token']}"},
        "user": data["user"],
    }


async def set_user_fields(session: AsyncSession, user_id: int, **fields: Any) -> None:  # noqa: ANN401
    """Write user columns directly, bypassing the API."""
    user = await session.scalar(select(User).where(User.id == user_id))
    assert user is not None
    for key, value in fields.items():
        setattr(user, key, value)
    await session.commit()


async def fetch_user(session: AsyncSession, user_id: int) -> User:
    user = await session.scalar(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    assert user is not None
    return user


async def create_roadmap(client: AsyncClient, headers: dict, **overrides: Any) -> dict:  # noqa: ANN401
    body = {
        "goal": "I want to learn Python",
        "durationWeeks": 1,
        "difficulty": "medium",
        "hoursPerDay": 1,
        "skillLevel": "beginner",
        **overrides,
    }
    response = await client.post("/api/roadmap", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["roadmap"]


async def create_custom_roadmap(client: AsyncClient, headers: dict, difficulty: str = "hard") -> dict:
    body = {
        "title": "My Plan",
        "goal": "Get stronger",
        "difficulty": difficulty,
        "skillLevel": "beginner",
        "weeklyPlan": [
            {
                "focus": "Strength base",
                "days": [
                    {
                        "day": "Monday",
                        "tasks": [{"title": "Squats", "durationMinutes": 30, "category": "Body"}],
                    },
                    {
                        "day": "Funday",
                        "tasks": [{"title": "Dropped", "durationMinutes": 30, "category": "Body"}],
                    },
                ],
            }
        ],
    }
    response = await client.post("/api/roadmap/custom", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["roadmap"]


async def toggle(
    client: AsyncClient,
    headers: dict,
    roadmap_id: int,
    title: str,
    completed: bool = True,
    week: int = 1,
    day: str = "Monday",
):
    return await client.post(
        "/api/tasks",
        json={"roadmapId": roadmap_id, "week": week, "day": day, "taskTitle": title, "completed": completed},
        headers=headers,
    )
