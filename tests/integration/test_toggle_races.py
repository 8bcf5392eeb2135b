"""Integration tests: toggles that lose a race to a concurrent request.

A second session commits the competing write in the middle of the toggle,
between the read that decides what to do and the write that acts on it.
"""

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ascend.database import get_engine
from ascend.db.models import Follow, Roadmap, RoadmapStar, TaskProgress, User
from ascend.roadmaps import star_service
from ascend.social import follow_service
from ascend.tasks import service as task_service
from tests.conftest import create_roadmap, fetch_user, register, set_user_fields, toggle


def _other_session() -> AsyncSession:
    return AsyncSession(get_engine(), expire_on_commit=False)


async def _progress_rows(session: AsyncSession, user_id: int) -> int:
    return int(await session.scalar(select(func.count(TaskProgress.id)).where(TaskProgress.user_id == user_id)))


class TestTaskToggleRaces:
    @pytest.mark.asyncio
    async def test_lost_flip_does_not_credit_twice(
        self, client: AsyncClient, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch
    ):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        rid = roadmap["id"]
        await toggle(client, ada["headers"], rid, "Learn variables w1")
        await toggle(client, ada["headers"], rid, "Learn variables w1", completed=False)

        real_lookup = task_service._progress_row
        racing = False

        async def lookup_then_lose(db, user_id, roadmap_id, title):
            nonlocal racing
            row = await real_lookup(db, user_id, roadmap_id, title)
            if racing:
                return row
            racing = True
            async with _other_session() as other:
                await task_service.toggle_task(other, user_id, roadmap_id, 1, "Monday", title, True)
                await other.commit()
            return row

        monkeypatch.setattr(task_service, "_progress_row", lookup_then_lose)

        result = await task_service.toggle_task(db_session, ada["id"], rid, 1, "Monday", "Learn variables w1", True)
        await db_session.commit()

        assert result.xp_delta == 0
        assert result.total_xp == 40
        user = await fetch_user(db_session, ada["id"])
        assert user.total_xp == 40
        assert user.skills_xp == 40

    @pytest.mark.asyncio
    async def test_lost_insert_rereads_the_winning_row(
        self, client: AsyncClient, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch
    ):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        rid = roadmap["id"]

        real_lookup = task_service._progress_row
        racing = False

        async def miss_while_other_inserts(db, user_id, roadmap_id, title):
            nonlocal racing
            if racing:
                return await real_lookup(db, user_id, roadmap_id, title)
            racing = True
            async with _other_session() as other:
                other.add(
                    TaskProgress(
                        user_id=user_id,
                        roadmap_id=roadmap_id,
                        week=1,
                        day="Monday",
                        task_title=title,
                        completed=False,
                        xp_earned=0,
                        category="Skills",
                    )
                )
                await other.commit()
            return None

        monkeypatch.setattr(task_service, "_progress_row", miss_while_other_inserts)

        result = await task_service.toggle_task(db_session, ada["id"], rid, 1, "Monday", "Learn variables w1", True)
        await db_session.commit()

        assert result.xp_delta == 40
        assert result.total_xp == 40
        assert await _progress_rows(db_session, ada["id"]) == 1
        user = await fetch_user(db_session, ada["id"])
        assert user.total_xp == 40


class TestEdgeToggleRaces:
    @pytest.mark.asyncio
    async def test_follow_created_concurrently(
        self, client: AsyncClient, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch
    ):
        ada = await register(client, "Ada")
        bob = await register(client, "Bob")
        await set_user_fields(db_session, bob["id"], is_profile_public=True)

        async def edge_appears(db, follower_id, target_id):
            async with _other_session() as other:
                other.add(Follow(follower_id=follower_id, followed_id=target_id))
                target = await other.scalar(select(User).where(User.id == target_id))
                target.follower_count = 1
                await other.commit()
            return False

        monkeypatch.setattr(follow_service, "_remove_edge", edge_appears)

        response = await client.post(
            "/api/connections/follow", json={"targetUserId": bob["id"]}, headers=ada["headers"]
        )
        assert response.status_code == 409
        assert response.json()["detail"] == "Follow changed concurrently, please retry"

        user = await fetch_user(db_session, bob["id"])
        assert user.follower_count == 1

    @pytest.mark.asyncio
    async def test_star_created_concurrently(
        self, client: AsyncClient, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch
    ):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        rid = roadmap["id"]
        visibility = await client.patch(
            f"/api/roadmap/{rid}/visibility", json={"isPublic": True}, headers=ada["headers"]
        )
        assert visibility.status_code == 200
        bob = await register(client, "Bob")

        async def star_appears(db, user_id, roadmap_id):
            async with _other_session() as other:
                other.add(RoadmapStar(user_id=user_id, roadmap_id=roadmap_id))
                starred = await other.scalar(select(Roadmap).where(Roadmap.id == roadmap_id))
                starred.star_count = 1
                await other.commit()
            return False

        monkeypatch.setattr(star_service, "_remove_star", star_appears)

        response = await client.post(f"/api/roadmap/{rid}/star", headers=bob["headers"])
        assert response.status_code == 409
        assert response.json()["detail"] == "Star changed concurrently, please retry"

        db_session.expire_all()
        count = await db_session.scalar(select(Roadmap.star_count).where(Roadmap.id == rid))
        assert count == 1
