"""Integration tests: roadmap generation, authoring, regeneration and deletion."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ascend.db.models import DAY_NAMES, Roadmap, RoadmapStar, TaskProgress
from ascend.roadmaps.generator import GeneratorError
from tests.conftest import (
    FakeGenerator,
    create_custom_roadmap,
    create_roadmap,
    fetch_user,
    register,
    set_user_fields,
    toggle,
)


class TestGenerate:
    @pytest.mark.asyncio
    async def test_generated_roadmap_is_private_and_padded(self, client: AsyncClient):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"], durationWeeks=4, difficulty="hard")

        assert roadmap["title"] == "Learn Python"
        assert roadmap["isPublic"] is False
        assert roadmap["isCustom"] is False
        assert roadmap["progress"] == 0
        assert roadmap["duration"] == 4
        assert roadmap["difficulty"] == "hard"
        days = roadmap["weeklyPlan"][0]["days"]
        assert [d["day"] for d in days] == list(DAY_NAMES)
        assert days[0]["tasks"][0]["durationMinutes"] == 30

    @pytest.mark.asyncio
    async def test_missing_title_uses_goal(self, client: AsyncClient, fake_generator: FakeGenerator):
        fake_generator.title = ""
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"], goal="Run a sub-four-hour marathon")
        assert roadmap["title"] == "Run a sub-four-hour marathon"

    @pytest.mark.asyncio
    async def test_generator_failure_is_502(self, client: AsyncClient, fake_generator: FakeGenerator):
        fake_generator.responses = ["nope", GeneratorError("down")]
        ada = await register(client, "Ada")
        response = await client.post(
            "/api/roadmap",
            json={
                "goal": "Learn Rust",
                "durationWeeks": 2,
                "difficulty": "easy",
                "hoursPerDay": 1,
                "skillLevel": "beginner",
            },
            headers=ada["headers"],
        )
        assert response.status_code == 502
        assert response.json()["detail"] == "AI roadmap generation failed. Please try again."

    @pytest.mark.asyncio
    async def test_input_validation(self, client: AsyncClient):
        ada = await register(client, "Ada")
        response = await client.post(
            "/api/roadmap",
            json={"goal": "ab", "durationWeeks": 60, "difficulty": "extreme", "hoursPerDay": 1, "skillLevel": "pro"},
            headers=ada["headers"],
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_list_newest_first(self, client: AsyncClient):
        ada = await register(client, "Ada")
        first = await create_roadmap(client, ada["headers"])
        second = await create_roadmap(client, ada["headers"])

        response = await client.get("/api/roadmap", headers=ada["headers"])
        ids = [r["id"] for r in response.json()["roadmaps"]]
        assert ids == [second["id"], first["id"]]
        assert "weeklyPlan" not in response.json()["roadmaps"][0]


class TestCustomRoadmap:
    @pytest.mark.asyncio
    async def test_custom_plan_sanitized(self, client: AsyncClient):
        ada = await register(client, "Ada")
        roadmap = await create_custom_roadmap(client, ada["headers"], difficulty="hard")
        assert roadmap["isCustom"] is True
        assert roadmap["duration"] == 1
        week = roadmap["weeklyPlan"][0]
        assert week["milestone"] == "Complete Week 1"
        assert [d["day"] for d in week["days"]] == ["Monday"]
        assert week["days"][0]["tasks"][0]["xp"] == 54

    @pytest.mark.asyncio
    async def test_week_without_focus(self, client: AsyncClient):
        ada = await register(client, "Ada")
        response = await client.post(
            "/api/roadmap/custom",
            json={
                "title": "Plan",
                "goal": "Goal",
                "difficulty": "easy",
                "skillLevel": "beginner",
                "weeklyPlan": [{"focus": "One"}, {"days": []}],
            },
            headers=ada["headers"],
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Week 2 is missing a focus/module name"


class TestRegenerate:
    @pytest.mark.asyncio
    async def test_regenerate_resets_progress_but_keeps_xp(self, client: AsyncClient, db_session: AsyncSession):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"], skillLevel="advanced")
        await toggle(client, ada["headers"], roadmap["id"], "Learn variables w1")

        response = await client.put(
            f"/api/roadmap/{roadmap['id']}", json={"difficulty": "easy"}, headers=ada["headers"]
        )
        assert response.status_code == 200
        updated = response.json()["roadmap"]
        assert updated["progress"] == 0
        assert updated["difficulty"] == "easy"
        assert updated["skillLevel"] == "advanced"

        rows = await db_session.scalar(
            select(func.count(TaskProgress.id)).where(TaskProgress.roadmap_id == roadmap["id"])
        )
        assert rows == 0
        user = await fetch_user(db_session, ada["id"])
        assert user.total_xp == 40

    @pytest.mark.asyncio
    async def test_regenerate_failure_keeps_old_plan(
        self, client: AsyncClient, fake_generator: FakeGenerator, db_session: AsyncSession
    ):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        await toggle(client, ada["headers"], roadmap["id"], "Learn variables w1")
        fake_generator.responses = ["bad", "still bad"]

        response = await client.put(f"/api/roadmap/{roadmap['id']}", headers=ada["headers"])
        assert response.status_code == 502

        detail = await client.get(f"/api/roadmap/{roadmap['id']}", headers=ada["headers"])
        assert detail.json()["roadmap"]["progress"] == 33
        assert len(detail.json()["taskProgress"]) == 1


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_reverses_completed_xp(self, client: AsyncClient, db_session: AsyncSession):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        await set_user_fields(db_session, ada["id"], total_xp=500, skills_xp=500, level=2)
        db_session.add_all(
            [
                TaskProgress(
                    user_id=ada["id"],
                    roadmap_id=roadmap["id"],
                    week=1,
                    day="Monday",
                    task_title="Learn variables w1",
                    completed=True,
                    xp_earned=80,
                    category="Skills",
                    completed_at=datetime.now(timezone.utc),
                ),
                TaskProgress(
                    user_id=ada["id"],
                    roadmap_id=roadmap["id"],
                    week=1,
                    day="Monday",
                    task_title="Morning run w1",
                    completed=False,
                    xp_earned=0,
                    category="Body",
                ),
            ]
        )
        await db_session.commit()

        response = await client.delete(f"/api/roadmap/{roadmap['id']}", headers=ada["headers"])
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "xpDeducted": 80,
            "newTotalXP": 420,
            "newLevel": 2,
            "newBodyXP": 0,
            "newSkillsXP": 420,
            "newMindsetXP": 0,
            "newCareerXP": 0,
        }

        db_session.expire_all()
        assert await db_session.scalar(select(Roadmap).where(Roadmap.id == roadmap["id"])) is None
        remaining = await db_session.scalar(
            select(func.count(TaskProgress.id)).where(TaskProgress.roadmap_id == roadmap["id"])
        )
        assert remaining == 0

    @pytest.mark.asyncio
    async def test_reversal_clamps_each_field(self, client: AsyncClient, db_session: AsyncSession):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        await toggle(client, ada["headers"], roadmap["id"], "Learn variables w1")
        await set_user_fields(db_session, ada["id"], total_xp=100, skills_xp=10)

        response = await client.delete(f"/api/roadmap/{roadmap['id']}", headers=ada["headers"])
        data = response.json()
        assert data["xpDeducted"] == 40
        assert data["newTotalXP"] == 60
        assert data["newSkillsXP"] == 0

    @pytest.mark.asyncio
    async def test_delete_custom_roadmap_deducts_nothing(self, client: AsyncClient, db_session: AsyncSession):
        ada = await register(client, "Ada")
        roadmap = await create_custom_roadmap(client, ada["headers"])
        await toggle(client, ada["headers"], roadmap["id"], "Squats")

        response = await client.delete(f"/api/roadmap/{roadmap['id']}", headers=ada["headers"])
        assert response.status_code == 200
        assert response.json()["xpDeducted"] == 0
        user = await fetch_user(db_session, ada["id"])
        assert user.custom_xp == 54

    @pytest.mark.asyncio
    async def test_delete_removes_stars(self, client: AsyncClient, db_session: AsyncSession):
        ada = await register(client, "Ada")
        bob = await register(client, "Bob")
        roadmap = await create_roadmap(client, ada["headers"])
        await client.patch(f"/api/roadmap/{roadmap['id']}/visibility", json={"isPublic": True}, headers=ada["headers"])
        await client.post(f"/api/roadmap/{roadmap['id']}/star", headers=bob["headers"])

        await client.delete(f"/api/roadmap/{roadmap['id']}", headers=ada["headers"])
        stars = await db_session.scalar(
            select(func.count(RoadmapStar.id)).where(RoadmapStar.roadmap_id == roadmap["id"])
        )
        assert stars == 0

    @pytest.mark.asyncio
    async def test_cannot_delete_others_roadmap(self, client: AsyncClient):
        ada = await register(client, "Ada")
        bob = await register(client, "Bob")
        roadmap = await create_roadmap(client, ada["headers"])
        response = await client.delete(f"/api/roadmap/{roadmap['id']}", headers=bob["headers"])
        assert response.status_code == 404
