"""Integration tests: roadmap stars, module resources and the public views."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from tests.conftest import create_roadmap, register


async def _make_public(client: AsyncClient, headers: dict, roadmap_id: int, is_public: bool = True) -> None:
    response = await client.patch(
        f"/api/roadmap/{roadmap_id}/visibility", json={"isPublic": is_public}, headers=headers
    )
    assert response.status_code == 200
    assert response.json() == {"isPublic": is_public}


async def _add_resource(client: AsyncClient, headers: dict, roadmap_id: int, week: int = 1, **overrides):
    body = {
        "roadmapId": roadmap_id,
        "week": week,
        "type": "video",
        "url": "https://example.com/intro",
        "label": "Intro video",
        **overrides,
    }
    return await client.post("/api/tasks/resources", json=body, headers=headers)


class TestStars:
    @pytest.mark.asyncio
    async def test_star_toggle(self, client: AsyncClient):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        await _make_public(client, ada["headers"], roadmap["id"])
        bob = await register(client, "Bob")

        first = await client.post(f"/api/roadmap/{roadmap['id']}/star", headers=bob["headers"])
        assert first.status_code == 200
        assert first.json() == {"starred": True, "starCount": 1}

        status = await client.get(f"/api/roadmap/{roadmap['id']}/star", headers=bob["headers"])
        assert status.json() == {"starred": True, "starCount": 1, "isOwner": False}

        second = await client.post(f"/api/roadmap/{roadmap['id']}/star", headers=bob["headers"])
        assert second.json() == {"starred": False, "starCount": 0}

    @pytest.mark.asyncio
    async def test_owner_status(self, client: AsyncClient):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        status = await client.get(f"/api/roadmap/{roadmap['id']}/star", headers=ada["headers"])
        assert status.json() == {"starred": False, "starCount": 0, "isOwner": True}

    @pytest.mark.asyncio
    async def test_private_roadmap_cannot_be_starred(self, client: AsyncClient):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        bob = await register(client, "Bob")

        response = await client.post(f"/api/roadmap/{roadmap['id']}/star", headers=bob["headers"])
        assert response.status_code == 403
        assert response.json()["detail"] == "Only public roadmaps can be starred"

    @pytest.mark.asyncio
    async def test_own_roadmap_cannot_be_starred(self, client: AsyncClient):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        await _make_public(client, ada["headers"], roadmap["id"])

        response = await client.post(f"/api/roadmap/{roadmap['id']}/star", headers=ada["headers"])
        assert response.status_code == 403
        assert response.json()["detail"] == "You cannot star your own roadmap"

    @pytest.mark.asyncio
    async def test_missing_roadmap(self, client: AsyncClient):
        ada = await register(client, "Ada")
        response = await client.post("/api/roadmap/999/star", headers=ada["headers"])
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_visibility_requires_boolean(self, client: AsyncClient):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        response = await client.patch(
            f"/api/roadmap/{roadmap['id']}/visibility", json={"isPublic": "yes"}, headers=ada["headers"]
        )
        assert response.status_code == 400


class TestResources:
    @pytest.mark.asyncio
    async def test_create_and_list(self, client: AsyncClient):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"], durationWeeks=2)

        created = await _add_resource(client, ada["headers"], roadmap["id"], label="  Intro video  ")
        assert created.status_code == 201
        resource = created.json()["resource"]
        assert resource["label"] == "Intro video"
        assert resource["type"] == "video"
        await _add_resource(client, ada["headers"], roadmap["id"], week=2, type="book", url="http://books.example")

        listed = await client.get(
            "/api/tasks/resources", params={"roadmapId": roadmap["id"], "week": 1}, headers=ada["headers"]
        )
        assert [r["id"] for r in listed.json()["resources"]] == [resource["id"]]

        counts = await client.get(
            "/api/tasks/resources",
            params={"roadmapId": roadmap["id"], "countsOnly": "true"},
            headers=ada["headers"],
        )
        assert counts.json() == {"weekCounts": {"1": 1, "2": 1}}

    @pytest.mark.asyncio
    async def test_missing_week_param(self, client: AsyncClient):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        response = await client.get(
            "/api/tasks/resources", params={"roadmapId": roadmap["id"]}, headers=ada["headers"]
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Missing week param"

    @pytest.mark.asyncio
    async def test_module_cap(self, client: AsyncClient):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        for i in range(8):
            response = await _add_resource(client, ada["headers"], roadmap["id"], label=f"Link {i}")
            assert response.status_code == 201

        ninth = await _add_resource(client, ada["headers"], roadmap["id"], label="One too many")
        assert ninth.status_code == 400
        assert ninth.json()["detail"] == "Maximum 8 resources allowed per module"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"url": "not a url"},
            {"url": "ftp://example.com/file"},
            {"label": "   "},
            {"type": "podcast"},
            {"week": 0},
        ],
    )
    async def test_invalid_payloads(self, client: AsyncClient, overrides: dict):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        response = await _add_resource(client, ada["headers"], roadmap["id"], **overrides)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_only_owner_attaches_and_deletes(self, client: AsyncClient):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        resource = (await _add_resource(client, ada["headers"], roadmap["id"])).json()["resource"]
        bob = await register(client, "Bob")

        attach = await _add_resource(client, bob["headers"], roadmap["id"])
        assert attach.status_code == 404

        delete = await client.delete(f"/api/tasks/resources/{resource['id']}", headers=bob["headers"])
        assert delete.status_code == 404
        assert delete.json()["detail"] == "Resource not found"

        own = await client.delete(f"/api/tasks/resources/{resource['id']}", headers=ada["headers"])
        assert own.status_code == 200
        assert own.json() == {"success": True}


class TestPublicViews:
    @pytest.mark.asyncio
    async def test_private_roadmap_is_hidden(self, client: AsyncClient):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        await _add_resource(client, ada["headers"], roadmap["id"])
        client.cookies.clear()

        view = await client.get(f"/api/public/roadmap/{roadmap['id']}")
        assert view.status_code == 404
        assert view.json()["detail"] == "Roadmap not found or is private"

        resources = await client.get("/api/public/resources", params={"roadmapId": roadmap["id"], "week": 1})
        assert resources.status_code == 404

    @pytest.mark.asyncio
    async def test_public_roadmap_and_resources(self, client: AsyncClient):
        ada = await register(client, "Ada")
        roadmap = await create_roadmap(client, ada["headers"])
        await _make_public(client, ada["headers"], roadmap["id"])
        await _add_resource(client, ada["headers"], roadmap["id"])
        client.cookies.clear()

        view = await client.get(f"/api/public/roadmap/{roadmap['id']}")
        assert view.status_code == 200
        data = view.json()
        assert data["roadmap"]["title"] == "Learn Python"
        assert len(data["roadmap"]["weeklyPlan"]) == 1
        assert data["creator"] == {"userId": ada["id"], "name": "Ada", "level": 0}

        resources = await client.get("/api/public/resources", params={"roadmapId": roadmap["id"], "week": 1})
        assert len(resources.json()["resources"]) == 1

        counts = await client.get(
            "/api/public/resources", params={"roadmapId": roadmap["id"], "countsOnly": "true"}
        )
        assert counts.json() == {"weekCounts": {"1": 1}}
