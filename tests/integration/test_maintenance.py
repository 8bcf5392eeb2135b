"""Integration tests: counter reconciliation and stale request purge."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ascend.db.models import FriendRequest
from ascend.workers.maintenance_runner import purge_stale_requests, run_once
from tests.conftest import fetch_user, register, set_user_fields


async def _befriend(client: AsyncClient, sender: dict, receiver: dict) -> None:
    await client.post("/api/connections/friend/request", json={"targetUserId": receiver["id"]}, headers=sender["headers"])
    requests = (await client.get("/api/connections/requests", headers=receiver["headers"])).json()["requests"]
    await client.post(
        "/api/connections/friend/respond",
        json={"requestId": requests[0]["requestId"], "action": "accept"},
        headers=receiver["headers"],
    )


class TestReconcile:
    @pytest.mark.asyncio
    async def test_repairs_drifted_counters(self, client: AsyncClient, db_session: AsyncSession):
        ada = await register(client, "Ada")
        bob = await register(client, "Bob")
        await set_user_fields(db_session, bob["id"], is_profile_public=True)
        await client.post("/api/connections/follow", json={"targetUserId": bob["id"]}, headers=ada["headers"])
        await _befriend(client, ada, bob)

        await set_user_fields(db_session, bob["id"], follower_count=7, close_friend_count=0)
        await set_user_fields(db_session, ada["id"], follower_count=2)

        report = await run_once(db_session)
        assert report.follower_counts_fixed == 2
        assert report.close_friend_counts_fixed == 1

        bob_row = await fetch_user(db_session, bob["id"])
        ada_row = await fetch_user(db_session, ada["id"])
        assert (bob_row.follower_count, bob_row.close_friend_count) == (1, 1)
        assert (ada_row.follower_count, ada_row.close_friend_count) == (0, 1)

    @pytest.mark.asyncio
    async def test_consistent_counters_untouched(self, client: AsyncClient, db_session: AsyncSession):
        ada = await register(client, "Ada")
        bob = await register(client, "Bob")
        await _befriend(client, ada, bob)

        report = await run_once(db_session)
        assert report.follower_counts_fixed == 0
        assert report.close_friend_counts_fixed == 0


class TestPurge:
    @pytest.mark.asyncio
    async def test_purges_only_stale_rows(self, client: AsyncClient, db_session: AsyncSession):
        ada = await register(client, "Ada")
        bob = await register(client, "Bob")
        cy = await register(client, "Cy")
        dee = await register(client, "Dee")

        await _befriend(client, ada, bob)
        await client.post("/api/connections/friend/request", json={"targetUserId": cy["id"]}, headers=ada["headers"])
        await client.post("/api/connections/friend/request", json={"targetUserId": dee["id"]}, headers=ada["headers"])
        dee_request = (await client.get("/api/connections/requests", headers=dee["headers"])).json()["requests"][0]
        await client.post(
            "/api/connections/friend/respond",
            json={"requestId": dee_request["requestId"], "action": "decline"},
            headers=dee["headers"],
        )

        now = datetime.now(timezone.utc)
        assert await purge_stale_requests(db_session, now) == 0

        later = now + timedelta(days=15)
        purged = await purge_stale_requests(db_session, later)
        await db_session.commit()
        assert purged == 2

        remaining = await db_session.scalar(select(func.count(FriendRequest.id)))
        assert remaining == 1

    @pytest.mark.asyncio
    async def test_expired_pending_is_purged(self, client: AsyncClient, db_session: AsyncSession):
        ada = await register(client, "Ada")
        bob = await register(client, "Bob")
        await client.post("/api/connections/friend/request", json={"targetUserId": bob["id"]}, headers=ada["headers"])
        await db_session.execute(
            update(FriendRequest).values(expires_at=datetime.now(timezone.utc) - timedelta(seconds=1))
        )
        await db_session.commit()

        report = await run_once(db_session)
        assert report.requests_purged == 1
