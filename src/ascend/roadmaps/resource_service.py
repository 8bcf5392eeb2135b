"""Per-module learning resources attached by a roadmap's owner."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, func, select

from ascend.config import get_settings
from ascend.db.models import Roadmap, TaskResource
from ascend.errors import InvalidInput, NotFound
from ascend.roadmaps.service import get_owned_roadmap

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from ascend.roadmaps.schemas import CreateResourceRequest

logger = structlog.get_logger()


async def list_resources(db: AsyncSession, owner_id: int, roadmap_id: int, week: int) -> list[TaskResource]:
    """Resources for one module, oldest first."""
    result = await db.execute(
        select(TaskResource)
        .where(
            TaskResource.user_id == owner_id,
            TaskResource.roadmap_id == roadmap_id,
            TaskResource.week == week,
        )
        .order_by(TaskResource.created_at, TaskResource.id)
    )
    return list(result.scalars().all())


async def week_counts(db: AsyncSession, owner_id: int, roadmap_id: int) -> dict[int, int]:
    """Number of resources per week number; weeks without resources are omitted."""
    result = await db.execute(
        select(TaskResource.week, func.count(TaskResource.id))
        .where(TaskResource.user_id == owner_id, TaskResource.roadmap_id == roadmap_id)
        .group_by(TaskResource.week)
    )
    return {int(week): int(count) for week, count in result.all()}


async def create_resource(db: AsyncSession, user_id: int, body: CreateResourceRequest) -> TaskResource:
    """Attach a resource to a module of one of the caller's roadmaps.

    Raises:
        NotFound: Roadmap missing or not the caller's.
        InvalidInput: The module already holds the maximum number of resources.
    """
    await get_owned_roadmap(db, user_id, body.roadmap_id)

    limit = get_settings().max_resources_per_module
    count = await db.scalar(
        select(func.count(TaskResource.id)).where(
            TaskResource.user_id == user_id,
            TaskResource.roadmap_id == body.roadmap_id,
            TaskResource.week == body.week,
        )
    )
    if (count or 0) >= limit:
        msg = f"Maximum {limit} resources allowed per module"
        raise InvalidInput(msg)

    resource = TaskResource(
        user_id=user_id,
        roadmap_id=body.roadmap_id,
        week=body.week,
        type=body.type,
        url=body.url,
        label=body.label,
    )
    db.add(resource)
    await db.flush()
    logger.info("resource_created", user_id=user_id, roadmap_id=body.roadmap_id, week=body.week)
    return resource


async def delete_resource(db: AsyncSession, user_id: int, resource_id: int) -> None:
    """Delete one of the caller's resources. Someone else's resource is reported as missing."""
    result = await db.execute(
        delete(TaskResource).where(TaskResource.id == resource_id, TaskResource.user_id == user_id)
    )
    if not result.rowcount:
        msg = "Resource not found"
        raise NotFound(msg)


async def public_roadmap_owner(db: AsyncSession, roadmap_id: int) -> int:
    """Owner id of a public roadmap, for the anonymous resource views."""
    row = (
        await db.execute(select(Roadmap.user_id, Roadmap.is_public).where(Roadmap.id == roadmap_id))
    ).one_or_none()
    if row is None or not row.is_public:
        msg = "Roadmap not found or is private"
        raise NotFound(msg)
    return row.user_id
