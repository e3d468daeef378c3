"""Catalog deletion service: runs a delete plan atomically.

Pure business logic, no FastAPI imports.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.deletion import DeletionScope, build_deletion_plan
from app.grading.service import refresh_section_grade
from app.models.section_grade import SectionGrade
from app.ownership import (
    get_content,
    get_group,
    get_owned_course,
    get_section,
)
from shared.database.postgres import atomic
from shared.models.user import CurrentUser

logger = logging.getLogger(__name__)


async def _authorize(
    db: AsyncSession, caller: CurrentUser, scope: DeletionScope, target_id: UUID,
) -> UUID:
    """Resolve the owning course of the target and check the caller owns it."""
    match scope:
        case DeletionScope.COURSE:
            course_id = target_id
        case DeletionScope.GROUP:
            course_id = (await get_group(db, target_id)).course_id
        case DeletionScope.SECTION:
            course_id = (await get_section(db, target_id)).course_id
        case DeletionScope.CONTENT:
            course_id = (await get_content(db, target_id)).course_id
    await get_owned_course(db, course_id, caller)
    return course_id


async def preview_deletion(
    db: AsyncSession, caller: CurrentUser, scope: DeletionScope, target_id: UUID,
) -> list[str]:
    await _authorize(db, caller, scope, target_id)
    return [step.label for step in build_deletion_plan(scope, target_id)]


async def delete_entity(
    db: AsyncSession, caller: CurrentUser, scope: DeletionScope, target_id: UUID,
) -> dict[str, int]:
    """Delete the target and everything under it; rows removed per table."""
    await _authorize(db, caller, scope, target_id)

    # Grades in the content's section must be recomputed once it is gone
    section_id: UUID | None = None
    if scope == DeletionScope.CONTENT:
        section_id = (await get_content(db, target_id)).section_id

    removed: dict[str, int] = {}
    async with atomic(db):
        for step in build_deletion_plan(scope, target_id):
            result = await db.execute(
                step.statement.execution_options(synchronize_session="fetch")
            )
            removed[step.label] = result.rowcount or 0

        if section_id is not None:
            student_ids = (
                await db.execute(
                    select(SectionGrade.student_id).where(SectionGrade.section_id == section_id)
                )
            ).scalars().all()
            for student_id in student_ids:
                await refresh_section_grade(db, student_id, section_id)

    logger.info(
        "Deleted %s %s by %s (%s rows)",
        scope.value, target_id, caller.id, sum(removed.values()),
    )
    return removed


async def delete_course(db: AsyncSession, caller: CurrentUser, course_id: UUID) -> dict[str, int]:
    return await delete_entity(db, caller, DeletionScope.COURSE, course_id)


async def delete_group(db: AsyncSession, caller: CurrentUser, group_id: UUID) -> dict[str, int]:
    return await delete_entity(db, caller, DeletionScope.GROUP, group_id)


async def delete_section(db: AsyncSession, caller: CurrentUser, section_id: UUID) -> dict[str, int]:
    return await delete_entity(db, caller, DeletionScope.SECTION, section_id)


async def delete_content(db: AsyncSession, caller: CurrentUser, content_id: UUID) -> dict[str, int]:
    return await delete_entity(db, caller, DeletionScope.CONTENT, content_id)
