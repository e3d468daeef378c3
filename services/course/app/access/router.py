"""Access router: HTTP layer only."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.access import controller
from app.access.schemas import (
    AccessDecisionResponse,
    CourseAccessResponse,
    GradebookAccessResponse,
)
from app.database import get_db
from app.dependencies import get_current_user
from shared.models.user import CurrentUser

router = APIRouter(prefix="/access", tags=["Access"])


@router.get(
    "/sections/{section_id}",
    response_model=AccessDecisionResponse,
    summary="Is this section unlocked for me?",
)
async def get_section_access(
    section_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> AccessDecisionResponse:
    return await controller.get_section_access(db, user, section_id)


@router.get(
    "/courses/{course_id}",
    response_model=CourseAccessResponse,
    summary="Unlock state of every section in a course",
    description="Defaults to the caller. Owners and admins may pass student_id.",
)
async def get_course_access(
    course_id: UUID,
    student_id: UUID | None = Query(None),
    group_id: UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> CourseAccessResponse:
    return await controller.get_course_access(db, user, course_id, student_id, group_id)


@router.get(
    "/courses/{course_id}/gradebook",
    response_model=GradebookAccessResponse,
    summary="Access matrix for enrolled students (owner or admin)",
)
async def get_gradebook_access(
    course_id: UUID,
    student_ids: list[UUID] | None = Query(None, alias="student_id"),
    group_id: UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> GradebookAccessResponse:
    return await controller.get_gradebook_access(db, user, course_id, student_ids, group_id)
