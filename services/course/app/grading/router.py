"""Grading router: HTTP layer only."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import get_db
from app.dependencies import get_current_user, get_settings
from app.grading import controller
from app.grading.schemas import (
    ContentGradeResponse,
    ContentProgressResponse,
    GradeContentRequest,
    LectureWatchedRequest,
    StudentGradesResponse,
)
from shared.models.user import CurrentUser

router = APIRouter(prefix="/grading", tags=["Grading"])


@router.post(
    "/contents/{content_id}/watch",
    response_model=ContentGradeResponse,
    summary="Report lecture watch progress",
    description="At or above the configured threshold the lecture counts as watched (100).",
)
async def record_lecture_watched(
    content_id: UUID,
    body: LectureWatchedRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> ContentGradeResponse:
    return await controller.record_lecture_watched(db, user, content_id, body, settings)


@router.post(
    "/contents/{content_id}/submit",
    response_model=ContentGradeResponse,
    summary="Submit an assignment or project",
)
async def record_submission(
    content_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ContentGradeResponse:
    return await controller.record_submission(db, user, content_id)


@router.post(
    "/contents/{content_id}/complete",
    response_model=ContentProgressResponse,
    summary="Mark a content item as complete",
)
async def mark_content_complete(
    content_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ContentProgressResponse:
    return await controller.mark_content_complete(db, user, content_id)


@router.put(
    "/contents/{content_id}/students/{student_id}",
    response_model=ContentGradeResponse,
    summary="Grade a student's submission (owner or admin)",
)
async def grade_content(
    content_id: UUID,
    student_id: UUID,
    body: GradeContentRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ContentGradeResponse:
    return await controller.grade_content(db, user, content_id, student_id, body)


@router.get(
    "/courses/{course_id}/students/{student_id}",
    response_model=StudentGradesResponse,
    summary="Section and course grades for a student",
)
async def get_student_grades(
    course_id: UUID,
    student_id: UUID,
    group_id: UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> StudentGradesResponse:
    return await controller.get_student_grades(db, user, course_id, student_id, group_id)
