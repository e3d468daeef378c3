"""Grading controller: maps service results to HTTP responses, catches domain exceptions."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.exceptions import (
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    UnknownContentTypeError,
    ValidationError,
)
from app.grading import service
from app.grading.schemas import (
    ContentGradeResponse,
    ContentProgressResponse,
    GradeContentRequest,
    LectureWatchedRequest,
    SectionGradeEntry,
    StudentGradesResponse,
)
from shared.models.user import CurrentUser


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, UnauthorizedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.detail)
    if isinstance(exc, InvalidStateError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    if isinstance(exc, UnknownContentTypeError):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


async def record_lecture_watched(
    db: AsyncSession,
    caller: CurrentUser,
    content_id: UUID,
    body: LectureWatchedRequest,
    settings: Settings,
) -> ContentGradeResponse:
    try:
        grade = await service.record_lecture_watched(
            db,
            caller.id,
            content_id,
            body.watched_pct,
            threshold_pct=settings.lecture_watched_threshold_pct,
            watched_duration_secs=body.watched_duration_secs,
        )
        return ContentGradeResponse.model_validate(grade)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def record_submission(
    db: AsyncSession, caller: CurrentUser, content_id: UUID,
) -> ContentGradeResponse:
    try:
        grade = await service.record_submission(db, caller.id, content_id)
        return ContentGradeResponse.model_validate(grade)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def grade_content(
    db: AsyncSession,
    caller: CurrentUser,
    content_id: UUID,
    student_id: UUID,
    body: GradeContentRequest,
) -> ContentGradeResponse:
    try:
        grade = await service.grade_content(
            db, caller, content_id, student_id, body.grade_percent, body.feedback,
        )
        return ContentGradeResponse.model_validate(grade)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def mark_content_complete(
    db: AsyncSession, caller: CurrentUser, content_id: UUID,
) -> ContentProgressResponse:
    try:
        progress = await service.mark_content_complete(db, caller.id, content_id)
        return ContentProgressResponse.model_validate(progress)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def get_student_grades(
    db: AsyncSession,
    caller: CurrentUser,
    course_id: UUID,
    student_id: UUID,
    group_id: UUID | None,
) -> StudentGradesResponse:
    try:
        per_section, course_grade = await service.get_student_grades(
            db, caller, student_id, course_id, group_id,
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return StudentGradesResponse(
        student_id=student_id,
        course_id=course_id,
        course_grade=course_grade,
        sections=[
            SectionGradeEntry(section_id=section_id, grade_percent=grade)
            for section_id, grade in per_section.items()
        ],
    )
