"""Access controller: maps service results to HTTP responses."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.access import service
from app.access.schemas import (
    AccessDecisionResponse,
    CourseAccessResponse,
    GradebookAccessResponse,
    StudentAccessRow,
)
from app.exceptions import NotFoundError, UnauthorizedError
from shared.models.user import CurrentUser


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, UnauthorizedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.detail)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


async def get_section_access(
    db: AsyncSession, caller: CurrentUser, section_id: UUID,
) -> AccessDecisionResponse:
    try:
        decision = await service.resolve_section_access(db, caller.id, section_id)
        return AccessDecisionResponse.model_validate(decision)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def get_course_access(
    db: AsyncSession,
    caller: CurrentUser,
    course_id: UUID,
    student_id: UUID | None,
    group_id: UUID | None,
) -> CourseAccessResponse:
    target = student_id or caller.id
    try:
        decisions = await service.resolve_course_access(
            db, target, course_id, caller, group_id=group_id,
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return CourseAccessResponse(
        course_id=course_id,
        student_id=target,
        sections=[AccessDecisionResponse.model_validate(d) for d in decisions],
    )


async def get_gradebook_access(
    db: AsyncSession,
    caller: CurrentUser,
    course_id: UUID,
    student_ids: list[UUID] | None,
    group_id: UUID | None,
) -> GradebookAccessResponse:
    try:
        matrix = await service.resolve_gradebook_access(
            db, course_id, caller, student_ids=student_ids, group_id=group_id,
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return GradebookAccessResponse(
        course_id=course_id,
        students=[
            StudentAccessRow(
                student_id=student_id,
                sections=[AccessDecisionResponse.model_validate(d) for d in decisions],
            )
            for student_id, decisions in matrix.items()
        ],
    )
