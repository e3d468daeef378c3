"""Sections controller: maps service results to HTTP responses, catches domain exceptions."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, UnauthorizedError, ValidationError
from app.sections import service
from app.sections.schemas import SectionCreateRequest, SectionResponse, SectionUpdateRequest
from shared.models.user import CurrentUser


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, UnauthorizedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.detail)
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


async def create_section(
    db: AsyncSession, caller: CurrentUser, course_id: UUID, body: SectionCreateRequest,
) -> SectionResponse:
    try:
        section = await service.create_section(
            db,
            caller,
            course_id,
            name=body.name,
            is_free=body.is_free,
            price_cents=body.price_cents,
            group_id=body.group_id,
            sort_order=body.sort_order,
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return SectionResponse.model_validate(section)


async def update_section(
    db: AsyncSession, caller: CurrentUser, section_id: UUID, body: SectionUpdateRequest,
) -> SectionResponse:
    try:
        section = await service.update_section(
            db, caller, section_id, **body.model_dump(exclude_unset=True),
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return SectionResponse.model_validate(section)
