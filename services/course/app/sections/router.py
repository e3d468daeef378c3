"""Sections router: HTTP layer only."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.sections import controller
from app.sections.schemas import SectionCreateRequest, SectionResponse, SectionUpdateRequest
from shared.models.user import CurrentUser

router = APIRouter(prefix="/sections", tags=["Sections"])


@router.post(
    "/courses/{course_id}",
    response_model=SectionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a section to a course",
    description="Paid sections need a positive price, and paid prices may not add up "
    "to more than the course cost (422). Owner or admin.",
)
async def create_section(
    course_id: UUID,
    body: SectionCreateRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> SectionResponse:
    return await controller.create_section(db, user, course_id, body)


@router.patch(
    "/{section_id}",
    response_model=SectionResponse,
    summary="Rename, reprice, free or deactivate a section",
)
async def update_section(
    section_id: UUID,
    body: SectionUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> SectionResponse:
    return await controller.update_section(db, user, section_id, body)
