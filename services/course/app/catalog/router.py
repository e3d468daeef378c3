"""Catalog router: cascade deletes over the course hierarchy."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog import controller
from app.catalog.deletion import DeletionScope
from app.catalog.schemas import DeletionPlanResponse, DeletionReportResponse
from app.database import get_db
from app.dependencies import get_current_user
from shared.models.user import CurrentUser

router = APIRouter(prefix="/catalog", tags=["Catalog"])


@router.get(
    "/{scope}/{target_id}/deletion-plan",
    response_model=DeletionPlanResponse,
    summary="Preview what a delete would remove",
    description="Ordered children-first list of tables touched. Owner or admin.",
)
async def preview_deletion(
    scope: DeletionScope,
    target_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> DeletionPlanResponse:
    return await controller.preview_deletion(db, user, scope, target_id)


@router.delete(
    "/{scope}/{target_id}",
    response_model=DeletionReportResponse,
    summary="Delete a course, group, section or content item and its dependents",
)
async def delete_entity(
    scope: DeletionScope,
    target_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> DeletionReportResponse:
    return await controller.delete_entity(db, user, scope, target_id)
