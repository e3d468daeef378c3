"""Pricing router: HTTP layer only.

Course cost changes go through propose → confirm / cancel. A proposal that
fits the already-priced sections is applied in the same call.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import get_db
from app.dependencies import get_current_user, get_dispatcher, get_settings
from app.notifications.dispatcher import NotificationDispatcher
from app.pagination import OffsetPage
from app.pricing import controller
from app.pricing.schemas import (
    CostChangeResponse,
    PendingChangeResponse,
    PriceChangeRecordResponse,
    ProposeCostChangeRequest,
)
from shared.models.user import CurrentUser

router = APIRouter(prefix="/pricing", tags=["Pricing"])


@router.post(
    "/courses/{course_id}/cost",
    response_model=CostChangeResponse,
    summary="Change a course's total cost",
    description="Applied immediately when paid sections still fit under the new total; "
    "otherwise a pending change with proposed section prices is returned. "
    "Returns 409 if another change is already pending.",
)
async def propose_cost_change(
    course_id: UUID,
    body: ProposeCostChangeRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> CostChangeResponse:
    return await controller.propose_cost_change(db, user, course_id, body, settings, dispatcher)


@router.get(
    "/courses/{course_id}/pending",
    response_model=PendingChangeResponse | None,
    summary="Pending cost change for a course, if any",
)
async def get_pending_change(
    course_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PendingChangeResponse | None:
    return await controller.get_pending_change(db, user, course_id)


@router.post(
    "/changes/{change_id}/confirm",
    response_model=CostChangeResponse,
    summary="Confirm a pending change and rescale section prices",
)
async def confirm_cost_change(
    change_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> CostChangeResponse:
    return await controller.confirm_cost_change(db, user, change_id, dispatcher)


@router.post(
    "/changes/{change_id}/cancel",
    response_model=PendingChangeResponse,
    summary="Cancel a pending change",
)
async def cancel_cost_change(
    change_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PendingChangeResponse:
    return await controller.cancel_cost_change(db, user, change_id)


@router.get(
    "/courses/{course_id}/history",
    response_model=OffsetPage[PriceChangeRecordResponse],
    summary="Price change history for a course",
)
async def list_price_history(
    course_id: UUID,
    limit: int = Query(20, ge=1, le=100, description="Items per page."),
    offset: int = Query(0, ge=0, description="Number of items to skip."),
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> OffsetPage[PriceChangeRecordResponse]:
    return await controller.list_price_history(db, course_id, limit, offset)
