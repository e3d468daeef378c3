"""Pricing controller: maps service results to HTTP responses, catches domain exceptions."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.exceptions import InvalidStateError, NotFoundError, UnauthorizedError, ValidationError
from app.notifications.dispatcher import NotificationDispatcher
from app.pagination import OffsetPage
from app.pricing import service
from app.pricing.schemas import (
    CostChangeResponse,
    PendingChangeResponse,
    PriceChangeRecordResponse,
    ProposeCostChangeRequest,
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
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


def _outcome_response(outcome: service.CostChangeOutcome) -> CostChangeResponse:
    return CostChangeResponse(
        applied=outcome.applied,
        course_id=outcome.course.course_id,
        cost_cents=outcome.course.cost_cents,
        currency=outcome.course.currency,
        pending_change=(
            PendingChangeResponse.model_validate(outcome.pending_change)
            if outcome.pending_change is not None
            else None
        ),
        record=(
            PriceChangeRecordResponse.model_validate(outcome.record)
            if outcome.record is not None
            else None
        ),
    )


async def propose_cost_change(
    db: AsyncSession,
    caller: CurrentUser,
    course_id: UUID,
    body: ProposeCostChangeRequest,
    settings: Settings,
    dispatcher: NotificationDispatcher,
) -> CostChangeResponse:
    try:
        outcome = await service.propose_cost_change(
            db,
            caller,
            course_id,
            body.new_cost_cents,
            dispatcher,
            currency=body.currency,
            reason=body.reason,
            pending_ttl_days=settings.pending_change_ttl_days,
        )
        return _outcome_response(outcome)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def confirm_cost_change(
    db: AsyncSession,
    caller: CurrentUser,
    change_id: UUID,
    dispatcher: NotificationDispatcher,
) -> CostChangeResponse:
    try:
        outcome = await service.confirm_auto(db, caller, change_id, dispatcher)
        return _outcome_response(outcome)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def cancel_cost_change(
    db: AsyncSession, caller: CurrentUser, change_id: UUID,
) -> PendingChangeResponse:
    try:
        change = await service.cancel(db, caller, change_id)
        return PendingChangeResponse.model_validate(change)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def get_pending_change(
    db: AsyncSession, caller: CurrentUser, course_id: UUID,
) -> PendingChangeResponse | None:
    try:
        change = await service.get_pending_change(db, caller, course_id)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return PendingChangeResponse.model_validate(change) if change is not None else None


async def list_price_history(
    db: AsyncSession, course_id: UUID, limit: int, offset: int,
) -> OffsetPage[PriceChangeRecordResponse]:
    try:
        records, total = await service.list_price_history(db, course_id, limit=limit, offset=offset)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return OffsetPage[PriceChangeRecordResponse](
        items=[PriceChangeRecordResponse.model_validate(r) for r in records],
        total=total,
        limit=limit,
        offset=offset,
    )
