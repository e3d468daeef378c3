"""Section payment controller: maps domain exceptions to HTTP responses."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InvalidStateError, NotFoundError, UnauthorizedError, ValidationError
from app.models.enums import PaymentStatus
from app.notifications.dispatcher import NotificationDispatcher
from app.payments import service
from app.payments.schemas import (
    RejectPaymentRequest,
    SectionPaymentResponse,
    SubmitPaymentRequest,
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


async def submit_payment(
    db: AsyncSession, caller: CurrentUser, section_id: UUID, body: SubmitPaymentRequest,
) -> SectionPaymentResponse:
    try:
        payment = await service.submit_section_payment(db, caller.id, section_id, body.amount_cents)
        return SectionPaymentResponse.model_validate(payment)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def approve_payment(
    db: AsyncSession,
    caller: CurrentUser,
    payment_id: UUID,
    dispatcher: NotificationDispatcher,
) -> SectionPaymentResponse:
    try:
        payment = await service.approve_section_payment(db, caller, payment_id, dispatcher)
        return SectionPaymentResponse.model_validate(payment)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def reject_payment(
    db: AsyncSession,
    caller: CurrentUser,
    payment_id: UUID,
    body: RejectPaymentRequest,
    dispatcher: NotificationDispatcher,
) -> SectionPaymentResponse:
    try:
        payment = await service.reject_section_payment(
            db, caller, payment_id, dispatcher, reason=body.reason,
        )
        return SectionPaymentResponse.model_validate(payment)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def list_course_payments(
    db: AsyncSession,
    caller: CurrentUser,
    course_id: UUID,
    status_filter: PaymentStatus | None,
) -> list[SectionPaymentResponse]:
    try:
        payments = await service.list_course_payments(db, caller, course_id, status_filter)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return [SectionPaymentResponse.model_validate(p) for p in payments]


async def list_my_payments(db: AsyncSession, caller: CurrentUser) -> list[SectionPaymentResponse]:
    payments = await service.list_my_payments(db, caller.id)
    return [SectionPaymentResponse.model_validate(p) for p in payments]
