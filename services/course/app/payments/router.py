"""Section payment router: HTTP layer only."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, get_dispatcher
from app.models.enums import PaymentStatus
from app.notifications.dispatcher import NotificationDispatcher
from app.payments import controller
from app.payments.schemas import (
    RejectPaymentRequest,
    SectionPaymentResponse,
    SubmitPaymentRequest,
)
from shared.models.user import CurrentUser

router = APIRouter(prefix="/payments", tags=["Section Payments"])


@router.post(
    "/sections/{section_id}",
    response_model=SectionPaymentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a payment for a paid section",
    description="Returns 409 while another payment for the section is pending or approved.",
)
async def submit_payment(
    section_id: UUID,
    body: SubmitPaymentRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> SectionPaymentResponse:
    return await controller.submit_payment(db, user, section_id, body)


@router.get(
    "/me",
    response_model=list[SectionPaymentResponse],
    summary="List my section payments",
)
async def list_my_payments(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[SectionPaymentResponse]:
    return await controller.list_my_payments(db, user)


@router.get(
    "/courses/{course_id}",
    response_model=list[SectionPaymentResponse],
    summary="List payments for a course (owner or admin)",
)
async def list_course_payments(
    course_id: UUID,
    status_filter: PaymentStatus | None = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[SectionPaymentResponse]:
    return await controller.list_course_payments(db, user, course_id, status_filter)


@router.post(
    "/{payment_id}/approve",
    response_model=SectionPaymentResponse,
    summary="Approve a pending payment and unlock the section",
)
async def approve_payment(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> SectionPaymentResponse:
    return await controller.approve_payment(db, user, payment_id, dispatcher)


@router.post(
    "/{payment_id}/reject",
    response_model=SectionPaymentResponse,
    summary="Reject a pending payment",
)
async def reject_payment(
    payment_id: UUID,
    body: RejectPaymentRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> SectionPaymentResponse:
    return await controller.reject_payment(db, user, payment_id, body, dispatcher)
