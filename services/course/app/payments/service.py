"""Section payment service: submission and manual review.

Pure business logic, no FastAPI imports.

An approved payment adds its section to the student's enrollment. Rejecting a
later payment for the same section leaves that grant in place.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    FreeSectionPaymentError,
    InvalidAmountError,
    PaymentAlreadyProcessedError,
    PaymentAlreadySubmittedError,
    PaymentNotFoundError,
)
from app.models.enrollment import Enrollment, EnrollmentSection
from app.models.enums import EnrollmentStatus, PaymentStatus
from app.models.section_payment import SectionPayment
from app.notifications.dispatcher import NotificationDispatcher
from app.notifications.outbox import enqueue
from app.ownership import get_owned_course, get_section
from shared.events.schemas import SectionPaymentProcessed
from shared.models.user import CurrentUser

logger = logging.getLogger(__name__)


async def submit_section_payment(
    db: AsyncSession,
    student_id: UUID,
    section_id: UUID,
    amount_cents: int,
) -> SectionPayment:
    section = await get_section(db, section_id)
    if section.is_unlocked_by_default:
        raise FreeSectionPaymentError("Section is free; no payment needed.")
    if amount_cents is None or amount_cents <= 0:
        raise InvalidAmountError(amount_cents)

    open_payment = await db.scalar(
        select(SectionPayment.payment_id).where(
            SectionPayment.student_id == student_id,
            SectionPayment.section_id == section_id,
            SectionPayment.status.in_([PaymentStatus.PENDING, PaymentStatus.APPROVED]),
        )
    )
    if open_payment is not None:
        raise PaymentAlreadySubmittedError(
            f"A pending or approved payment already exists: {open_payment}"
        )

    payment = SectionPayment(
        student_id=student_id,
        section_id=section_id,
        course_id=section.course_id,
        group_id=section.group_id,
        amount_cents=amount_cents,
        currency=section.currency,
        status=PaymentStatus.PENDING,
    )
    db.add(payment)
    await db.flush()
    return payment


async def _get_reviewable_payment(
    db: AsyncSession, caller: CurrentUser, payment_id: UUID,
) -> SectionPayment:
    payment = await db.get(SectionPayment, payment_id)
    if payment is None:
        raise PaymentNotFoundError(str(payment_id))
    await get_owned_course(db, payment.course_id, caller)
    if payment.status != PaymentStatus.PENDING:
        raise PaymentAlreadyProcessedError(payment.status.value)
    return payment


async def _grant_section(db: AsyncSession, payment: SectionPayment) -> Enrollment:
    enrollment = await db.scalar(
        select(Enrollment).where(
            Enrollment.student_id == payment.student_id,
            Enrollment.course_id == payment.course_id,
        )
    )
    if enrollment is None:
        enrollment = Enrollment(
            student_id=payment.student_id,
            course_id=payment.course_id,
            group_id=payment.group_id,
            status=EnrollmentStatus.ENROLLED,
            section_links=[],
        )
        db.add(enrollment)
        await db.flush()

    if not enrollment.is_section_enrolled(payment.section_id):
        enrollment.section_links.append(
            EnrollmentSection(
                section_id=payment.section_id,
                granted_by_payment_id=payment.payment_id,
            )
        )
    return enrollment


async def approve_section_payment(
    db: AsyncSession,
    caller: CurrentUser,
    payment_id: UUID,
    dispatcher: NotificationDispatcher,
) -> SectionPayment:
    payment = await _get_reviewable_payment(db, caller, payment_id)
    payment.status = PaymentStatus.APPROVED
    payment.processed_at = datetime.now(timezone.utc)
    payment.processed_by = caller.id
    await _grant_section(db, payment)
    await db.flush()

    logger.info(
        "Payment %s approved: section %s unlocked for student %s",
        payment_id, payment.section_id, payment.student_id,
    )
    enqueue(
        db,
        dispatcher,
        SectionPaymentProcessed(
            payment_id=payment.payment_id,
            student_id=payment.student_id,
            section_id=payment.section_id,
            status=payment.status.value,
        ),
    )
    return payment


async def reject_section_payment(
    db: AsyncSession,
    caller: CurrentUser,
    payment_id: UUID,
    dispatcher: NotificationDispatcher,
    reason: str | None = None,
) -> SectionPayment:
    payment = await _get_reviewable_payment(db, caller, payment_id)
    payment.status = PaymentStatus.REJECTED
    payment.rejection_reason = reason
    payment.processed_at = datetime.now(timezone.utc)
    payment.processed_by = caller.id
    await db.flush()

    logger.info("Payment %s rejected by %s", payment_id, caller.id)
    enqueue(
        db,
        dispatcher,
        SectionPaymentProcessed(
            payment_id=payment.payment_id,
            student_id=payment.student_id,
            section_id=payment.section_id,
            status=payment.status.value,
            reason=reason,
        ),
    )
    return payment


async def list_course_payments(
    db: AsyncSession,
    caller: CurrentUser,
    course_id: UUID,
    status: PaymentStatus | None = None,
) -> list[SectionPayment]:
    await get_owned_course(db, course_id, caller)
    stmt = select(SectionPayment).where(SectionPayment.course_id == course_id)
    if status is not None:
        stmt = stmt.where(SectionPayment.status == status)
    result = await db.execute(stmt.order_by(SectionPayment.submitted_at.desc()))
    return list(result.scalars().all())


async def list_my_payments(db: AsyncSession, student_id: UUID) -> list[SectionPayment]:
    result = await db.execute(
        select(SectionPayment)
        .where(SectionPayment.student_id == student_id)
        .order_by(SectionPayment.submitted_at.desc())
    )
    return list(result.scalars().all())
