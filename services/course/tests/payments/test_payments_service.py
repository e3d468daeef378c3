import pytest
from sqlalchemy import select

from app.access.resolver import AccessReason
from app.access.service import resolve_section_access
from app.exceptions import (
    FreeSectionPaymentError,
    InvalidAmountError,
    PaymentAlreadyProcessedError,
    PaymentAlreadySubmittedError,
    UnauthorizedError,
)
from app.models.enrollment import Enrollment
from app.models.enums import EnrollmentStatus, PaymentStatus
from app.notifications.outbox import commit_and_publish
from app.payments.service import (
    approve_section_payment,
    list_course_payments,
    list_my_payments,
    reject_section_payment,
    submit_section_payment,
)


@pytest.mark.asyncio
async def test_approval_unlocks_section_and_creates_enrollment(
    db_session, make_course, make_section, instructor, student, dispatcher,
) -> None:
    course = await make_course()
    section = await make_section(course, price_cents=500)

    payment = await submit_section_payment(db_session, student.id, section.section_id, 500)
    assert payment.status == PaymentStatus.PENDING
    pending = await resolve_section_access(db_session, student.id, section.section_id)
    assert pending.reason == AccessReason.PAYMENT_PENDING

    approved = await approve_section_payment(db_session, instructor, payment.payment_id, dispatcher)

    assert approved.status == PaymentStatus.APPROVED
    assert approved.processed_by == instructor.id
    enrollment = await db_session.scalar(
        select(Enrollment).where(Enrollment.student_id == student.id)
    )
    assert enrollment.status == EnrollmentStatus.ENROLLED
    assert enrollment.is_section_enrolled(section.section_id)
    decision = await resolve_section_access(db_session, student.id, section.section_id)
    assert decision.reason == AccessReason.ENROLLED
    await commit_and_publish(db_session)
    assert dispatcher.types() == ["section_payment.processed"]


@pytest.mark.asyncio
async def test_rejection_keeps_previously_granted_section(
    db_session, make_course, make_section, make_enrollment, instructor, student, dispatcher,
) -> None:
    course = await make_course()
    section = await make_section(course, price_cents=500)
    await make_enrollment(course, student.id, sections=[section])

    payment = await submit_section_payment(db_session, student.id, section.section_id, 500)
    rejected = await reject_section_payment(
        db_session, instructor, payment.payment_id, dispatcher, reason="wrong amount",
    )

    assert rejected.status == PaymentStatus.REJECTED
    assert rejected.rejection_reason == "wrong amount"
    decision = await resolve_section_access(db_session, student.id, section.section_id)
    assert decision.is_unlocked is True
    assert decision.reason == AccessReason.ENROLLED
    assert decision.latest_payment.status == PaymentStatus.REJECTED


@pytest.mark.asyncio
async def test_resubmission_allowed_only_after_rejection(
    db_session, make_course, make_section, instructor, student, dispatcher,
) -> None:
    course = await make_course()
    section = await make_section(course, price_cents=500)
    first = await submit_section_payment(db_session, student.id, section.section_id, 500)

    with pytest.raises(PaymentAlreadySubmittedError):
        await submit_section_payment(db_session, student.id, section.section_id, 500)

    await reject_section_payment(db_session, instructor, first.payment_id, dispatcher)
    second = await submit_section_payment(db_session, student.id, section.section_id, 500)

    assert second.payment_id != first.payment_id
    assert len(await list_my_payments(db_session, student.id)) == 2


@pytest.mark.asyncio
async def test_free_section_needs_no_payment(db_session, make_course, make_section, student) -> None:
    course = await make_course()
    section = await make_section(course, is_free=True)

    with pytest.raises(FreeSectionPaymentError):
        await submit_section_payment(db_session, student.id, section.section_id, 100)


@pytest.mark.asyncio
async def test_amount_must_be_positive(db_session, make_course, make_section, student) -> None:
    course = await make_course()
    section = await make_section(course, price_cents=500)

    with pytest.raises(InvalidAmountError):
        await submit_section_payment(db_session, student.id, section.section_id, 0)


@pytest.mark.asyncio
async def test_review_is_owner_only_and_single_shot(
    db_session, make_course, make_section, instructor, outsider, student, dispatcher,
) -> None:
    course = await make_course()
    section = await make_section(course, price_cents=500)
    payment = await submit_section_payment(db_session, student.id, section.section_id, 500)

    with pytest.raises(UnauthorizedError):
        await approve_section_payment(db_session, outsider, payment.payment_id, dispatcher)
    with pytest.raises(UnauthorizedError):
        await list_course_payments(db_session, outsider, course.course_id)

    await approve_section_payment(db_session, instructor, payment.payment_id, dispatcher)
    with pytest.raises(PaymentAlreadyProcessedError):
        await reject_section_payment(db_session, instructor, payment.payment_id, dispatcher)

    approved = await list_course_payments(
        db_session, instructor, course.course_id, PaymentStatus.APPROVED,
    )
    assert [p.payment_id for p in approved] == [payment.payment_id]
