from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.access.resolver import AccessReason, AccessStatus, resolve_access
from app.models.enrollment import Enrollment, EnrollmentSection
from app.models.enums import PaymentStatus
from app.models.section import Section
from app.models.section_payment import SectionPayment


def _section(**kwargs) -> Section:
    return Section(section_id=uuid4(), name="S1", **kwargs)


def _enrollment(*sections: Section) -> Enrollment:
    return Enrollment(
        student_id=uuid4(),
        course_id=uuid4(),
        section_links=[EnrollmentSection(section_id=s.section_id) for s in sections],
    )


def _payment(section: Section, status: PaymentStatus, reason: str | None = None) -> SectionPayment:
    return SectionPayment(
        payment_id=uuid4(),
        student_id=uuid4(),
        section_id=section.section_id,
        course_id=uuid4(),
        amount_cents=500,
        status=status,
        rejection_reason=reason,
        submitted_at=datetime.now(timezone.utc) - timedelta(hours=1),
    )


@pytest.mark.parametrize(
    "is_free, price_cents",
    [(True, 0), (True, 900), (False, 0)],
)
def test_free_or_zero_priced_section_is_always_unlocked(is_free, price_cents) -> None:
    section = _section(is_free=is_free, price_cents=price_cents)
    rejected = _payment(section, PaymentStatus.REJECTED)

    decision = resolve_access(section, None, rejected)

    assert decision.is_unlocked is True
    assert decision.status == AccessStatus.UNLOCKED
    assert decision.reason == AccessReason.FREE


def test_enrolled_section_wins_over_rejected_payment() -> None:
    section = _section(is_free=False, price_cents=400)
    enrollment = _enrollment(section)

    decision = resolve_access(section, enrollment, _payment(section, PaymentStatus.REJECTED, "blurry"))

    assert decision.is_unlocked is True
    assert decision.reason == AccessReason.ENROLLED
    # The payment snapshot is still reported for display
    assert decision.latest_payment is not None
    assert decision.latest_payment.rejection_reason == "blurry"


@pytest.mark.parametrize(
    "status, unlocked, reason",
    [
        (PaymentStatus.APPROVED, True, AccessReason.PAYMENT_APPROVED),
        (PaymentStatus.PENDING, False, AccessReason.PAYMENT_PENDING),
        (PaymentStatus.REJECTED, False, AccessReason.PAYMENT_REJECTED),
    ],
)
def test_latest_payment_decides_when_not_enrolled(status, unlocked, reason) -> None:
    section = _section(is_free=False, price_cents=400)
    enrollment = _enrollment()  # enrolled in the course, not in this section

    decision = resolve_access(section, enrollment, _payment(section, status))

    assert decision.is_unlocked is unlocked
    assert decision.reason == reason
    assert decision.status == (AccessStatus.UNLOCKED if unlocked else AccessStatus.LOCKED)
    assert decision.latest_payment.status == status


def test_paid_section_without_payment_requires_payment() -> None:
    section = _section(is_free=False, price_cents=400)

    decision = resolve_access(section, None, None)

    assert decision.is_unlocked is False
    assert decision.status == AccessStatus.LOCKED
    assert decision.reason == AccessReason.PAYMENT_REQUIRED
    assert decision.latest_payment is None
    assert decision.section_id == section.section_id
