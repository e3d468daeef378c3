"""Section unlock rules.

A section is unlocked by the first rule that matches:

1. free or zero-priced section          -> unlocked / free
2. section already in enrolledSections  -> unlocked / enrolled
3. latest payment approved              -> unlocked / payment_approved
4. latest payment pending               -> locked   / payment_pending
5. latest payment rejected              -> locked   / payment_rejected
6. anything else                        -> locked   / payment_required

Only the latest payment (most recent ``submitted_at``) is consulted, and a
rejection never takes away a section that is already enrolled.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from app.models.enums import PaymentStatus
from app.models.section_payment import SectionPayment


class AccessStatus(str, enum.Enum):
    UNLOCKED = "unlocked"
    LOCKED = "locked"


class AccessReason(str, enum.Enum):
    FREE = "free"
    ENROLLED = "enrolled"
    PAYMENT_APPROVED = "payment_approved"
    PAYMENT_PENDING = "payment_pending"
    PAYMENT_REJECTED = "payment_rejected"
    PAYMENT_REQUIRED = "payment_required"


class SectionLike(Protocol):
    section_id: UUID

    @property
    def is_unlocked_by_default(self) -> bool: ...


class EnrollmentLike(Protocol):
    def is_section_enrolled(self, section_id: UUID) -> bool: ...


@dataclass(frozen=True)
class PaymentSnapshot:
    payment_id: UUID
    status: PaymentStatus
    submitted_at: datetime
    processed_at: datetime | None
    rejection_reason: str | None

    @classmethod
    def from_payment(cls, payment: SectionPayment) -> PaymentSnapshot:
        return cls(
            payment_id=payment.payment_id,
            status=payment.status,
            submitted_at=payment.submitted_at,
            processed_at=payment.processed_at,
            rejection_reason=payment.rejection_reason,
        )


@dataclass(frozen=True)
class AccessDecision:
    section_id: UUID
    is_unlocked: bool
    status: AccessStatus
    reason: AccessReason
    latest_payment: PaymentSnapshot | None = None


_PAYMENT_REASONS: dict[PaymentStatus, AccessReason] = {
    PaymentStatus.APPROVED: AccessReason.PAYMENT_APPROVED,
    PaymentStatus.PENDING: AccessReason.PAYMENT_PENDING,
    PaymentStatus.REJECTED: AccessReason.PAYMENT_REJECTED,
}


def resolve_access(
    section: SectionLike,
    enrollment: EnrollmentLike | None,
    latest_payment: SectionPayment | None,
) -> AccessDecision:
    snapshot = PaymentSnapshot.from_payment(latest_payment) if latest_payment else None

    if section.is_unlocked_by_default:
        reason = AccessReason.FREE
    elif enrollment is not None and enrollment.is_section_enrolled(section.section_id):
        reason = AccessReason.ENROLLED
    elif latest_payment is not None:
        reason = _PAYMENT_REASONS[latest_payment.status]
    else:
        reason = AccessReason.PAYMENT_REQUIRED

    unlocked = reason in (
        AccessReason.FREE, AccessReason.ENROLLED, AccessReason.PAYMENT_APPROVED,
    )
    return AccessDecision(
        section_id=section.section_id,
        is_unlocked=unlocked,
        status=AccessStatus.UNLOCKED if unlocked else AccessStatus.LOCKED,
        reason=reason,
        latest_payment=snapshot,
    )
