"""Certificate eligibility state machine.

Evaluated fresh on every call from the inputs below; nothing here is stored.
The first matching rule decides the status:

    not enrolled                               -> NOT_ENROLLED
    certificates off (flag or mode disabled)   -> CERTIFICATES_DISABLED
    some gradable item still open              -> GROUP_NOT_COMPLETED
    overall grade below the passing grade      -> GROUP_COMPLETED_BUT_GRADE_TOO_LOW
    mode automatic                             -> AUTO_GRANT
    mode manual_instructor, release on         -> CAN_REQUEST
    mode manual_instructor, release off        -> GROUP_COMPLETED_AND_ELIGIBLE
    any other mode                             -> GROUP_COMPLETED_AND_ELIGIBLE

The details block is filled in for every status so a decision can be audited.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from app.models.enums import CertificateMode


class EligibilityStatus(str, enum.Enum):
    NOT_ENROLLED = "NOT_ENROLLED"
    CERTIFICATES_DISABLED = "CERTIFICATES_DISABLED"
    GROUP_NOT_COMPLETED = "GROUP_NOT_COMPLETED"
    GROUP_COMPLETED_BUT_GRADE_TOO_LOW = "GROUP_COMPLETED_BUT_GRADE_TOO_LOW"
    AUTO_GRANT = "AUTO_GRANT"
    CAN_REQUEST = "CAN_REQUEST"
    GROUP_COMPLETED_AND_ELIGIBLE = "GROUP_COMPLETED_AND_ELIGIBLE"


ELIGIBLE_STATUSES = frozenset({
    EligibilityStatus.AUTO_GRANT,
    EligibilityStatus.CAN_REQUEST,
    EligibilityStatus.GROUP_COMPLETED_AND_ELIGIBLE,
})


@dataclass(frozen=True)
class CompletionCounts:
    lectures_total: int = 0
    lectures_completed: int = 0
    submissions_total: int = 0
    submissions_completed: int = 0
    quizzes_total: int = 0
    quizzes_completed: int = 0

    @property
    def total_items(self) -> int:
        return self.lectures_total + self.submissions_total + self.quizzes_total

    @property
    def completed_items(self) -> int:
        return self.lectures_completed + self.submissions_completed + self.quizzes_completed

    @property
    def is_complete(self) -> bool:
        return self.total_items > 0 and self.completed_items == self.total_items


@dataclass(frozen=True)
class EligibilityInputs:
    enrolled: bool
    offers_certificate: bool
    certificate_mode: str
    instructor_certificate_release: bool
    passing_grade: int
    overall_grade: Decimal | None
    counts: CompletionCounts = field(default_factory=CompletionCounts)


@dataclass(frozen=True)
class EligibilityDetails:
    total_items: int
    completed_items: int
    completion_percentage: Decimal
    overall_grade: Decimal | None
    passing_grade: int


@dataclass(frozen=True)
class EligibilityResult:
    status: EligibilityStatus
    details: EligibilityDetails

    @property
    def eligible(self) -> bool:
        return self.status in ELIGIBLE_STATUSES


def _completion_percentage(counts: CompletionCounts) -> Decimal:
    if counts.total_items == 0:
        return Decimal("0.00")
    pct = Decimal(counts.completed_items * 100) / Decimal(counts.total_items)
    return pct.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _decide(inputs: EligibilityInputs) -> EligibilityStatus:
    if not inputs.enrolled:
        return EligibilityStatus.NOT_ENROLLED
    if not inputs.offers_certificate or inputs.certificate_mode == CertificateMode.DISABLED.value:
        return EligibilityStatus.CERTIFICATES_DISABLED
    if not inputs.counts.is_complete:
        return EligibilityStatus.GROUP_NOT_COMPLETED
    # No grade at all counts as 0 against the passing grade
    grade = inputs.overall_grade if inputs.overall_grade is not None else Decimal("0")
    if grade < inputs.passing_grade:
        return EligibilityStatus.GROUP_COMPLETED_BUT_GRADE_TOO_LOW
    if inputs.certificate_mode == CertificateMode.AUTOMATIC.value:
        return EligibilityStatus.AUTO_GRANT
    if inputs.certificate_mode == CertificateMode.MANUAL_INSTRUCTOR.value:
        if inputs.instructor_certificate_release:
            return EligibilityStatus.CAN_REQUEST
        return EligibilityStatus.GROUP_COMPLETED_AND_ELIGIBLE
    return EligibilityStatus.GROUP_COMPLETED_AND_ELIGIBLE


def evaluate_eligibility(inputs: EligibilityInputs) -> EligibilityResult:
    return EligibilityResult(
        status=_decide(inputs),
        details=EligibilityDetails(
            total_items=inputs.counts.total_items,
            completed_items=inputs.counts.completed_items,
            completion_percentage=_completion_percentage(inputs.counts),
            overall_grade=inputs.overall_grade,
            passing_grade=inputs.passing_grade,
        ),
    )
