from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DomainEvent(BaseModel):
    """Base envelope for events published after a committed state transition."""

    model_config = ConfigDict(extra="forbid")

    event_type: str
    occurred_at: datetime = Field(default_factory=_utcnow)


class CertificateGranted(DomainEvent):
    event_type: str = "certificate.granted"
    certificate_id: UUID
    student_id: UUID
    course_id: UUID
    group_id: UUID | None = None
    verification_code: str


class CourseCostChanged(DomainEvent):
    event_type: str = "course.cost_changed"
    course_id: UUID
    old_cost_cents: int
    new_cost_cents: int
    currency: str
    sections_adjusted: bool = False
    changed_by: UUID


class CostChangePending(DomainEvent):
    """Instructor must confirm a rescale of already-allocated section prices."""

    event_type: str = "course.cost_change_pending"
    pending_change_id: UUID
    course_id: UUID
    old_cost_cents: int
    new_cost_cents: int
    total_paid_sections_cents: int


class SectionPaymentProcessed(DomainEvent):
    event_type: str = "section_payment.processed"
    payment_id: UUID
    student_id: UUID
    section_id: UUID
    status: str
    reason: str | None = None


class CertificateRequested(DomainEvent):
    event_type: str = "certificate.requested"
    request_id: UUID
    student_id: UUID
    course_id: UUID
