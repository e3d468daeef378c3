"""Section payment Pydantic V2 schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import PaymentStatus


class SubmitPaymentRequest(BaseModel):
    # Must be > 0; checked by the service alongside the free-section rule
    amount_cents: int = Field(description="Amount paid in currency subunits.")


class RejectPaymentRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    reason: str | None = Field(default=None, max_length=500)


class SectionPaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment_id: UUID
    student_id: UUID
    section_id: UUID
    course_id: UUID
    group_id: UUID | None = None
    amount_cents: int
    currency: str
    status: PaymentStatus
    rejection_reason: str | None = None
    submitted_at: datetime
    processed_at: datetime | None = None
    processed_by: UUID | None = None
