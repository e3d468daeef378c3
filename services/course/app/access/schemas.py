"""Access domain Pydantic V2 schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.access.resolver import AccessReason, AccessStatus
from app.models.enums import PaymentStatus


class PaymentSnapshotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment_id: UUID
    status: PaymentStatus
    submitted_at: datetime
    processed_at: datetime | None = None
    rejection_reason: str | None = None


class AccessDecisionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    section_id: UUID
    is_unlocked: bool
    status: AccessStatus
    reason: AccessReason
    latest_payment: PaymentSnapshotResponse | None = None


class CourseAccessResponse(BaseModel):
    course_id: UUID
    student_id: UUID
    sections: list[AccessDecisionResponse]


class StudentAccessRow(BaseModel):
    student_id: UUID
    sections: list[AccessDecisionResponse]


class GradebookAccessResponse(BaseModel):
    course_id: UUID
    students: list[StudentAccessRow]
