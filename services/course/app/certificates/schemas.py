"""Certificate domain Pydantic V2 schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.certificates.eligibility import EligibilityStatus
from app.models.enums import CertificateRequestStatus


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CertificateRequestCreate(BaseModel):
    group_id: UUID | None = Field(
        default=None,
        description="Group to evaluate. Defaults to the student's enrollment group.",
    )


class RejectCertificateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    reason: str | None = Field(default=None, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class EligibilityDetailsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_items: int
    completed_items: int
    completion_percentage: Decimal
    overall_grade: Decimal | None = None
    passing_grade: int


class EligibilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: EligibilityStatus
    eligible: bool
    details: EligibilityDetailsResponse


class CertificateResponse(BaseModel):
    """Issued certificate with its tamper-proof verification code."""

    model_config = ConfigDict(from_attributes=True)

    certificate_id: UUID
    request_id: UUID
    student_id: UUID
    course_id: UUID
    group_id: UUID | None = None
    verification_code: str
    course_title: str
    instructor_name: str
    score: Decimal | None = None
    issued_at: datetime
    verification_url: str | None = Field(
        default=None,
        description="Full URL for public verification.",
    )


class CertificateRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    request_id: UUID
    student_id: UUID
    course_id: UUID
    group_id: UUID | None = None
    course_grade: Decimal | None = None
    status: CertificateRequestStatus
    rejection_reason: str | None = None
    processed_by: UUID | None = None
    processed_at: datetime | None = None
    created_at: datetime


class CertificateRequestResult(BaseModel):
    """Outcome of a request: the request row, plus the certificate when granted."""

    request: CertificateRequestResponse
    certificate: CertificateResponse | None = None


class CertificateVerifyResponse(BaseModel):
    """Public verification result."""

    is_valid: bool
    certificate_id: UUID | None = None
    student_id: UUID | None = None
    course_id: UUID | None = None
    course_title: str | None = None
    instructor_name: str | None = None
    score: Decimal | None = None
    issued_at: datetime | None = None
