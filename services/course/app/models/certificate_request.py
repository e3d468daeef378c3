import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base

from .enums import CertificateRequestStatus, certificate_request_status_enum


class CertificateRequest(Base):
    __tablename__ = "certificate_requests"

    request_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False
    )
    group_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    # Grade snapshot at request time
    course_grade: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    status: Mapped[CertificateRequestStatus] = mapped_column(
        certificate_request_status_enum,
        nullable=False,
        default=CertificateRequestStatus.REQUESTED,
    )
    rejection_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    processed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        # One request row per student and course; a rejected row is reused
        UniqueConstraint(
            "student_id", "course_id", name="uq_certificate_requests_student_course"
        ),
    )
