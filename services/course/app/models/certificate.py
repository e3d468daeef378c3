import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base


class Certificate(Base):
    __tablename__ = "certificates"

    certificate_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("certificate_requests.request_id", ondelete="CASCADE"),
        nullable=False,
    )
    # Soft reference: User lives in identity_db
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False
    )
    group_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    verification_code: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    # Denormalized snapshot at issuance for verification display
    course_title: Mapped[str] = mapped_column(String(300), nullable=False, default="")
    instructor_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    score: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    issued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_certificates_student_course"),
        Index("ix_certificates_course_id", "course_id"),
    )
