import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base

from .enums import ContentGradeStatus, content_grade_status_enum


class ContentGrade(Base):
    __tablename__ = "content_grades"

    grade_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    content_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contents.content_id", ondelete="CASCADE"), nullable=False
    )
    section_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("sections.section_id", ondelete="CASCADE"), nullable=False
    )
    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[ContentGradeStatus] = mapped_column(
        content_grade_status_enum, nullable=False, default=ContentGradeStatus.NOT_DELIVERED
    )
    # Always within [0, 100]; writers clamp before storing
    grade_percent: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("0.00")
    )
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    watched_duration_secs: Mapped[int | None] = mapped_column(Integer, nullable=True)
    graded_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    graded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("student_id", "content_id", name="uq_content_grades_student_content"),
        Index("ix_content_grades_section_id", "section_id"),
    )
