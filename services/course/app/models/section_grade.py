import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base


class SectionGrade(Base):
    """Cached per-section grade, recomputed on every content grade write."""

    __tablename__ = "section_grades"

    section_grade_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    section_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("sections.section_id", ondelete="CASCADE"), nullable=False
    )
    # NULL: the section has nothing to grade (distinct from a zero score)
    grade_percent: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("student_id", "section_id", name="uq_section_grades_student_section"),
        Index("ix_section_grades_section_id", "section_id"),
    )
