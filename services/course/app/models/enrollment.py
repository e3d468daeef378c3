import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base

from .enums import EnrollmentStatus, enrollment_status_enum


class Enrollment(Base):
    __tablename__ = "enrollments"

    enrollment_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # Soft reference: User lives in identity_db
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False
    )
    group_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("groups.group_id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[EnrollmentStatus] = mapped_column(
        enrollment_status_enum, nullable=False, default=EnrollmentStatus.PENDING
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    # Rows are only ever added: access granted once is never taken back silently.
    section_links = relationship(
        "EnrollmentSection", back_populates="enrollment", lazy="selectin"
    )

    @property
    def enrolled_section_ids(self) -> frozenset[uuid.UUID]:
        return frozenset(link.section_id for link in self.section_links)

    def is_section_enrolled(self, section_id: uuid.UUID) -> bool:
        return section_id in self.enrolled_section_ids

    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_enrollments_student_course"),
        Index("ix_enrollments_student_id", "student_id"),
        Index("ix_enrollments_course_id", "course_id"),
    )


class EnrollmentSection(Base):
    """One unlocked section of an enrollment (the ``enrolledSections`` set)."""

    __tablename__ = "enrollment_sections"

    enrollment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("enrollments.enrollment_id", ondelete="CASCADE"),
        primary_key=True,
    )
    section_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("sections.section_id", ondelete="CASCADE"),
        primary_key=True,
    )
    # Soft reference: the approved payment or admin that granted it
    granted_by_payment_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    granted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    enrollment = relationship("Enrollment", back_populates="section_links", lazy="select")

    __table_args__ = (
        Index("ix_enrollment_sections_section_id", "section_id"),
    )
