import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base

from .enums import CertificateMode


class Course(Base):
    __tablename__ = "courses"

    course_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Soft reference: User lives in identity_db, FK not enforceable cross-DB
    instructor_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    # Denormalized from identity_db so course cards render without cross-service calls
    instructor_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    # Course total in whole currency subunits; sections allocate from it
    cost_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    offers_certificate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # Plain string: rows written by older releases may carry modes this build does not know
    certificate_mode: Mapped[str] = mapped_column(
        String(30), nullable=False, default=CertificateMode.AUTOMATIC.value
    )
    instructor_certificate_release: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    groups = relationship("Group", back_populates="course", lazy="noload")
    sections = relationship("Section", back_populates="course", lazy="noload")

    __table_args__ = (
        Index("ix_courses_instructor_id", "instructor_id"),
    )
