import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base


class Section(Base):
    __tablename__ = "sections"

    section_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False
    )
    group_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("groups.group_id", ondelete="CASCADE"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    is_free: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    sort_order: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    course = relationship("Course", back_populates="sections", lazy="select")

    @property
    def is_unlocked_by_default(self) -> bool:
        return bool(self.is_free) or (self.price_cents or 0) == 0

    @property
    def is_paid(self) -> bool:
        return not self.is_unlocked_by_default

    __table_args__ = (
        CheckConstraint("price_cents >= 0", name="ck_sections_price_non_negative"),
        Index("ix_sections_course_id", "course_id"),
        Index("ix_sections_group_id", "group_id"),
    )
