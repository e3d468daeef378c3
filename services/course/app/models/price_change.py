import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base


class PriceChangeRecord(Base):
    """Append-only audit log of applied course cost changes."""

    __tablename__ = "course_price_changes"

    record_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False
    )
    old_cost_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    new_cost_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    changed_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    changed_by_role: Mapped[str] = mapped_column(String(20), nullable=False)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    sections_adjusted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    scale_factor: Mapped[Decimal | None] = mapped_column(Numeric(12, 8), nullable=True)
    # [{"section_id", "old_price", "new_price"}] when sections were rescaled
    affected_sections: Mapped[list[dict] | None] = mapped_column(JSON, nullable=True)
    pending_change_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        Index("ix_course_price_changes_course_created", "course_id", "created_at"),
    )
