import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base

from .enums import CostChangeStatus, cost_change_status_enum

PENDING_CHANGE_TTL = timedelta(days=7)


def _default_expiry() -> datetime:
    return datetime.now(timezone.utc) + PENDING_CHANGE_TTL


class PendingCostChange(Base):
    """A course cost reduction that would under-fund already priced sections.

    ``affected_sections`` holds ``[{"section_id", "section_name", "old_price",
    "new_price"}]`` in subunits. Immutable once ``status`` leaves ``pending``.
    """

    __tablename__ = "pending_cost_changes"

    change_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False
    )
    instructor_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    old_cost_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    new_cost_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    total_paid_sections_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    scale_factor: Mapped[Decimal] = mapped_column(Numeric(12, 8), nullable=False)
    affected_sections: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[CostChangeStatus] = mapped_column(
        cost_change_status_enum, nullable=False, default=CostChangeStatus.PENDING
    )
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    # Advisory only: nothing transitions a change when it lapses
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_default_expiry
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    course = relationship("Course", lazy="select")

    @property
    def is_resolved(self) -> bool:
        return self.status != CostChangeStatus.PENDING

    __table_args__ = (
        Index("ix_pending_cost_changes_course_status", "course_id", "status"),
        Index("ix_pending_cost_changes_expires_status", "expires_at", "status"),
        # At most one open change per course
        Index(
            "uq_pending_cost_changes_open_per_course",
            "course_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )
