from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, SmallInteger, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base

ADMIN_SETTINGS_ID = "admin_settings"


class AdminSettings(Base):
    """Singleton row of platform-wide knobs edited by admins."""

    __tablename__ = "admin_settings"

    settings_id: Mapped[str] = mapped_column(
        String(32), primary_key=True, default=ADMIN_SETTINGS_ID
    )
    passing_grade: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=60)
    updated_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint(
            "passing_grade >= 0 AND passing_grade <= 100",
            name="ck_admin_settings_passing_grade",
        ),
    )
