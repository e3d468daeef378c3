import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, SmallInteger, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base

from .enums import QuizAttemptStatus, quiz_attempt_status_enum


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"

    attempt_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    quiz_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("quizzes.quiz_id", ondelete="CASCADE"), nullable=False
    )
    # Soft reference to identity_db
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    status: Mapped[QuizAttemptStatus] = mapped_column(
        quiz_attempt_status_enum, nullable=False, default=QuizAttemptStatus.IN_PROGRESS
    )
    score: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        Index("ix_quiz_attempts_quiz_student", "quiz_id", "student_id"),
    )
