"""Grading domain Pydantic V2 schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import ContentGradeStatus


class LectureWatchedRequest(BaseModel):
    watched_pct: Decimal = Field(ge=0, le=100, description="Share of the lecture watched.")
    watched_duration_secs: int | None = Field(default=None, ge=0)


class GradeContentRequest(BaseModel):
    # Out-of-range grades are clamped to [0, 100], not rejected
    grade_percent: Decimal
    feedback: str | None = Field(default=None, max_length=5000)


class ContentGradeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    grade_id: UUID
    student_id: UUID
    content_id: UUID
    section_id: UUID
    status: ContentGradeStatus
    grade_percent: Decimal
    feedback: str | None = None
    graded_by: UUID | None = None
    graded_at: datetime | None = None
    submitted_at: datetime | None = None


class ContentProgressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    content_id: UUID
    student_id: UUID
    completed: bool
    completed_at: datetime | None = None


class SectionGradeEntry(BaseModel):
    section_id: UUID
    grade_percent: Decimal | None = None


class StudentGradesResponse(BaseModel):
    student_id: UUID
    course_id: UUID
    course_grade: Decimal | None = None
    sections: list[SectionGradeEntry]
