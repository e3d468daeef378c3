"""Grading service: content grade writes and section / course aggregation.

Pure business logic, no FastAPI imports.

Every content grade write is flushed before the owning section grade is
recomputed. The recompute runs in its own savepoint and a failure there is
logged, never raised: the content grade the caller wrote stays written and
the cached section grade catches up on the next write.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.access.service import resolve_section_access
from app.exceptions import (
    ContentTypeMismatchError,
    SubmissionNotAllowedError,
    UnauthorizedError,
)
from app.grading.scoring import (
    HUNDRED,
    SUBMITTED_UNGRADED_SCORE,
    ZERO,
    GradableItem,
    clamp_grade,
    compute_course_score,
    compute_section_score,
    to_gradable_item,
)
from app.models.content import Content
from app.models.content_grade import ContentGrade
from app.models.content_progress import ContentProgress
from app.models.enums import ContentGradeStatus, ContentType
from app.models.section import Section
from app.models.section_grade import SectionGrade
from app.ownership import ensure_course_owner, get_content, get_course, is_owner_or_admin
from shared.database.postgres import atomic
from shared.models.user import CurrentUser

logger = logging.getLogger(__name__)

_SUBMITTABLE = (ContentType.ASSIGNMENT, ContentType.PROJECT)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


async def load_section_items(
    db: AsyncSession, student_id: UUID, section_id: UUID,
) -> list[GradableItem]:
    contents = (
        await db.execute(
            select(Content).where(
                Content.section_id == section_id,
                Content.is_published.is_(True),
            )
        )
    ).scalars().all()
    if not contents:
        return []

    content_ids = [c.content_id for c in contents]
    grades = {
        g.content_id: g
        for g in (
            await db.execute(
                select(ContentGrade).where(
                    ContentGrade.student_id == student_id,
                    ContentGrade.content_id.in_(content_ids),
                )
            )
        ).scalars()
    }
    completed = set(
        (
            await db.execute(
                select(ContentProgress.content_id).where(
                    ContentProgress.student_id == student_id,
                    ContentProgress.content_id.in_(content_ids),
                    ContentProgress.completed.is_(True),
                )
            )
        ).scalars()
    )
    return [
        to_gradable_item(c, grades.get(c.content_id), c.content_id in completed)
        for c in contents
    ]


async def compute_section_grade(
    db: AsyncSession, student_id: UUID, section_id: UUID,
) -> Decimal | None:
    items = await load_section_items(db, student_id, section_id)
    return compute_section_score(items).grade


async def refresh_section_grade(
    db: AsyncSession, student_id: UUID, section_id: UUID,
) -> SectionGrade:
    """Recompute and upsert the cached grade for (student, section)."""
    grade = await compute_section_grade(db, student_id, section_id)
    row = await db.scalar(
        select(SectionGrade).where(
            SectionGrade.student_id == student_id,
            SectionGrade.section_id == section_id,
        )
    )
    if row is None:
        row = SectionGrade(student_id=student_id, section_id=section_id)
        db.add(row)
    row.grade_percent = grade
    row.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return row


async def _recompute_section_grade(db: AsyncSession, student_id: UUID, section_id: UUID) -> None:
    try:
        async with atomic(db):
            await refresh_section_grade(db, student_id, section_id)
    except Exception:
        logger.warning(
            "Section grade recompute failed for student=%s section=%s",
            student_id, section_id, exc_info=True,
        )


async def _active_sections(
    db: AsyncSession, course_id: UUID, group_id: UUID | None,
) -> list[Section]:
    stmt = select(Section).where(Section.course_id == course_id, Section.is_active.is_(True))
    if group_id is not None:
        stmt = stmt.where(Section.group_id == group_id)
    return list((await db.execute(stmt)).scalars().all())


async def compute_course_grade(
    db: AsyncSession,
    student_id: UUID,
    course_id: UUID,
    group_id: UUID | None = None,
    *,
    use_cache: bool = False,
) -> Decimal | None:
    """Mean of the student's section grades across the course's active sections.

    ``use_cache`` reads stored SectionGrade rows (display paths); otherwise
    every section is recomputed from content grades (eligibility, issuance).
    """
    sections = await _active_sections(db, course_id, group_id)
    if not sections:
        return None

    if use_cache:
        rows = (
            await db.execute(
                select(SectionGrade.grade_percent).where(
                    SectionGrade.student_id == student_id,
                    SectionGrade.section_id.in_([s.section_id for s in sections]),
                )
            )
        ).scalars().all()
        return compute_course_score(rows)

    grades = [await compute_section_grade(db, student_id, s.section_id) for s in sections]
    return compute_course_score(grades)


async def get_student_grades(
    db: AsyncSession,
    caller: CurrentUser,
    student_id: UUID,
    course_id: UUID,
    group_id: UUID | None = None,
) -> tuple[dict[UUID, Decimal | None], Decimal | None]:
    """Cached per-section grades plus the course grade, for display."""
    course = await get_course(db, course_id)
    if caller.id != student_id and not is_owner_or_admin(course, caller):
        raise UnauthorizedError("Cannot view another student's grades.")

    sections = await _active_sections(db, course_id, group_id)
    cached = {
        row.section_id: row.grade_percent
        for row in (
            await db.execute(
                select(SectionGrade).where(
                    SectionGrade.student_id == student_id,
                    SectionGrade.section_id.in_([s.section_id for s in sections]),
                )
            )
        ).scalars()
    }
    per_section = {s.section_id: cached.get(s.section_id) for s in sections}
    return per_section, compute_course_score(per_section.values())


# ---------------------------------------------------------------------------
# Content grade writes
# ---------------------------------------------------------------------------


async def _get_or_create_content_grade(
    db: AsyncSession, student_id: UUID, content: Content,
) -> ContentGrade:
    grade = await db.scalar(
        select(ContentGrade).where(
            ContentGrade.student_id == student_id,
            ContentGrade.content_id == content.content_id,
        )
    )
    if grade is None:
        grade = ContentGrade(
            student_id=student_id,
            content_id=content.content_id,
            section_id=content.section_id,
            course_id=content.course_id,
            status=ContentGradeStatus.NOT_DELIVERED,
            grade_percent=ZERO,
        )
        db.add(grade)
    return grade


async def _ensure_unlocked(db: AsyncSession, student_id: UUID, content: Content) -> None:
    decision = await resolve_section_access(db, student_id, content.section_id)
    if not decision.is_unlocked:
        raise UnauthorizedError(f"Section is locked ({decision.reason.value}).")


async def record_lecture_watched(
    db: AsyncSession,
    student_id: UUID,
    content_id: UUID,
    watched_pct: Decimal,
    *,
    threshold_pct: int = 95,
    watched_duration_secs: int | None = None,
) -> ContentGrade:
    content = await get_content(db, content_id)
    if content.content_type != ContentType.LECTURE:
        raise ContentTypeMismatchError(ContentType.LECTURE.value, content.content_type.value)
    await _ensure_unlocked(db, student_id, content)

    grade = await _get_or_create_content_grade(db, student_id, content)
    if watched_duration_secs is not None:
        grade.watched_duration_secs = max(grade.watched_duration_secs or 0, watched_duration_secs)
    # Watched is sticky: a later partial replay never lowers it
    if watched_pct >= threshold_pct and grade.status != ContentGradeStatus.WATCHED:
        grade.status = ContentGradeStatus.WATCHED
        grade.grade_percent = HUNDRED
    await db.flush()

    await _recompute_section_grade(db, student_id, content.section_id)
    return grade


async def record_submission(
    db: AsyncSession, student_id: UUID, content_id: UUID,
) -> ContentGrade:
    content = await get_content(db, content_id)
    if content.content_type not in _SUBMITTABLE:
        raise ContentTypeMismatchError("assignment or project", content.content_type.value)
    await _ensure_unlocked(db, student_id, content)

    grade = await _get_or_create_content_grade(db, student_id, content)
    if grade.status == ContentGradeStatus.SUBMITTED_UNGRADED:
        raise SubmissionNotAllowedError("Submission is awaiting grading.")
    if grade.status == ContentGradeStatus.GRADED:
        raise SubmissionNotAllowedError("Submission has already been graded.")

    grade.status = ContentGradeStatus.SUBMITTED_UNGRADED
    grade.grade_percent = SUBMITTED_UNGRADED_SCORE
    grade.submitted_at = datetime.now(timezone.utc)
    await db.flush()

    await _recompute_section_grade(db, student_id, content.section_id)
    return grade


async def grade_content(
    db: AsyncSession,
    caller: CurrentUser,
    content_id: UUID,
    student_id: UUID,
    grade_percent: Decimal,
    feedback: str | None = None,
) -> ContentGrade:
    content = await get_content(db, content_id)
    course = await get_course(db, content.course_id)
    ensure_course_owner(course, caller)
    if content.content_type not in _SUBMITTABLE:
        raise ContentTypeMismatchError("assignment or project", content.content_type.value)

    grade = await _get_or_create_content_grade(db, student_id, content)
    grade.status = ContentGradeStatus.GRADED
    grade.grade_percent = clamp_grade(grade_percent)
    grade.feedback = feedback
    grade.graded_by = caller.id
    grade.graded_at = datetime.now(timezone.utc)
    await db.flush()

    logger.info(
        "Content %s graded %s for student %s by %s",
        content_id, grade.grade_percent, student_id, caller.id,
    )
    await _recompute_section_grade(db, student_id, content.section_id)
    return grade


async def mark_content_complete(
    db: AsyncSession, student_id: UUID, content_id: UUID,
) -> ContentProgress:
    content = await get_content(db, content_id)
    await _ensure_unlocked(db, student_id, content)

    progress = await db.scalar(
        select(ContentProgress).where(
            ContentProgress.student_id == student_id,
            ContentProgress.content_id == content_id,
        )
    )
    if progress is None:
        progress = ContentProgress(
            student_id=student_id, content_id=content_id, group_id=content.group_id,
        )
        db.add(progress)
    if not progress.completed:
        progress.completed = True
        progress.completed_at = datetime.now(timezone.utc)
    await db.flush()

    await _recompute_section_grade(db, student_id, content.section_id)
    return progress
