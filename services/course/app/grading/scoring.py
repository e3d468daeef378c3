"""Grade arithmetic over a section's gradable content.

Every published content item becomes exactly one variant of ``GradableItem``.
Scoring matches on the variant, so adding a content type without a scoring
rule fails loudly instead of quietly contributing zero.

Section grade = mean of the per-type component means, counting only types the
section actually contains, rounded half-up to two decimals. A section with no
gradable content has no grade (``None``), which is not the same as 0.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import assert_never
from uuid import UUID

from app.exceptions import UnknownContentTypeError
from app.models.content import Content
from app.models.content_grade import ContentGrade
from app.models.enums import ContentGradeStatus, ContentType

ZERO = Decimal("0")
HUNDRED = Decimal("100")
SUBMITTED_UNGRADED_SCORE = Decimal("50")
_TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class LectureItem:
    content_id: UUID
    watched: bool = False
    marked_complete: bool = False


@dataclass(frozen=True)
class AssignmentItem:
    content_id: UUID
    status: ContentGradeStatus | None = None
    grade_percent: Decimal | None = None


@dataclass(frozen=True)
class ProjectItem:
    content_id: UUID
    status: ContentGradeStatus | None = None
    grade_percent: Decimal | None = None


GradableItem = LectureItem | AssignmentItem | ProjectItem


@dataclass(frozen=True)
class SectionScore:
    grade: Decimal | None
    lecture: Decimal | None = None
    assignment: Decimal | None = None
    project: Decimal | None = None


def round_grade(value: Decimal) -> Decimal:
    return value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def clamp_grade(value: Decimal | int | float) -> Decimal:
    grade = Decimal(str(value))
    return round_grade(min(HUNDRED, max(ZERO, grade)))


def mean(values: Iterable[Decimal]) -> Decimal | None:
    collected = list(values)
    if not collected:
        return None
    return sum(collected, ZERO) / len(collected)


def to_gradable_item(
    content: Content,
    grade: ContentGrade | None,
    marked_complete: bool = False,
) -> GradableItem:
    status = grade.status if grade is not None else None
    percent = grade.grade_percent if grade is not None else None
    match content.content_type:
        case ContentType.LECTURE:
            return LectureItem(
                content_id=content.content_id,
                watched=status == ContentGradeStatus.WATCHED,
                marked_complete=marked_complete,
            )
        case ContentType.ASSIGNMENT:
            return AssignmentItem(content.content_id, status, percent)
        case ContentType.PROJECT:
            return ProjectItem(content.content_id, status, percent)
        case _:
            raise UnknownContentTypeError(str(content.content_type))


def _submission_score(status: ContentGradeStatus | None, percent: Decimal | None) -> Decimal:
    if status == ContentGradeStatus.GRADED:
        return clamp_grade(percent if percent is not None else ZERO)
    if status == ContentGradeStatus.SUBMITTED_UNGRADED:
        return SUBMITTED_UNGRADED_SCORE
    return ZERO


def score_item(item: GradableItem) -> Decimal:
    match item:
        case LectureItem(watched=watched, marked_complete=done):
            return HUNDRED if watched or done else ZERO
        case AssignmentItem(status=status, grade_percent=percent):
            return _submission_score(status, percent)
        case ProjectItem(status=status, grade_percent=percent):
            return _submission_score(status, percent)
        case _:
            assert_never(item)


def compute_section_score(items: Iterable[GradableItem]) -> SectionScore:
    lectures: list[Decimal] = []
    assignments: list[Decimal] = []
    projects: list[Decimal] = []
    for item in items:
        match item:
            case LectureItem():
                lectures.append(score_item(item))
            case AssignmentItem():
                assignments.append(score_item(item))
            case ProjectItem():
                projects.append(score_item(item))
            case _:
                assert_never(item)

    lecture, assignment, project = mean(lectures), mean(assignments), mean(projects)
    components = [c for c in (lecture, assignment, project) if c is not None]
    overall = mean(components)
    return SectionScore(
        grade=round_grade(overall) if overall is not None else None,
        lecture=lecture,
        assignment=assignment,
        project=project,
    )


def compute_course_score(section_grades: Iterable[Decimal | None]) -> Decimal | None:
    """Mean of the sections that have a grade; ungraded sections are skipped."""
    overall = mean(g for g in section_grades if g is not None)
    return round_grade(overall) if overall is not None else None
