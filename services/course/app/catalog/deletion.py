"""Children-first delete plans for the course hierarchy.

Course > Group > Section > Content, with grades, payments, enrollments and
certificates hanging off each level. A plan lists, in execution order, one
bulk DELETE per table restricted to the rows under the target. Building a
plan touches no database.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import ColumnElement, Delete, delete, select

from app.models.certificate import Certificate
from app.models.certificate_request import CertificateRequest
from app.models.content import Content
from app.models.content_grade import ContentGrade
from app.models.content_progress import ContentProgress
from app.models.course import Course
from app.models.enrollment import Enrollment, EnrollmentSection
from app.models.group import Group
from app.models.pending_cost_change import PendingCostChange
from app.models.price_change import PriceChangeRecord
from app.models.quiz import Quiz
from app.models.quiz_attempt import QuizAttempt
from app.models.section import Section
from app.models.section_grade import SectionGrade
from app.models.section_payment import SectionPayment


class DeletionScope(str, enum.Enum):
    COURSE = "course"
    GROUP = "group"
    SECTION = "section"
    CONTENT = "content"


@dataclass(frozen=True)
class DeletionStep:
    label: str
    statement: Delete


def _step(label: str, model: type, criteria: ColumnElement[bool]) -> DeletionStep:
    return DeletionStep(label=label, statement=delete(model).where(criteria))


def _course_plan(course_id: UUID) -> list[DeletionStep]:
    quizzes = select(Quiz.quiz_id).where(Quiz.course_id == course_id)
    contents = select(Content.content_id).where(Content.course_id == course_id)
    sections = select(Section.section_id).where(Section.course_id == course_id)
    enrollments = select(Enrollment.enrollment_id).where(Enrollment.course_id == course_id)
    return [
        _step("certificates", Certificate, Certificate.course_id == course_id),
        _step("certificate_requests", CertificateRequest, CertificateRequest.course_id == course_id),
        _step("quiz_attempts", QuizAttempt, QuizAttempt.quiz_id.in_(quizzes)),
        _step("quizzes", Quiz, Quiz.course_id == course_id),
        _step("content_progress", ContentProgress, ContentProgress.content_id.in_(contents)),
        _step("content_grades", ContentGrade, ContentGrade.course_id == course_id),
        _step("section_grades", SectionGrade, SectionGrade.section_id.in_(sections)),
        _step("section_payments", SectionPayment, SectionPayment.course_id == course_id),
        _step("enrollment_sections", EnrollmentSection, EnrollmentSection.enrollment_id.in_(enrollments)),
        _step("enrollments", Enrollment, Enrollment.course_id == course_id),
        _step("contents", Content, Content.course_id == course_id),
        _step("sections", Section, Section.course_id == course_id),
        _step("groups", Group, Group.course_id == course_id),
        _step("pending_cost_changes", PendingCostChange, PendingCostChange.course_id == course_id),
        _step("price_changes", PriceChangeRecord, PriceChangeRecord.course_id == course_id),
        _step("courses", Course, Course.course_id == course_id),
    ]


def _group_plan(group_id: UUID) -> list[DeletionStep]:
    quizzes = select(Quiz.quiz_id).where(Quiz.group_id == group_id)
    contents = select(Content.content_id).where(Content.group_id == group_id)
    sections = select(Section.section_id).where(Section.group_id == group_id)
    enrollments = select(Enrollment.enrollment_id).where(Enrollment.group_id == group_id)
    return [
        _step("certificates", Certificate, Certificate.group_id == group_id),
        _step("certificate_requests", CertificateRequest, CertificateRequest.group_id == group_id),
        _step("quiz_attempts", QuizAttempt, QuizAttempt.quiz_id.in_(quizzes)),
        _step("quizzes", Quiz, Quiz.group_id == group_id),
        _step("content_progress", ContentProgress, ContentProgress.content_id.in_(contents)),
        _step("content_grades", ContentGrade, ContentGrade.content_id.in_(contents)),
        _step("section_grades", SectionGrade, SectionGrade.section_id.in_(sections)),
        _step("section_payments", SectionPayment, SectionPayment.section_id.in_(sections)),
        _step(
            "enrollment_sections",
            EnrollmentSection,
            EnrollmentSection.section_id.in_(sections)
            | EnrollmentSection.enrollment_id.in_(enrollments),
        ),
        _step("enrollments", Enrollment, Enrollment.group_id == group_id),
        _step("contents", Content, Content.group_id == group_id),
        _step("sections", Section, Section.group_id == group_id),
        _step("groups", Group, Group.group_id == group_id),
    ]


def _section_plan(section_id: UUID) -> list[DeletionStep]:
    quizzes = select(Quiz.quiz_id).where(Quiz.section_id == section_id)
    contents = select(Content.content_id).where(Content.section_id == section_id)
    return [
        _step("quiz_attempts", QuizAttempt, QuizAttempt.quiz_id.in_(quizzes)),
        _step("quizzes", Quiz, Quiz.section_id == section_id),
        _step("content_progress", ContentProgress, ContentProgress.content_id.in_(contents)),
        _step("content_grades", ContentGrade, ContentGrade.section_id == section_id),
        _step("section_grades", SectionGrade, SectionGrade.section_id == section_id),
        _step("section_payments", SectionPayment, SectionPayment.section_id == section_id),
        _step("enrollment_sections", EnrollmentSection, EnrollmentSection.section_id == section_id),
        _step("contents", Content, Content.section_id == section_id),
        _step("sections", Section, Section.section_id == section_id),
    ]


def _content_plan(content_id: UUID) -> list[DeletionStep]:
    return [
        _step("content_progress", ContentProgress, ContentProgress.content_id == content_id),
        _step("content_grades", ContentGrade, ContentGrade.content_id == content_id),
        _step("contents", Content, Content.content_id == content_id),
    ]


def build_deletion_plan(scope: DeletionScope, target_id: UUID) -> list[DeletionStep]:
    match scope:
        case DeletionScope.COURSE:
            return _course_plan(target_id)
        case DeletionScope.GROUP:
            return _group_plan(target_id)
        case DeletionScope.SECTION:
            return _section_plan(target_id)
        case DeletionScope.CONTENT:
            return _content_plan(target_id)
    raise ValueError(f"Unknown deletion scope: {scope}")
