"""Access service: batch loading around the pure resolver.

Each loader issues a single query; resolution itself does no I/O, so a full
gradebook (students x sections) costs a fixed number of round trips.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.access.resolver import AccessDecision, resolve_access
from app.exceptions import UnauthorizedError
from app.models.enrollment import Enrollment
from app.models.section import Section
from app.models.section_payment import SectionPayment
from app.ownership import ensure_course_owner, get_course, get_section, is_owner_or_admin
from shared.models.user import CurrentUser

PaymentKey = tuple[UUID, UUID]


async def load_latest_payments(
    db: AsyncSession,
    student_ids: Iterable[UUID],
    section_ids: Iterable[UUID],
) -> dict[PaymentKey, SectionPayment]:
    """Latest payment per (student_id, section_id)."""
    students = list(set(student_ids))
    sections = list(set(section_ids))
    if not students or not sections:
        return {}

    result = await db.execute(
        select(SectionPayment)
        .where(
            SectionPayment.student_id.in_(students),
            SectionPayment.section_id.in_(sections),
        )
        .order_by(SectionPayment.submitted_at.desc())
    )
    latest: dict[PaymentKey, SectionPayment] = {}
    for payment in result.scalars():
        latest.setdefault((payment.student_id, payment.section_id), payment)
    return latest


async def load_enrollments(
    db: AsyncSession,
    student_ids: Iterable[UUID],
    course_id: UUID,
) -> dict[UUID, Enrollment]:
    students = list(set(student_ids))
    if not students:
        return {}
    result = await db.execute(
        select(Enrollment).where(
            Enrollment.course_id == course_id,
            Enrollment.student_id.in_(students),
        )
    )
    return {enrollment.student_id: enrollment for enrollment in result.scalars()}


async def _course_sections(
    db: AsyncSession, course_id: UUID, group_id: UUID | None = None,
) -> list[Section]:
    stmt = select(Section).where(Section.course_id == course_id, Section.is_active.is_(True))
    if group_id is not None:
        stmt = stmt.where(Section.group_id == group_id)
    result = await db.execute(stmt.order_by(Section.sort_order, Section.created_at))
    return list(result.scalars().all())


async def resolve_section_access(
    db: AsyncSession, student_id: UUID, section_id: UUID,
) -> AccessDecision:
    section = await get_section(db, section_id)
    enrollments = await load_enrollments(db, [student_id], section.course_id)
    payments = await load_latest_payments(db, [student_id], [section_id])
    return resolve_access(
        section, enrollments.get(student_id), payments.get((student_id, section_id)),
    )


async def resolve_course_access(
    db: AsyncSession,
    student_id: UUID,
    course_id: UUID,
    caller: CurrentUser,
    group_id: UUID | None = None,
) -> list[AccessDecision]:
    course = await get_course(db, course_id)
    if caller.id != student_id and not is_owner_or_admin(course, caller):
        raise UnauthorizedError("Cannot view another student's access.")

    sections = await _course_sections(db, course_id, group_id)
    enrollments = await load_enrollments(db, [student_id], course_id)
    payments = await load_latest_payments(db, [student_id], [s.section_id for s in sections])
    enrollment = enrollments.get(student_id)
    return [
        resolve_access(section, enrollment, payments.get((student_id, section.section_id)))
        for section in sections
    ]


async def resolve_gradebook_access(
    db: AsyncSession,
    course_id: UUID,
    caller: CurrentUser,
    student_ids: list[UUID] | None = None,
    group_id: UUID | None = None,
) -> dict[UUID, list[AccessDecision]]:
    """Access matrix for a course; defaults to every enrolled student."""
    course = await get_course(db, course_id)
    ensure_course_owner(course, caller)

    if student_ids is None:
        stmt = select(Enrollment.student_id).where(Enrollment.course_id == course_id)
        if group_id is not None:
            stmt = stmt.where(Enrollment.group_id == group_id)
        student_ids = list((await db.execute(stmt)).scalars().all())

    sections = await _course_sections(db, course_id, group_id)
    enrollments = await load_enrollments(db, student_ids, course_id)
    payments = await load_latest_payments(db, student_ids, [s.section_id for s in sections])

    return {
        student_id: [
            resolve_access(
                section,
                enrollments.get(student_id),
                payments.get((student_id, section.section_id)),
            )
            for section in sections
        ]
        for student_id in student_ids
    }
