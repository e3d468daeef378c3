"""Lookups and ownership checks shared by the course-service domains.

Pure business logic, no FastAPI imports.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    ContentNotFoundError,
    CourseNotFoundError,
    GroupNotFoundError,
    SectionNotFoundError,
    UnauthorizedError,
)
from app.models.content import Content
from app.models.course import Course
from app.models.group import Group
from app.models.section import Section
from shared.models.user import CurrentUser


def is_owner_or_admin(course: Course, caller: CurrentUser) -> bool:
    return caller.is_admin or course.instructor_id == caller.id


def ensure_course_owner(course: Course, caller: CurrentUser) -> None:
    if not is_owner_or_admin(course, caller):
        raise UnauthorizedError()


async def get_course(db: AsyncSession, course_id: UUID) -> Course:
    course = await db.get(Course, course_id)
    if course is None:
        raise CourseNotFoundError(str(course_id))
    return course


async def get_group(db: AsyncSession, group_id: UUID) -> Group:
    group = await db.get(Group, group_id)
    if group is None:
        raise GroupNotFoundError(str(group_id))
    return group


async def get_section(db: AsyncSession, section_id: UUID) -> Section:
    section = await db.get(Section, section_id)
    if section is None:
        raise SectionNotFoundError(str(section_id))
    return section


async def get_content(db: AsyncSession, content_id: UUID) -> Content:
    content = await db.get(Content, content_id)
    if content is None:
        raise ContentNotFoundError(str(content_id))
    return content


async def get_owned_course(db: AsyncSession, course_id: UUID, caller: CurrentUser) -> Course:
    course = await get_course(db, course_id)
    ensure_course_owner(course, caller)
    return course
