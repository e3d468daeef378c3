"""Section create/update with paid-price validation.

Pure business logic, no FastAPI imports.

A paid section needs a positive price, and the prices of a course's active
paid sections may not add up to more than the course cost. Free sections
always carry a price of 0.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import GroupNotFoundError, InvalidPriceError, SectionBudgetExceededError
from app.models.course import Course
from app.models.section import Section
from app.ownership import get_group, get_owned_course, get_section
from shared.models.user import CurrentUser

logger = logging.getLogger(__name__)


async def _allocated_elsewhere(
    db: AsyncSession, course_id: UUID, exclude_section_id: UUID | None = None,
) -> int:
    """Sum of active paid section prices in the course, minus one section."""
    stmt = select(func.coalesce(func.sum(Section.price_cents), 0)).where(
        Section.course_id == course_id,
        Section.is_active.is_(True),
        Section.is_free.is_(False),
    )
    if exclude_section_id is not None:
        stmt = stmt.where(Section.section_id != exclude_section_id)
    return int(await db.scalar(stmt) or 0)


def _checked_price(is_free: bool, price_cents: int | None) -> int:
    if is_free:
        return 0
    if price_cents is None or price_cents <= 0:
        raise InvalidPriceError(price_cents)
    return price_cents


async def _ensure_within_budget(
    db: AsyncSession, course: Course, price_cents: int, exclude_section_id: UUID | None = None,
) -> None:
    allocated = await _allocated_elsewhere(db, course.course_id, exclude_section_id)
    if allocated + price_cents > course.cost_cents:
        raise SectionBudgetExceededError(course.cost_cents, allocated, price_cents)


async def create_section(
    db: AsyncSession,
    caller: CurrentUser,
    course_id: UUID,
    *,
    name: str,
    is_free: bool = False,
    price_cents: int | None = None,
    group_id: UUID | None = None,
    sort_order: int = 0,
) -> Section:
    course = await get_owned_course(db, course_id, caller)
    if group_id is not None:
        group = await get_group(db, group_id)
        if group.course_id != course_id:
            raise GroupNotFoundError(str(group_id))

    price = _checked_price(is_free, price_cents)
    if price > 0:
        await _ensure_within_budget(db, course, price)

    section = Section(
        course_id=course_id,
        group_id=group_id,
        name=name,
        is_free=is_free,
        price_cents=price,
        currency=course.currency,
        sort_order=sort_order,
    )
    db.add(section)
    await db.flush()
    logger.info(
        "Section %s created in course %s (free=%s, price=%s)",
        section.section_id, course_id, is_free, price,
    )
    return section


async def update_section(
    db: AsyncSession,
    caller: CurrentUser,
    section_id: UUID,
    *,
    name: str | None = None,
    is_free: bool | None = None,
    price_cents: int | None = None,
    sort_order: int | None = None,
    is_active: bool | None = None,
) -> Section:
    """Partial update; omitted fields keep their current value.

    Price rules are checked against the section as it will be after the
    update, so turning a free section paid requires a price in the same call.
    """
    section = await get_section(db, section_id)
    course = await get_owned_course(db, section.course_id, caller)

    next_free = section.is_free if is_free is None else is_free
    next_active = section.is_active if is_active is None else is_active
    price_touched = is_free is not None or price_cents is not None
    if price_touched:
        price = _checked_price(
            next_free, section.price_cents if price_cents is None else price_cents,
        )
    else:
        price = section.price_cents

    if not next_free and next_active and (price_touched or is_active):
        await _ensure_within_budget(db, course, price, exclude_section_id=section.section_id)

    old_price = section.price_cents
    if name is not None:
        section.name = name
    if sort_order is not None:
        section.sort_order = sort_order
    section.is_free = next_free
    section.is_active = next_active
    section.price_cents = price
    await db.flush()

    if old_price != price:
        logger.info(
            "Section %s price changed %s -> %s by %s", section_id, old_price, price, caller.id,
        )
    return section
