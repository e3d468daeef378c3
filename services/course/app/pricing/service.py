"""Course cost changes: propose, then confirm or cancel.

Pure business logic, no FastAPI imports.

A cost change that still covers every paid section's price applies at once.
A reduction below what paid sections already add up to is parked as a
PendingCostChange carrying the proposed per-section prices; nothing about
the course or its sections changes until the owner confirms it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    ChangeAlreadyResolvedError,
    CostBelowSectionMinimumError,
    CurrencyMismatchError,
    InvalidPriceError,
    PendingChangeExistsError,
    PendingChangeNotFoundError,
    StaleCostChangeError,
)
from app.models.course import Course
from app.models.enums import CostChangeStatus
from app.models.pending_cost_change import PendingCostChange
from app.models.price_change import PriceChangeRecord
from app.models.section import Section
from app.notifications.dispatcher import NotificationDispatcher
from app.notifications.outbox import enqueue
from app.ownership import get_course, get_owned_course
from app.pricing.scaling import MIN_PAID_PRICE, PricedSection, plan_rescale, total_paid
from shared.database.postgres import atomic
from shared.events.schemas import CostChangePending, CourseCostChanged
from shared.models.user import CurrentUser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CostChangeOutcome:
    """``applied`` is True when the course cost changed in this call."""

    course: Course
    applied: bool
    pending_change: PendingCostChange | None = None
    record: PriceChangeRecord | None = None


async def _paid_sections(db: AsyncSession, course_id: UUID) -> list[Section]:
    result = await db.execute(
        select(Section)
        .where(
            Section.course_id == course_id,
            Section.is_active.is_(True),
            Section.is_free.is_(False),
            Section.price_cents > 0,
        )
        .order_by(Section.sort_order, Section.created_at)
    )
    return list(result.scalars().all())


async def _open_change(db: AsyncSession, course_id: UUID) -> PendingCostChange | None:
    return await db.scalar(
        select(PendingCostChange).where(
            PendingCostChange.course_id == course_id,
            PendingCostChange.status == CostChangeStatus.PENDING,
        )
    )


def _record_price_change(
    db: AsyncSession,
    course: Course,
    old_cost: int,
    caller: CurrentUser,
    reason: str | None,
    change: PendingCostChange | None = None,
) -> PriceChangeRecord:
    record = PriceChangeRecord(
        course_id=course.course_id,
        old_cost_cents=old_cost,
        new_cost_cents=course.cost_cents,
        currency=course.currency,
        changed_by=caller.id,
        changed_by_role=caller.primary_role.value,
        reason=reason,
        sections_adjusted=change is not None,
        scale_factor=change.scale_factor if change is not None else None,
        affected_sections=list(change.affected_sections) if change is not None else None,
        pending_change_id=change.change_id if change is not None else None,
    )
    db.add(record)
    return record


async def propose_cost_change(
    db: AsyncSession,
    caller: CurrentUser,
    course_id: UUID,
    new_cost_cents: int,
    dispatcher: NotificationDispatcher,
    *,
    currency: str | None = None,
    reason: str | None = None,
    pending_ttl_days: int = 7,
) -> CostChangeOutcome:
    if new_cost_cents is None or new_cost_cents <= 0:
        raise InvalidPriceError(new_cost_cents)
    course = await get_owned_course(db, course_id, caller)
    if currency is not None and currency.upper() != course.currency:
        raise CurrencyMismatchError(course.currency, currency)

    existing = await _open_change(db, course_id)
    if existing is not None:
        raise PendingChangeExistsError(str(existing.change_id))

    old_cost = course.cost_cents
    if new_cost_cents == old_cost:
        return CostChangeOutcome(course=course, applied=True)

    sections = [
        PricedSection(s.section_id, s.name, s.price_cents)
        for s in await _paid_sections(db, course_id)
    ]
    paid_total = total_paid(sections)

    if paid_total <= new_cost_cents:
        course.cost_cents = new_cost_cents
        record = _record_price_change(db, course, old_cost, caller, reason)
        await db.flush()
        logger.info(
            "Course %s cost changed %s -> %s by %s",
            course_id, old_cost, new_cost_cents, caller.id,
        )
        enqueue(
            db,
            dispatcher,
            CourseCostChanged(
                course_id=course_id,
                old_cost_cents=old_cost,
                new_cost_cents=new_cost_cents,
                currency=course.currency,
                changed_by=caller.id,
            ),
        )
        return CostChangeOutcome(course=course, applied=True, record=record)

    if new_cost_cents < MIN_PAID_PRICE * len(sections):
        raise CostBelowSectionMinimumError(new_cost_cents, len(sections))
    plan = plan_rescale(sections, new_cost_cents)
    change = PendingCostChange(
        course_id=course_id,
        instructor_id=caller.id,
        old_cost_cents=old_cost,
        new_cost_cents=new_cost_cents,
        currency=course.currency,
        total_paid_sections_cents=paid_total,
        scale_factor=plan.scale_factor,
        affected_sections=[s.to_dict() for s in plan.sections],
        status=CostChangeStatus.PENDING,
        reason=reason,
        expires_at=datetime.now(timezone.utc) + timedelta(days=pending_ttl_days),
    )
    db.add(change)
    await db.flush()

    logger.info(
        "Course %s cost change %s -> %s pending confirmation (paid sections total %s)",
        course_id, old_cost, new_cost_cents, paid_total,
    )
    enqueue(
        db,
        dispatcher,
        CostChangePending(
            pending_change_id=change.change_id,
            course_id=course_id,
            old_cost_cents=old_cost,
            new_cost_cents=new_cost_cents,
            total_paid_sections_cents=paid_total,
        ),
    )
    return CostChangeOutcome(course=course, applied=False, pending_change=change)


async def _get_open_change(
    db: AsyncSession, change_id: UUID, caller: CurrentUser,
) -> tuple[PendingCostChange, Course]:
    change = await db.get(PendingCostChange, change_id)
    if change is None:
        raise PendingChangeNotFoundError(str(change_id))
    course = await get_owned_course(db, change.course_id, caller)
    if change.status != CostChangeStatus.PENDING:
        raise ChangeAlreadyResolvedError(str(change_id), change.status.value)
    return change, course


async def _ensure_plan_current(db: AsyncSession, change: PendingCostChange) -> None:
    """Raise StaleCostChangeError when paid sections changed after the proposal."""
    planned = {entry["section_id"]: entry for entry in change.affected_sections}
    current = {str(s.section_id): s for s in await _paid_sections(db, change.course_id)}
    if planned.keys() != current.keys():
        raise StaleCostChangeError(str(change.change_id))
    for section_id, section in current.items():
        if section.price_cents != planned[section_id]["old_price"]:
            raise StaleCostChangeError(str(change.change_id))


async def _apply_section_prices(db: AsyncSession, change: PendingCostChange) -> int:
    """Set every affected section to its proposed price; returns how many changed."""
    changed = 0
    for entry in change.affected_sections:
        section = await db.get(Section, UUID(entry["section_id"]))
        if section is None:
            continue
        # Rescale left this price unchanged
        if section.price_cents == entry["new_price"]:
            continue
        section.price_cents = entry["new_price"]
        changed += 1
    return changed


async def confirm_auto(
    db: AsyncSession,
    caller: CurrentUser,
    change_id: UUID,
    dispatcher: NotificationDispatcher,
) -> CostChangeOutcome:
    change, course = await _get_open_change(db, change_id, caller)
    await _ensure_plan_current(db, change)
    old_cost = course.cost_cents

    async with atomic(db):
        changed = await _apply_section_prices(db, change)
        course.cost_cents = change.new_cost_cents
        change.status = CostChangeStatus.APPROVED_AUTO
        change.confirmed_at = datetime.now(timezone.utc)
        change.resolved_by = caller.id
        record = _record_price_change(db, course, old_cost, caller, change.reason, change)
        await db.flush()

    logger.info(
        "Cost change %s confirmed for course %s: %s -> %s, %s section(s) rescaled",
        change_id, course.course_id, old_cost, course.cost_cents, changed,
    )
    enqueue(
        db,
        dispatcher,
        CourseCostChanged(
            course_id=course.course_id,
            old_cost_cents=old_cost,
            new_cost_cents=course.cost_cents,
            currency=course.currency,
            sections_adjusted=True,
            changed_by=caller.id,
        ),
    )
    return CostChangeOutcome(course=course, applied=True, pending_change=change, record=record)


async def cancel(
    db: AsyncSession, caller: CurrentUser, change_id: UUID,
) -> PendingCostChange:
    change, _course = await _get_open_change(db, change_id, caller)
    change.status = CostChangeStatus.CANCELLED
    change.resolved_by = caller.id
    await db.flush()
    logger.info("Cost change %s cancelled by %s", change_id, caller.id)
    return change


async def get_pending_change(
    db: AsyncSession, caller: CurrentUser, course_id: UUID,
) -> PendingCostChange | None:
    await get_owned_course(db, course_id, caller)
    return await _open_change(db, course_id)


async def list_price_history(
    db: AsyncSession,
    course_id: UUID,
    *,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[PriceChangeRecord], int]:
    await get_course(db, course_id)
    base = select(PriceChangeRecord).where(PriceChangeRecord.course_id == course_id)
    total = await db.scalar(select(func.count()).select_from(base.subquery())) or 0
    result = await db.execute(
        base.order_by(PriceChangeRecord.created_at.desc()).limit(limit).offset(offset)
    )
    return list(result.scalars().all()), total
