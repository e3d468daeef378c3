from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from app.exceptions import (
    ChangeAlreadyResolvedError,
    CostBelowSectionMinimumError,
    CurrencyMismatchError,
    InvalidPriceError,
    PendingChangeExistsError,
    PendingChangeNotFoundError,
    StaleCostChangeError,
    UnauthorizedError,
)
from app.models.enums import CostChangeStatus
from app.models.price_change import PriceChangeRecord
from app.notifications.outbox import commit_and_publish
from app.pricing import service as pricing_service
from app.pricing.service import (
    cancel,
    confirm_auto,
    get_pending_change,
    list_price_history,
    propose_cost_change,
)
from app.sections.service import create_section, update_section


async def _course_with_sections(make_course, make_section, cost, *prices, free=()):
    course = await make_course(cost_cents=cost)
    sections = [
        await make_section(course, name=f"Part {i}", price_cents=p, sort_order=i)
        for i, p in enumerate(prices)
    ]
    for name in free:
        await make_section(course, name=name, is_free=True, price_cents=0, sort_order=99)
    return course, sections


@pytest.mark.asyncio
async def test_increase_above_paid_total_applies_immediately(
    db_session, make_course, make_section, instructor, dispatcher,
) -> None:
    course, sections = await _course_with_sections(make_course, make_section, 1000, 300, 300)

    outcome = await propose_cost_change(db_session, instructor, course.course_id, 800, dispatcher)

    assert outcome.applied is True
    assert outcome.pending_change is None
    assert course.cost_cents == 800
    assert [s.price_cents for s in sections] == [300, 300]
    assert outcome.record.old_cost_cents == 1000
    assert outcome.record.new_cost_cents == 800
    assert outcome.record.sections_adjusted is False
    await commit_and_publish(db_session)
    assert dispatcher.types() == ["course.cost_changed"]


@pytest.mark.asyncio
async def test_reduction_below_paid_total_waits_for_confirmation(
    db_session, make_course, make_section, instructor, dispatcher,
) -> None:
    course, sections = await _course_with_sections(
        make_course, make_section, 400, 200, 200, free=("Welcome",),
    )

    outcome = await propose_cost_change(
        db_session, instructor, course.course_id, 240, dispatcher, reason="spring sale",
    )

    change = outcome.pending_change
    assert outcome.applied is False
    assert course.cost_cents == 400
    assert [s.price_cents for s in sections] == [200, 200]
    assert change.status == CostChangeStatus.PENDING
    assert change.total_paid_sections_cents == 400
    assert change.scale_factor == Decimal("0.6")
    assert [(a["old_price"], a["new_price"]) for a in change.affected_sections] == [(200, 120), (200, 120)]
    await commit_and_publish(db_session)
    assert dispatcher.types() == ["course.cost_change_pending"]
    assert await get_pending_change(db_session, instructor, course.course_id) is change


@pytest.mark.asyncio
async def test_confirm_rescales_sections_and_records_history(
    db_session, make_course, make_section, instructor, dispatcher,
) -> None:
    course, sections = await _course_with_sections(make_course, make_section, 1000, 333, 333, 334)
    proposed = await propose_cost_change(db_session, instructor, course.course_id, 500, dispatcher)

    outcome = await confirm_auto(db_session, instructor, proposed.pending_change.change_id, dispatcher)

    assert outcome.applied is True
    assert course.cost_cents == 500
    assert [s.price_cents for s in sections] == [166, 167, 167]
    assert outcome.pending_change.status == CostChangeStatus.APPROVED_AUTO
    assert outcome.pending_change.resolved_by == instructor.id
    assert outcome.record.sections_adjusted is True
    assert outcome.record.pending_change_id == proposed.pending_change.change_id
    await commit_and_publish(db_session)
    assert dispatcher.types() == ["course.cost_change_pending", "course.cost_changed"]

    with pytest.raises(ChangeAlreadyResolvedError):
        await confirm_auto(db_session, instructor, proposed.pending_change.change_id, dispatcher)


@pytest.mark.asyncio
async def test_cancel_leaves_prices_untouched(
    db_session, make_course, make_section, instructor, dispatcher,
) -> None:
    course, sections = await _course_with_sections(make_course, make_section, 400, 200, 200)
    proposed = await propose_cost_change(db_session, instructor, course.course_id, 100, dispatcher)

    cancelled = await cancel(db_session, instructor, proposed.pending_change.change_id)

    assert cancelled.status == CostChangeStatus.CANCELLED
    assert course.cost_cents == 400
    assert [s.price_cents for s in sections] == [200, 200]
    assert await get_pending_change(db_session, instructor, course.course_id) is None

    # A new proposal is allowed once the previous one is resolved
    again = await propose_cost_change(db_session, instructor, course.course_id, 300, dispatcher)
    assert again.pending_change is not None


@pytest.mark.asyncio
async def test_only_one_open_change_per_course(
    db_session, make_course, make_section, instructor, dispatcher,
) -> None:
    course, _ = await _course_with_sections(make_course, make_section, 400, 200, 200)
    await propose_cost_change(db_session, instructor, course.course_id, 100, dispatcher)

    with pytest.raises(PendingChangeExistsError):
        await propose_cost_change(db_session, instructor, course.course_id, 900, dispatcher)


@pytest.mark.asyncio
async def test_same_cost_is_a_no_op(
    db_session, make_course, make_section, instructor, dispatcher,
) -> None:
    course, _ = await _course_with_sections(make_course, make_section, 400, 200)

    outcome = await propose_cost_change(db_session, instructor, course.course_id, 400, dispatcher)

    assert outcome.applied is True
    assert outcome.record is None
    assert dispatcher.events == []


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_cost", [0, -100])
async def test_non_positive_cost_is_rejected(db_session, make_course, instructor, dispatcher, bad_cost) -> None:
    course = await make_course()
    with pytest.raises(InvalidPriceError):
        await propose_cost_change(db_session, instructor, course.course_id, bad_cost, dispatcher)


@pytest.mark.asyncio
async def test_currency_must_match_course(db_session, make_course, instructor, dispatcher) -> None:
    course = await make_course(currency="USD")
    with pytest.raises(CurrencyMismatchError):
        await propose_cost_change(
            db_session, instructor, course.course_id, 500, dispatcher, currency="EUR",
        )


@pytest.mark.asyncio
async def test_non_owner_cannot_change_or_confirm(
    db_session, make_course, make_section, instructor, outsider, admin, dispatcher,
) -> None:
    course, _ = await _course_with_sections(make_course, make_section, 400, 200, 200)

    with pytest.raises(UnauthorizedError):
        await propose_cost_change(db_session, outsider, course.course_id, 100, dispatcher)

    proposed = await propose_cost_change(db_session, instructor, course.course_id, 100, dispatcher)
    with pytest.raises(UnauthorizedError):
        await confirm_auto(db_session, outsider, proposed.pending_change.change_id, dispatcher)

    # Admins act on any course
    outcome = await confirm_auto(db_session, admin, proposed.pending_change.change_id, dispatcher)
    assert outcome.record.changed_by_role == "admin"


@pytest.mark.asyncio
async def test_unknown_change_id(db_session, instructor, dispatcher) -> None:
    with pytest.raises(PendingChangeNotFoundError):
        await confirm_auto(db_session, instructor, uuid4(), dispatcher)


@pytest.mark.asyncio
async def test_failed_confirm_leaves_everything_pending(
    db_session, make_course, make_section, instructor, dispatcher, monkeypatch,
) -> None:
    course, sections = await _course_with_sections(make_course, make_section, 400, 200, 200)
    proposed = await propose_cost_change(db_session, instructor, course.course_id, 100, dispatcher)
    change_id = proposed.pending_change.change_id

    def _boom(*_args, **_kwargs):
        raise RuntimeError("audit log unavailable")

    monkeypatch.setattr(pricing_service, "_record_price_change", _boom)
    with pytest.raises(RuntimeError):
        await confirm_auto(db_session, instructor, change_id, dispatcher)

    for obj in (course, proposed.pending_change, *sections):
        await db_session.refresh(obj)
    assert course.cost_cents == 400
    assert [s.price_cents for s in sections] == [200, 200]
    assert proposed.pending_change.status == CostChangeStatus.PENDING
    assert (await db_session.execute(select(PriceChangeRecord))).scalars().all() == []
    await commit_and_publish(db_session)
    assert dispatcher.types() == ["course.cost_change_pending"]


@pytest.mark.asyncio
async def test_price_history_is_paginated(
    db_session, make_course, make_section, instructor, dispatcher,
) -> None:
    course, _ = await _course_with_sections(make_course, make_section, 1000, 100)
    for cost in (900, 800, 700):
        await propose_cost_change(db_session, instructor, course.course_id, cost, dispatcher)

    records, total = await list_price_history(db_session, course.course_id, limit=2, offset=0)

    assert total == 3
    assert len(records) == 2
    assert {r.new_cost_cents for r in records} <= {900, 800, 700}


@pytest.mark.asyncio
async def test_scenarios_from_proposal_to_confirm_or_cancel(
    db_session, make_course, make_section, instructor, dispatcher,
) -> None:
    # Increase over a paid total of 900 applies at once
    raised, _ = await _course_with_sections(make_course, make_section, 1000, 400, 500)
    outcome = await propose_cost_change(db_session, instructor, raised.course_id, 1200, dispatcher)
    assert outcome.applied is True
    assert raised.cost_cents == 1200
    assert await get_pending_change(db_session, instructor, raised.course_id) is None

    # Reduction below a paid total of 1000 waits, then confirm rescales
    course, sections = await _course_with_sections(make_course, make_section, 1000, 400, 600)
    proposed = await propose_cost_change(db_session, instructor, course.course_id, 600, dispatcher)
    change = proposed.pending_change
    assert change.scale_factor == Decimal("0.6")
    assert change.affected_sections[0]["new_price"] == 240
    assert course.cost_cents == 1000

    await confirm_auto(db_session, instructor, change.change_id, dispatcher)
    assert course.cost_cents == 600
    assert sections[0].price_cents == 240
    assert sum(s.price_cents for s in sections) <= 600
    assert change.status == CostChangeStatus.APPROVED_AUTO

    # A cancelled change can be neither confirmed nor cancelled again
    other, other_sections = await _course_with_sections(make_course, make_section, 1000, 400, 600)
    pending = (
        await propose_cost_change(db_session, instructor, other.course_id, 600, dispatcher)
    ).pending_change
    await cancel(db_session, instructor, pending.change_id)
    assert other.cost_cents == 1000
    assert [s.price_cents for s in other_sections] == [400, 600]
    with pytest.raises(ChangeAlreadyResolvedError):
        await confirm_auto(db_session, instructor, pending.change_id, dispatcher)
    with pytest.raises(ChangeAlreadyResolvedError):
        await cancel(db_session, instructor, pending.change_id)


@pytest.mark.asyncio
async def test_confirm_refuses_plan_after_section_reprice(
    db_session, make_course, make_section, instructor, dispatcher,
) -> None:
    course, sections = await _course_with_sections(make_course, make_section, 400, 200, 200)
    proposed = await propose_cost_change(db_session, instructor, course.course_id, 240, dispatcher)
    change = proposed.pending_change

    await update_section(db_session, instructor, sections[0].section_id, price_cents=150)

    with pytest.raises(StaleCostChangeError):
        await confirm_auto(db_session, instructor, change.change_id, dispatcher)
    assert change.status == CostChangeStatus.PENDING
    assert course.cost_cents == 400
    assert [s.price_cents for s in sections] == [150, 200]

    # Cancelling and proposing again plans against the new prices
    await cancel(db_session, instructor, change.change_id)
    again = await propose_cost_change(db_session, instructor, course.course_id, 175, dispatcher)
    assert [a["old_price"] for a in again.pending_change.affected_sections] == [150, 200]
    outcome = await confirm_auto(db_session, instructor, again.pending_change.change_id, dispatcher)
    assert sum(s.price_cents for s in sections) <= outcome.course.cost_cents


@pytest.mark.asyncio
async def test_confirm_refuses_plan_after_section_added_or_freed(
    db_session, make_course, make_section, instructor, dispatcher,
) -> None:
    course, sections = await _course_with_sections(make_course, make_section, 1000, 300, 300)
    added = await propose_cost_change(db_session, instructor, course.course_id, 500, dispatcher)
    await create_section(db_session, instructor, course.course_id, name="Bonus", price_cents=100)

    with pytest.raises(StaleCostChangeError):
        await confirm_auto(db_session, instructor, added.pending_change.change_id, dispatcher)

    await cancel(db_session, instructor, added.pending_change.change_id)
    freed = await propose_cost_change(db_session, instructor, course.course_id, 400, dispatcher)
    await update_section(db_session, instructor, sections[1].section_id, is_free=True)

    with pytest.raises(StaleCostChangeError):
        await confirm_auto(db_session, instructor, freed.pending_change.change_id, dispatcher)


@pytest.mark.asyncio
async def test_reduction_never_rescales_a_paid_section_to_free(
    db_session, make_course, make_section, instructor, dispatcher,
) -> None:
    course, sections = await _course_with_sections(make_course, make_section, 1000, 1, 999)

    proposed = await propose_cost_change(db_session, instructor, course.course_id, 100, dispatcher)
    assert [a["new_price"] for a in proposed.pending_change.affected_sections] == [1, 99]

    await confirm_auto(db_session, instructor, proposed.pending_change.change_id, dispatcher)
    assert [s.price_cents for s in sections] == [1, 99]
    assert all(s.is_paid for s in sections)


@pytest.mark.asyncio
async def test_cost_below_paid_section_count_is_rejected(
    db_session, make_course, make_section, instructor, dispatcher,
) -> None:
    course, _ = await _course_with_sections(make_course, make_section, 1000, 300, 300, 400)

    with pytest.raises(CostBelowSectionMinimumError):
        await propose_cost_change(db_session, instructor, course.course_id, 2, dispatcher)
    assert await get_pending_change(db_session, instructor, course.course_id) is None
