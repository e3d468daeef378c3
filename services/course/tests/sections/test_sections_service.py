from uuid import uuid4

import pytest

from app.exceptions import (
    GroupNotFoundError,
    InvalidPriceError,
    SectionBudgetExceededError,
    SectionNotFoundError,
    UnauthorizedError,
)
from app.sections.service import create_section, update_section


@pytest.mark.asyncio
async def test_paid_sections_fill_the_course_budget(db_session, make_course, instructor) -> None:
    course = await make_course(cost_cents=1000, currency="EUR")

    first = await create_section(
        db_session, instructor, course.course_id, name="Part 1", price_cents=600,
    )
    second = await create_section(
        db_session, instructor, course.course_id, name="Part 2", price_cents=400,
    )

    assert (first.price_cents, second.price_cents) == (600, 400)
    assert first.currency == "EUR"
    assert first.is_paid

    with pytest.raises(SectionBudgetExceededError) as excinfo:
        await create_section(
            db_session, instructor, course.course_id, name="Part 3", price_cents=1,
        )
    assert excinfo.value.allocated == 1000
    assert excinfo.value.course_cost == 1000


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_price", [None, 0, -5])
async def test_paid_section_needs_positive_price(
    db_session, make_course, instructor, bad_price,
) -> None:
    course = await make_course()

    with pytest.raises(InvalidPriceError):
        await create_section(
            db_session, instructor, course.course_id, name="Paid", price_cents=bad_price,
        )


@pytest.mark.asyncio
async def test_free_section_is_stored_at_zero(db_session, make_course, instructor) -> None:
    course = await make_course(cost_cents=100)

    section = await create_section(
        db_session, instructor, course.course_id, name="Welcome", is_free=True, price_cents=5000,
    )

    assert section.price_cents == 0
    assert section.is_unlocked_by_default


@pytest.mark.asyncio
async def test_group_must_belong_to_the_course(
    db_session, make_course, make_group, instructor,
) -> None:
    course = await make_course()
    other = await make_course(title="Other")
    foreign_group = await make_group(other)

    with pytest.raises(GroupNotFoundError):
        await create_section(
            db_session, instructor, course.course_id, name="Part", is_free=True,
            group_id=foreign_group.group_id,
        )

    group = await make_group(course)
    section = await create_section(
        db_session, instructor, course.course_id, name="Part", is_free=True,
        group_id=group.group_id,
    )
    assert section.group_id == group.group_id


@pytest.mark.asyncio
async def test_only_owner_or_admin_creates_sections(
    db_session, make_course, outsider, admin,
) -> None:
    course = await make_course()

    with pytest.raises(UnauthorizedError):
        await create_section(db_session, outsider, course.course_id, name="Part", is_free=True)

    section = await create_section(db_session, admin, course.course_id, name="Part", is_free=True)
    assert section.course_id == course.course_id


@pytest.mark.asyncio
async def test_repricing_excludes_the_section_itself(
    db_session, make_course, make_section, instructor,
) -> None:
    course = await make_course(cost_cents=1000)
    target = await make_section(course, name="A", price_cents=700)
    await make_section(course, name="B", price_cents=300)

    # The section's own current price is not counted against it
    updated = await update_section(db_session, instructor, target.section_id, price_cents=650)
    assert updated.price_cents == 650

    with pytest.raises(SectionBudgetExceededError):
        await update_section(db_session, instructor, target.section_id, price_cents=701)
    assert target.price_cents == 650

    with pytest.raises(InvalidPriceError):
        await update_section(db_session, instructor, target.section_id, price_cents=0)


@pytest.mark.asyncio
async def test_free_and_paid_toggle(db_session, make_course, make_section, instructor) -> None:
    course = await make_course(cost_cents=500)
    section = await make_section(course, name="Intro", is_free=True, price_cents=0)

    # Turning a section paid needs a price in the same update
    with pytest.raises(InvalidPriceError):
        await update_section(db_session, instructor, section.section_id, is_free=False)

    await update_section(db_session, instructor, section.section_id, is_free=False, price_cents=500)
    assert section.is_paid

    await update_section(db_session, instructor, section.section_id, is_free=True)
    assert section.price_cents == 0
    assert section.is_unlocked_by_default


@pytest.mark.asyncio
async def test_reactivating_counts_against_the_budget(
    db_session, make_course, make_section, instructor,
) -> None:
    course = await make_course(cost_cents=1000)
    retired = await make_section(course, name="Old", price_cents=600, is_active=False)
    await make_section(course, name="New", price_cents=600)

    with pytest.raises(SectionBudgetExceededError):
        await update_section(db_session, instructor, retired.section_id, is_active=True)
    assert retired.is_active is False

    renamed = await update_section(db_session, instructor, retired.section_id, name="Archive")
    assert renamed.name == "Archive"


@pytest.mark.asyncio
async def test_unknown_section(db_session, instructor) -> None:
    with pytest.raises(SectionNotFoundError):
        await update_section(db_session, instructor, uuid4(), name="x")
