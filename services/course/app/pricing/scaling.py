"""Proportional rescaling of section prices to a new course total.

All arithmetic is on integer subunits. Each new price is
``round_half_up(old * new_cost / total_paid)``; when rounding pushes the sum
above ``new_cost``, the rounded-up prices with the smallest fractional
remainder drop by one subunit until the sum fits. No paid section is scaled
below one subunit, so a cost lower than the paid-section count is refused.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

_SCALE_PLACES = Decimal("0.00000001")

# Smallest price a paid section may be rescaled to.
MIN_PAID_PRICE = 1


@dataclass(frozen=True)
class PricedSection:
    section_id: UUID
    name: str
    price_cents: int


@dataclass(frozen=True)
class ScaledSection:
    section_id: UUID
    section_name: str
    old_price: int
    new_price: int

    def to_dict(self) -> dict:
        return {
            "section_id": str(self.section_id),
            "section_name": self.section_name,
            "old_price": self.old_price,
            "new_price": self.new_price,
        }


@dataclass(frozen=True)
class ScalePlan:
    new_cost_cents: int
    total_paid_cents: int
    scale_factor: Decimal
    sections: tuple[ScaledSection, ...]

    @property
    def new_total(self) -> int:
        return sum(s.new_price for s in self.sections)


def total_paid(sections: Iterable[PricedSection]) -> int:
    return sum(s.price_cents for s in sections)


def scale_factor(new_cost_cents: int, total_paid_cents: int) -> Decimal:
    ratio = Decimal(new_cost_cents) / Decimal(total_paid_cents)
    return ratio.quantize(_SCALE_PLACES, rounding=ROUND_HALF_UP)


def plan_rescale(sections: Sequence[PricedSection], new_cost_cents: int) -> ScalePlan:
    total = total_paid(sections)
    if total <= 0:
        raise ValueError("Cannot rescale sections with no paid total")
    if new_cost_cents < MIN_PAID_PRICE * len(sections):
        raise ValueError("New cost cannot keep every paid section at the minimum price")

    new_prices: list[int] = []
    # (remainder numerator, position) for prices that were rounded up
    rounded_up: list[tuple[int, int]] = []
    for position, section in enumerate(sections):
        quotient, remainder = divmod(section.price_cents * new_cost_cents, total)
        if remainder and 2 * remainder >= total:
            new_prices.append(quotient + 1)
            rounded_up.append((remainder, position))
        else:
            new_prices.append(quotient)

    excess = sum(new_prices) - new_cost_cents
    for _remainder, position in sorted(rounded_up)[:max(excess, 0)]:
        new_prices[position] -= 1

    # A paid section never rounds down to free; the subunits lifted onto
    # the floor come off the largest prices, earliest position first.
    for position, price in enumerate(new_prices):
        if price < MIN_PAID_PRICE:
            new_prices[position] = MIN_PAID_PRICE
    excess = sum(new_prices) - new_cost_cents
    while excess > 0:
        position = min(range(len(new_prices)), key=lambda i: (-new_prices[i], i))
        new_prices[position] -= 1
        excess -= 1

    return ScalePlan(
        new_cost_cents=new_cost_cents,
        total_paid_cents=total,
        scale_factor=scale_factor(new_cost_cents, total),
        sections=tuple(
            ScaledSection(
                section_id=s.section_id,
                section_name=s.name,
                old_price=s.price_cents,
                new_price=price,
            )
            for s, price in zip(sections, new_prices)
        ),
    )
