"""Pricing domain Pydantic V2 schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import CostChangeStatus


class ProposeCostChangeRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    # Positivity is enforced by the service: prices are rejected, never clamped
    new_cost_cents: int = Field(description="New course total in currency subunits.")
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    reason: str | None = Field(default=None, max_length=500)


class AffectedSection(BaseModel):
    section_id: UUID
    section_name: str
    old_price: int
    new_price: int


class PendingChangeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    change_id: UUID
    course_id: UUID
    old_cost_cents: int
    new_cost_cents: int
    currency: str
    total_paid_sections_cents: int
    scale_factor: Decimal
    affected_sections: list[AffectedSection]
    status: CostChangeStatus
    reason: str | None = None
    confirmed_at: datetime | None = None
    expires_at: datetime
    created_at: datetime


class PriceChangeRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    record_id: UUID
    course_id: UUID
    old_cost_cents: int
    new_cost_cents: int
    currency: str
    changed_by: UUID
    changed_by_role: str
    reason: str | None = None
    sections_adjusted: bool
    scale_factor: Decimal | None = None
    affected_sections: list[AffectedSection] | None = None
    created_at: datetime


class CostChangeResponse(BaseModel):
    """Result of proposing or confirming a cost change.

    ``applied`` is false when the change is waiting for confirmation; the
    proposed section prices are then in ``pending_change``.
    """

    applied: bool
    course_id: UUID
    cost_cents: int
    currency: str
    pending_change: PendingChangeResponse | None = None
    record: PriceChangeRecordResponse | None = None
