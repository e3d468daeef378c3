"""Section domain Pydantic V2 schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SectionCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=300)
    is_free: bool = False
    # Positivity is enforced by the service: prices are rejected, never clamped
    price_cents: int | None = Field(default=None, description="Required for paid sections.")
    group_id: UUID | None = None
    sort_order: int = Field(default=0, ge=0)


class SectionUpdateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1, max_length=300)
    is_free: bool | None = None
    price_cents: int | None = None
    sort_order: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class SectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    section_id: UUID
    course_id: UUID
    group_id: UUID | None
    name: str
    is_free: bool
    price_cents: int
    currency: str
    sort_order: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
