from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel

from app.catalog.deletion import DeletionScope


class DeletionPlanResponse(BaseModel):
    scope: DeletionScope
    target_id: UUID
    steps: list[str]


class DeletionReportResponse(BaseModel):
    scope: DeletionScope
    target_id: UUID
    removed: dict[str, int]
