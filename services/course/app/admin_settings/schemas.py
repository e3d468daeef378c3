from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AdminSettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    passing_grade: int
    updated_at: datetime | None = None


class UpdateAdminSettingsRequest(BaseModel):
    # Range is checked by the service so the error matches other domain validation
    passing_grade: int
