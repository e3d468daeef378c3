"""Admin settings router: HTTP layer only."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.admin_settings import controller
from app.admin_settings.cache import AdminSettingsCache
from app.admin_settings.schemas import AdminSettingsResponse, UpdateAdminSettingsRequest
from app.database import get_db
from app.dependencies import get_current_user, get_settings_cache
from shared.models.user import CurrentUser

router = APIRouter(prefix="/admin/settings", tags=["Admin Settings"])


@router.get(
    "",
    response_model=AdminSettingsResponse,
    summary="Read platform settings",
)
async def read_settings(
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
    cache: AdminSettingsCache = Depends(get_settings_cache),
) -> AdminSettingsResponse:
    return await controller.get_settings(db, cache)


@router.put(
    "",
    response_model=AdminSettingsResponse,
    summary="Update platform settings",
    description="Admin only. Takes effect immediately in this process; "
    "other processes pick it up within the cache TTL.",
)
async def update_settings(
    body: UpdateAdminSettingsRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    cache: AdminSettingsCache = Depends(get_settings_cache),
) -> AdminSettingsResponse:
    return await controller.update_settings(db, user, cache, body)
