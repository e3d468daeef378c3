"""Admin settings controller: maps domain exceptions to HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.admin_settings import service
from app.admin_settings.cache import AdminSettingsCache
from app.admin_settings.schemas import AdminSettingsResponse, UpdateAdminSettingsRequest
from app.exceptions import UnauthorizedError, ValidationError
from shared.models.user import CurrentUser


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, UnauthorizedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.detail)
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


async def get_settings(db: AsyncSession, cache: AdminSettingsCache) -> AdminSettingsResponse:
    snapshot = await service.get_admin_settings(db, cache)
    return AdminSettingsResponse.model_validate(snapshot)


async def update_settings(
    db: AsyncSession,
    caller: CurrentUser,
    cache: AdminSettingsCache,
    body: UpdateAdminSettingsRequest,
) -> AdminSettingsResponse:
    try:
        snapshot = await service.update_admin_settings(
            db, caller, cache, passing_grade=body.passing_grade,
        )
        return AdminSettingsResponse.model_validate(snapshot)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
