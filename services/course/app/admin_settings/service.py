"""Admin settings service: pure business logic, no FastAPI imports."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.admin_settings.cache import AdminSettingsCache, AdminSettingsSnapshot
from app.exceptions import InvalidPassingGradeError, UnauthorizedError
from app.models.admin_settings import ADMIN_SETTINGS_ID, AdminSettings
from shared.models.user import CurrentUser

logger = logging.getLogger(__name__)


async def get_admin_settings(
    db: AsyncSession, cache: AdminSettingsCache,
) -> AdminSettingsSnapshot:
    return await cache.get(db)


async def update_admin_settings(
    db: AsyncSession,
    caller: CurrentUser,
    cache: AdminSettingsCache,
    *,
    passing_grade: int,
) -> AdminSettingsSnapshot:
    if not caller.is_admin:
        raise UnauthorizedError("Admin role required.")
    if not 0 <= passing_grade <= 100:
        raise InvalidPassingGradeError(passing_grade)

    row = await db.get(AdminSettings, ADMIN_SETTINGS_ID)
    if row is None:
        row = AdminSettings(settings_id=ADMIN_SETTINGS_ID)
        db.add(row)
    row.passing_grade = passing_grade
    row.updated_by = caller.id
    await db.flush()

    cache.invalidate()
    logger.info("Passing grade set to %s by %s", passing_grade, caller.id)
    return await cache.get(db)
