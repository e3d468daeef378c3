"""Process-wide read-through cache for the admin settings singleton.

Reads may be up to ``ttl_secs`` stale. Writers call ``invalidate()`` after
updating the row so the next read in this process reloads it.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.models.admin_settings import ADMIN_SETTINGS_ID, AdminSettings


@dataclass(frozen=True)
class AdminSettingsSnapshot:
    passing_grade: int
    updated_at: datetime | None = None


class AdminSettingsCache:
    def __init__(
        self,
        ttl_secs: float = 300,
        default_passing_grade: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_secs
        self._default_passing_grade = default_passing_grade
        self._clock = clock
        self._snapshot: AdminSettingsSnapshot | None = None
        self._loaded_at = 0.0

    async def get(self, db: AsyncSession) -> AdminSettingsSnapshot:
        if self._snapshot is not None and self._clock() - self._loaded_at < self._ttl:
            return self._snapshot

        row = await db.get(AdminSettings, ADMIN_SETTINGS_ID)
        if row is None:
            row = AdminSettings(
                settings_id=ADMIN_SETTINGS_ID,
                passing_grade=self._default_passing_grade,
            )
            db.add(row)
            await db.flush()

        self._snapshot = AdminSettingsSnapshot(
            passing_grade=row.passing_grade, updated_at=row.updated_at,
        )
        self._loaded_at = self._clock()
        return self._snapshot

    def invalidate(self) -> None:
        self._snapshot = None
        self._loaded_at = 0.0


_cache: AdminSettingsCache | None = None


def get_admin_settings_cache() -> AdminSettingsCache:
    global _cache
    if _cache is None:
        settings = Settings()
        _cache = AdminSettingsCache(
            ttl_secs=settings.admin_settings_ttl_secs,
            default_passing_grade=settings.default_passing_grade,
        )
    return _cache
