import pytest

from app.admin_settings.cache import AdminSettingsCache
from app.admin_settings.service import get_admin_settings, update_admin_settings
from app.exceptions import InvalidPassingGradeError, UnauthorizedError
from app.models.admin_settings import ADMIN_SETTINGS_ID, AdminSettings


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_missing_row_is_created_with_default(db_session) -> None:
    cache = AdminSettingsCache(default_passing_grade=70)

    snapshot = await cache.get(db_session)

    assert snapshot.passing_grade == 70
    row = await db_session.get(AdminSettings, ADMIN_SETTINGS_ID)
    assert row.passing_grade == 70


@pytest.mark.asyncio
async def test_reads_are_cached_until_ttl_expires(db_session) -> None:
    clock = FakeClock()
    cache = AdminSettingsCache(ttl_secs=300, clock=clock)
    await cache.get(db_session)

    row = await db_session.get(AdminSettings, ADMIN_SETTINGS_ID)
    row.passing_grade = 80
    await db_session.flush()

    clock.now += 299
    assert (await cache.get(db_session)).passing_grade == 60

    clock.now += 2
    assert (await cache.get(db_session)).passing_grade == 80


@pytest.mark.asyncio
async def test_update_invalidates_cache(db_session, admin) -> None:
    cache = AdminSettingsCache(ttl_secs=3600)
    assert (await get_admin_settings(db_session, cache)).passing_grade == 60

    updated = await update_admin_settings(db_session, admin, cache, passing_grade=75)

    assert updated.passing_grade == 75
    assert (await get_admin_settings(db_session, cache)).passing_grade == 75


@pytest.mark.asyncio
@pytest.mark.parametrize("value", [-1, 101])
async def test_passing_grade_out_of_range(db_session, admin, settings_cache, value) -> None:
    with pytest.raises(InvalidPassingGradeError):
        await update_admin_settings(db_session, admin, settings_cache, passing_grade=value)


@pytest.mark.asyncio
async def test_only_admins_update_settings(db_session, instructor, settings_cache) -> None:
    with pytest.raises(UnauthorizedError):
        await update_admin_settings(db_session, instructor, settings_cache, passing_grade=50)
