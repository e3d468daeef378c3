"""FastAPI dependencies shared by every course-service router."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Request

from app.admin_settings.cache import AdminSettingsCache, get_admin_settings_cache
from app.config import Settings
from app.notifications.dispatcher import NotificationDispatcher, NullDispatcher
from shared.auth.dependencies import get_current_user_required
from shared.models.user import CurrentUser


@lru_cache
def get_settings() -> Settings:
    return Settings()


async def get_current_user(
    user: CurrentUser = Depends(get_current_user_required),
) -> CurrentUser:
    return user


def get_dispatcher(request: Request) -> NotificationDispatcher:
    """Dispatcher created at startup; a no-op one when Redis is not wired."""
    dispatcher = getattr(request.app.state, "dispatcher", None)
    return dispatcher if dispatcher is not None else NullDispatcher()


def get_settings_cache() -> AdminSettingsCache:
    return get_admin_settings_cache()
