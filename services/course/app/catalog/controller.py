"""Catalog controller: maps domain exceptions to HTTP responses."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog import service
from app.catalog.deletion import DeletionScope
from app.catalog.schemas import DeletionPlanResponse, DeletionReportResponse
from app.exceptions import NotFoundError, UnauthorizedError
from shared.models.user import CurrentUser


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, UnauthorizedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.detail)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


async def preview_deletion(
    db: AsyncSession, caller: CurrentUser, scope: DeletionScope, target_id: UUID,
) -> DeletionPlanResponse:
    try:
        steps = await service.preview_deletion(db, caller, scope, target_id)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return DeletionPlanResponse(scope=scope, target_id=target_id, steps=steps)


async def delete_entity(
    db: AsyncSession, caller: CurrentUser, scope: DeletionScope, target_id: UUID,
) -> DeletionReportResponse:
    try:
        removed = await service.delete_entity(db, caller, scope, target_id)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return DeletionReportResponse(scope=scope, target_id=target_id, removed=removed)
