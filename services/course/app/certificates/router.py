"""Certificate router: eligibility, requests, issuance and public verification."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.admin_settings.cache import AdminSettingsCache
from app.certificates import controller
from app.certificates.schemas import (
    CertificateRequestCreate,
    CertificateRequestResponse,
    CertificateRequestResult,
    CertificateResponse,
    CertificateVerifyResponse,
    EligibilityResponse,
    RejectCertificateRequest,
)
from app.config import Settings
from app.database import get_db
from app.dependencies import get_current_user, get_dispatcher, get_settings, get_settings_cache
from app.models.enums import CertificateRequestStatus
from app.notifications.dispatcher import NotificationDispatcher
from shared.models.user import CurrentUser

router = APIRouter(prefix="/certificates", tags=["Certificates"])


@router.get(
    "/courses/{course_id}/eligibility",
    response_model=EligibilityResponse,
    summary="Evaluate my certificate eligibility",
    description="Always recomputed from current grades and completion state.",
)
async def get_eligibility(
    course_id: UUID,
    group_id: UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    cache: AdminSettingsCache = Depends(get_settings_cache),
) -> EligibilityResponse:
    return await controller.get_eligibility(db, user, course_id, group_id, cache)


@router.post(
    "/courses/{course_id}/requests",
    response_model=CertificateRequestResult,
    status_code=status.HTTP_201_CREATED,
    summary="Request a certificate",
    description="Courses in automatic mode grant the certificate immediately. "
    "Returns 409 when not eligible or a request already exists.",
)
async def request_certificate(
    course_id: UUID,
    body: CertificateRequestCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    cache: AdminSettingsCache = Depends(get_settings_cache),
    settings: Settings = Depends(get_settings),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> CertificateRequestResult:
    return await controller.request_certificate(
        db, user, course_id, body, cache, settings, dispatcher,
    )


@router.get(
    "/courses/{course_id}/requests",
    response_model=list[CertificateRequestResponse],
    summary="List certificate requests (owner or admin)",
)
async def list_requests(
    course_id: UUID,
    status_filter: CertificateRequestStatus | None = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[CertificateRequestResponse]:
    return await controller.list_requests(db, user, course_id, status_filter)


@router.post(
    "/requests/{request_id}/approve",
    response_model=CertificateRequestResult,
    summary="Approve a certificate request and issue the certificate",
)
async def approve_request(
    request_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> CertificateRequestResult:
    return await controller.approve_request(db, user, request_id, settings, dispatcher)


@router.post(
    "/requests/{request_id}/reject",
    response_model=CertificateRequestResponse,
    summary="Reject a certificate request",
)
async def reject_request(
    request_id: UUID,
    body: RejectCertificateRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> CertificateRequestResponse:
    return await controller.reject_request(db, user, request_id, body)


@router.get(
    "/me",
    response_model=list[CertificateResponse],
    summary="List my certificates",
)
async def get_my_certificates(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> list[CertificateResponse]:
    return await controller.get_my_certificates(db, user, settings)


@router.get(
    "/verify/{verification_code}",
    response_model=CertificateVerifyResponse,
    summary="Verify a certificate (public)",
    description="Public endpoint, no authentication required.",
)
async def verify_certificate(
    verification_code: str,
    db: AsyncSession = Depends(get_db),
) -> CertificateVerifyResponse:
    return await controller.verify_certificate(db, verification_code)
