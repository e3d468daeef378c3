"""Certificate controller: maps service results to HTTP responses."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.admin_settings.cache import AdminSettingsCache
from app.certificates import service
from app.certificates.schemas import (
    CertificateRequestCreate,
    CertificateRequestResponse,
    CertificateRequestResult,
    CertificateResponse,
    CertificateVerifyResponse,
    EligibilityDetailsResponse,
    EligibilityResponse,
    RejectCertificateRequest,
)
from app.config import Settings
from app.exceptions import InvalidStateError, NotFoundError, UnauthorizedError
from app.models.certificate import Certificate
from app.models.enums import CertificateRequestStatus
from app.notifications.dispatcher import NotificationDispatcher
from shared.models.user import CurrentUser


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, UnauthorizedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.detail)
    if isinstance(exc, InvalidStateError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


def _certificate_response(cert: Certificate, settings: Settings) -> CertificateResponse:
    resp = CertificateResponse.model_validate(cert)
    resp.verification_url = f"{settings.certificate_base_url}/{cert.verification_code}"
    return resp


async def get_eligibility(
    db: AsyncSession,
    caller: CurrentUser,
    course_id: UUID,
    group_id: UUID | None,
    cache: AdminSettingsCache,
) -> EligibilityResponse:
    try:
        result = await service.evaluate_certificate_eligibility(
            db, caller.id, course_id, cache, group_id,
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return EligibilityResponse(
        status=result.status,
        eligible=result.eligible,
        details=EligibilityDetailsResponse.model_validate(result.details),
    )


async def request_certificate(
    db: AsyncSession,
    caller: CurrentUser,
    course_id: UUID,
    body: CertificateRequestCreate,
    cache: AdminSettingsCache,
    settings: Settings,
    dispatcher: NotificationDispatcher,
) -> CertificateRequestResult:
    try:
        request, cert = await service.request_certificate(
            db, caller.id, course_id, cache, settings, dispatcher, group_id=body.group_id,
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return CertificateRequestResult(
        request=CertificateRequestResponse.model_validate(request),
        certificate=_certificate_response(cert, settings) if cert is not None else None,
    )


async def approve_request(
    db: AsyncSession,
    caller: CurrentUser,
    request_id: UUID,
    settings: Settings,
    dispatcher: NotificationDispatcher,
) -> CertificateRequestResult:
    try:
        request, cert = await service.approve_certificate_request(
            db, caller, request_id, settings, dispatcher,
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return CertificateRequestResult(
        request=CertificateRequestResponse.model_validate(request),
        certificate=_certificate_response(cert, settings),
    )


async def reject_request(
    db: AsyncSession,
    caller: CurrentUser,
    request_id: UUID,
    body: RejectCertificateRequest,
) -> CertificateRequestResponse:
    try:
        request = await service.reject_certificate_request(db, caller, request_id, body.reason)
        return CertificateRequestResponse.model_validate(request)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def list_requests(
    db: AsyncSession,
    caller: CurrentUser,
    course_id: UUID,
    status_filter: CertificateRequestStatus | None,
) -> list[CertificateRequestResponse]:
    try:
        requests = await service.list_certificate_requests(db, caller, course_id, status_filter)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return [CertificateRequestResponse.model_validate(r) for r in requests]


async def get_my_certificates(
    db: AsyncSession, caller: CurrentUser, settings: Settings,
) -> list[CertificateResponse]:
    certs = await service.get_my_certificates(db, caller.id)
    return [_certificate_response(c, settings) for c in certs]


async def verify_certificate(db: AsyncSession, verification_code: str) -> CertificateVerifyResponse:
    cert = await service.verify_certificate(db, verification_code)
    if cert is None:
        return CertificateVerifyResponse(is_valid=False)
    return CertificateVerifyResponse(
        is_valid=True,
        certificate_id=cert.certificate_id,
        student_id=cert.student_id,
        course_id=cert.course_id,
        course_title=cert.course_title,
        instructor_name=cert.instructor_name,
        score=cert.score,
        issued_at=cert.issued_at,
    )
