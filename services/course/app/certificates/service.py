"""Certificate service: eligibility, requests, and issuance.

Pure business logic, no FastAPI imports.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.admin_settings.cache import AdminSettingsCache
from app.certificates.eligibility import (
    CompletionCounts,
    EligibilityInputs,
    EligibilityResult,
    EligibilityStatus,
    evaluate_eligibility,
)
from app.config import Settings
from app.exceptions import (
    CertificateNotEligibleError,
    CertificateRequestAlreadyProcessedError,
    CertificateRequestNotFoundError,
    DuplicateCertificateRequestError,
)
from app.grading.service import compute_course_grade
from app.models.certificate import Certificate
from app.models.certificate_request import CertificateRequest
from app.models.content import Content
from app.models.content_grade import ContentGrade
from app.models.content_progress import ContentProgress
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.enums import (
    CertificateRequestStatus,
    ContentGradeStatus,
    ContentType,
    EnrollmentStatus,
    QuizAttemptStatus,
)
from app.models.quiz import Quiz
from app.models.quiz_attempt import QuizAttempt
from app.models.section import Section
from app.notifications.dispatcher import NotificationDispatcher
from app.notifications.outbox import enqueue
from app.ownership import ensure_course_owner, get_course
from shared.database.postgres import atomic
from shared.events.schemas import CertificateGranted, CertificateRequested
from shared.models.user import CurrentUser

logger = logging.getLogger(__name__)

_ACTIVE_ENROLLMENT = (
    EnrollmentStatus.APPROVED,
    EnrollmentStatus.ENROLLED,
    EnrollmentStatus.COMPLETED,
)
_SUBMITTED = (ContentGradeStatus.GRADED, ContentGradeStatus.SUBMITTED_UNGRADED)


# ---------------------------------------------------------------------------
# Tamper-proof verification code
# ---------------------------------------------------------------------------


def _generate_verification_code(
    student_id: UUID,
    course_id: UUID,
    group_id: UUID | None,
    timestamp: datetime,
    secret: str,
) -> str:
    """HMAC-SHA256(student:course:group:timestamp, secret) → 16-char code."""
    message = f"{student_id}:{course_id}:{group_id or '-'}:{timestamp.isoformat()}"
    digest = hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()
    return digest[:16].upper()


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------


async def _get_enrollment(
    db: AsyncSession, student_id: UUID, course_id: UUID,
) -> Enrollment | None:
    return await db.scalar(
        select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.course_id == course_id,
        )
    )


async def count_completion(
    db: AsyncSession,
    student_id: UUID,
    course_id: UUID,
    group_id: UUID | None,
) -> CompletionCounts:
    """Completed vs. total gradable items (content plus quizzes) in the group."""
    content_stmt = (
        select(Content)
        .join(Section, Content.section_id == Section.section_id)
        .where(
            Content.course_id == course_id,
            Content.is_published.is_(True),
            Section.is_active.is_(True),
        )
    )
    if group_id is not None:
        content_stmt = content_stmt.where(Content.group_id == group_id)
    contents = (await db.execute(content_stmt)).scalars().all()
    content_ids = [c.content_id for c in contents]

    statuses: dict[UUID, ContentGradeStatus] = {}
    completed_ids: set[UUID] = set()
    if content_ids:
        statuses = dict(
            (
                await db.execute(
                    select(ContentGrade.content_id, ContentGrade.status).where(
                        ContentGrade.student_id == student_id,
                        ContentGrade.content_id.in_(content_ids),
                    )
                )
            ).tuples().all()
        )
        completed_ids = set(
            (
                await db.execute(
                    select(ContentProgress.content_id).where(
                        ContentProgress.student_id == student_id,
                        ContentProgress.content_id.in_(content_ids),
                        ContentProgress.completed.is_(True),
                    )
                )
            ).scalars()
        )

    lectures = [c for c in contents if c.content_type == ContentType.LECTURE]
    submissions = [c for c in contents if c.content_type != ContentType.LECTURE]
    lectures_done = sum(
        1 for c in lectures
        if statuses.get(c.content_id) == ContentGradeStatus.WATCHED or c.content_id in completed_ids
    )
    submissions_done = sum(1 for c in submissions if statuses.get(c.content_id) in _SUBMITTED)

    quiz_stmt = select(Quiz.quiz_id).where(Quiz.course_id == course_id, Quiz.is_active.is_(True))
    if group_id is not None:
        quiz_stmt = quiz_stmt.where(Quiz.group_id == group_id)
    quiz_ids = list((await db.execute(quiz_stmt)).scalars().all())
    quizzes_done = 0
    if quiz_ids:
        quizzes_done = await db.scalar(
            select(func.count(Quiz.quiz_id)).where(
                Quiz.quiz_id.in_(quiz_ids),
                exists().where(
                    QuizAttempt.quiz_id == Quiz.quiz_id,
                    QuizAttempt.student_id == student_id,
                    QuizAttempt.status == QuizAttemptStatus.GRADED,
                ),
            )
        ) or 0

    return CompletionCounts(
        lectures_total=len(lectures),
        lectures_completed=lectures_done,
        submissions_total=len(submissions),
        submissions_completed=submissions_done,
        quizzes_total=len(quiz_ids),
        quizzes_completed=quizzes_done,
    )


async def evaluate_certificate_eligibility(
    db: AsyncSession,
    student_id: UUID,
    course_id: UUID,
    cache: AdminSettingsCache,
    group_id: UUID | None = None,
) -> EligibilityResult:
    course = await get_course(db, course_id)
    enrollment = await _get_enrollment(db, student_id, course_id)
    enrolled = enrollment is not None and enrollment.status in _ACTIVE_ENROLLMENT
    if group_id is None and enrollment is not None:
        group_id = enrollment.group_id

    settings = await cache.get(db)
    counts = await count_completion(db, student_id, course_id, group_id)
    overall = await compute_course_grade(db, student_id, course_id, group_id)

    return evaluate_eligibility(
        EligibilityInputs(
            enrolled=enrolled,
            offers_certificate=course.offers_certificate,
            certificate_mode=course.certificate_mode,
            instructor_certificate_release=course.instructor_certificate_release,
            passing_grade=settings.passing_grade,
            overall_grade=overall,
            counts=counts,
        )
    )


# ---------------------------------------------------------------------------
# Issuance
# ---------------------------------------------------------------------------


async def _issue_certificate(
    db: AsyncSession,
    request: CertificateRequest,
    course: Course,
    settings: Settings,
    dispatcher: NotificationDispatcher,
) -> Certificate:
    # Score is recomputed at issuance, not taken from the request snapshot
    score = await compute_course_grade(db, request.student_id, course.course_id, request.group_id)
    issued_at = datetime.now(timezone.utc)
    cert = Certificate(
        request_id=request.request_id,
        student_id=request.student_id,
        course_id=course.course_id,
        group_id=request.group_id,
        verification_code=_generate_verification_code(
            request.student_id, course.course_id, request.group_id,
            issued_at, settings.certificate_signing_secret,
        ),
        course_title=course.title,
        instructor_name=course.instructor_name,
        score=score,
        issued_at=issued_at,
    )
    db.add(cert)
    await db.flush()

    logger.info(
        "Certificate %s issued to student %s for course %s",
        cert.certificate_id, cert.student_id, cert.course_id,
    )
    enqueue(
        db,
        dispatcher,
        CertificateGranted(
            certificate_id=cert.certificate_id,
            student_id=cert.student_id,
            course_id=cert.course_id,
            group_id=cert.group_id,
            verification_code=cert.verification_code,
        ),
    )
    return cert


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


async def _find_request(
    db: AsyncSession, student_id: UUID, course_id: UUID,
) -> CertificateRequest | None:
    return await db.scalar(
        select(CertificateRequest).where(
            CertificateRequest.student_id == student_id,
            CertificateRequest.course_id == course_id,
        )
    )


async def request_certificate(
    db: AsyncSession,
    student_id: UUID,
    course_id: UUID,
    cache: AdminSettingsCache,
    settings: Settings,
    dispatcher: NotificationDispatcher,
    group_id: UUID | None = None,
) -> tuple[CertificateRequest, Certificate | None]:
    """Create a request, or grant straight away when the course auto-grants.

    The read-then-write is backed by the unique (student, course) keys on
    requests and certificates: a concurrent request that wins the insert
    surfaces here as DuplicateCertificateRequestError.
    """
    course = await get_course(db, course_id)
    existing = await _find_request(db, student_id, course_id)
    if existing is not None and existing.status != CertificateRequestStatus.REJECTED:
        raise DuplicateCertificateRequestError(existing.status.value)

    result = await evaluate_certificate_eligibility(db, student_id, course_id, cache, group_id)
    if result.status not in (EligibilityStatus.AUTO_GRANT, EligibilityStatus.CAN_REQUEST):
        raise CertificateNotEligibleError(result.status.value)

    if group_id is None:
        enrollment = await _get_enrollment(db, student_id, course_id)
        group_id = enrollment.group_id if enrollment is not None else None

    cert: Certificate | None = None
    try:
        async with atomic(db):
            # A rejected request is reused
            request = existing or CertificateRequest(student_id=student_id, course_id=course_id)
            if existing is None:
                db.add(request)
            request.group_id = group_id
            request.course_grade = result.details.overall_grade
            request.rejection_reason = None
            request.processed_by = None
            if result.status == EligibilityStatus.AUTO_GRANT:
                request.status = CertificateRequestStatus.APPROVED
                request.processed_at = datetime.now(timezone.utc)
                await db.flush()
                cert = await _issue_certificate(db, request, course, settings, dispatcher)
            else:
                request.status = CertificateRequestStatus.REQUESTED
                request.processed_at = None
                await db.flush()
    except IntegrityError as exc:
        logger.warning(
            "Concurrent certificate request for student %s in course %s", student_id, course_id,
        )
        raise DuplicateCertificateRequestError(CertificateRequestStatus.REQUESTED.value) from exc

    if cert is not None:
        return request, cert

    logger.info("Certificate requested by student %s for course %s", student_id, course_id)
    enqueue(
        db,
        dispatcher,
        CertificateRequested(
            request_id=request.request_id, student_id=student_id, course_id=course_id,
        ),
    )
    return request, None


async def _get_pending_request(
    db: AsyncSession, request_id: UUID, caller: CurrentUser,
) -> tuple[CertificateRequest, Course]:
    request = await db.get(CertificateRequest, request_id)
    if request is None:
        raise CertificateRequestNotFoundError(str(request_id))
    course = await get_course(db, request.course_id)
    ensure_course_owner(course, caller)
    if request.status != CertificateRequestStatus.REQUESTED:
        raise CertificateRequestAlreadyProcessedError(request.status.value)
    return request, course


async def approve_certificate_request(
    db: AsyncSession,
    caller: CurrentUser,
    request_id: UUID,
    settings: Settings,
    dispatcher: NotificationDispatcher,
) -> tuple[CertificateRequest, Certificate]:
    request, course = await _get_pending_request(db, request_id, caller)
    request.status = CertificateRequestStatus.APPROVED
    request.processed_by = caller.id
    request.processed_at = datetime.now(timezone.utc)
    try:
        async with atomic(db):
            await db.flush()
            cert = await _issue_certificate(db, request, course, settings, dispatcher)
    except IntegrityError as exc:
        raise CertificateRequestAlreadyProcessedError(
            CertificateRequestStatus.APPROVED.value
        ) from exc
    return request, cert


async def reject_certificate_request(
    db: AsyncSession,
    caller: CurrentUser,
    request_id: UUID,
    reason: str | None = None,
) -> CertificateRequest:
    request, _course = await _get_pending_request(db, request_id, caller)
    request.status = CertificateRequestStatus.REJECTED
    request.rejection_reason = reason
    request.processed_by = caller.id
    request.processed_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("Certificate request %s rejected by %s", request_id, caller.id)
    return request


async def list_certificate_requests(
    db: AsyncSession,
    caller: CurrentUser,
    course_id: UUID,
    status: CertificateRequestStatus | None = None,
) -> list[CertificateRequest]:
    course = await get_course(db, course_id)
    ensure_course_owner(course, caller)
    stmt = select(CertificateRequest).where(CertificateRequest.course_id == course_id)
    if status is not None:
        stmt = stmt.where(CertificateRequest.status == status)
    result = await db.execute(stmt.order_by(CertificateRequest.created_at.desc()))
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------


async def get_my_certificates(db: AsyncSession, student_id: UUID) -> list[Certificate]:
    stmt = (
        select(Certificate)
        .where(Certificate.student_id == student_id)
        .order_by(Certificate.issued_at.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def verify_certificate(db: AsyncSession, verification_code: str) -> Certificate | None:
    """Public verification, no auth required."""
    return await db.scalar(
        select(Certificate).where(Certificate.verification_code == verification_code)
    )
