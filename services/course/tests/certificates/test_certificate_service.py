from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.certificates import service as certificate_service
from app.certificates.eligibility import EligibilityStatus
from app.certificates.service import (
    approve_certificate_request,
    count_completion,
    evaluate_certificate_eligibility,
    get_my_certificates,
    reject_certificate_request,
    request_certificate,
    verify_certificate,
)
from app.exceptions import (
    CertificateNotEligibleError,
    CertificateRequestAlreadyProcessedError,
    DuplicateCertificateRequestError,
    UnauthorizedError,
)
from app.models.certificate import Certificate
from app.models.certificate_request import CertificateRequest
from app.models.enums import (
    CertificateRequestStatus,
    ContentGradeStatus,
    ContentType,
    EnrollmentStatus,
    QuizAttemptStatus,
)
from app.models.quiz import Quiz
from app.models.quiz_attempt import QuizAttempt
from app.notifications.outbox import commit_and_publish


@pytest.fixture
def completed_course(make_course, make_section, make_content, make_content_grade, make_enrollment):
    """A course whose single assignment the student has been graded on."""

    async def _make(student_id, *, grade=80, **course_fields):
        course = await make_course(**course_fields)
        section = await make_section(course)
        assignment = await make_content(section, ContentType.ASSIGNMENT)
        await make_content_grade(assignment, student_id, ContentGradeStatus.GRADED, grade)
        await make_enrollment(course, student_id)
        return course

    return _make


@pytest.mark.asyncio
async def test_count_completion_includes_quizzes(
    db_session, make_course, make_section, make_content, make_content_grade, student,
) -> None:
    course = await make_course()
    section = await make_section(course)
    lecture = await make_content(section, ContentType.LECTURE)
    assignment = await make_content(section, ContentType.ASSIGNMENT)
    await make_content(section, ContentType.PROJECT, is_published=False)
    await make_content_grade(lecture, student.id, ContentGradeStatus.WATCHED, 100)
    await make_content_grade(assignment, student.id, ContentGradeStatus.SUBMITTED_UNGRADED, 50)
    quiz = Quiz(course_id=course.course_id, title="Final")
    db_session.add(quiz)
    await db_session.flush()
    db_session.add(
        QuizAttempt(quiz_id=quiz.quiz_id, student_id=student.id, status=QuizAttemptStatus.GRADED, score=9)
    )
    await db_session.flush()

    counts = await count_completion(db_session, student.id, course.course_id, None)

    assert (counts.lectures_total, counts.lectures_completed) == (1, 1)
    assert (counts.submissions_total, counts.submissions_completed) == (1, 1)
    assert (counts.quizzes_total, counts.quizzes_completed) == (1, 1)
    assert counts.is_complete


@pytest.mark.asyncio
async def test_pending_enrollment_is_not_enrolled(
    db_session, make_course, make_enrollment, settings_cache, student,
) -> None:
    course = await make_course()
    await make_enrollment(course, student.id, status=EnrollmentStatus.PENDING)

    result = await evaluate_certificate_eligibility(
        db_session, student.id, course.course_id, settings_cache,
    )
    assert result.status == EligibilityStatus.NOT_ENROLLED


@pytest.mark.asyncio
async def test_low_grade_is_reported(db_session, completed_course, settings_cache, student) -> None:
    course = await completed_course(student.id, grade=40)

    result = await evaluate_certificate_eligibility(
        db_session, student.id, course.course_id, settings_cache,
    )

    assert result.status == EligibilityStatus.GROUP_COMPLETED_BUT_GRADE_TOO_LOW
    assert result.details.overall_grade == Decimal("40.00")
    assert result.details.passing_grade == 60


@pytest.mark.asyncio
async def test_auto_grant_issues_certificate(
    db_session, completed_course, settings_cache, settings, dispatcher, student,
) -> None:
    course = await completed_course(student.id)

    request, cert = await request_certificate(
        db_session, student.id, course.course_id, settings_cache, settings, dispatcher,
    )

    assert request.status == CertificateRequestStatus.APPROVED
    assert cert is not None
    assert cert.score == Decimal("80.00")
    assert len(cert.verification_code) == 16
    assert cert.verification_code == cert.verification_code.upper()
    await commit_and_publish(db_session)
    assert dispatcher.types() == ["certificate.granted"]
    assert await verify_certificate(db_session, cert.verification_code) is cert
    assert await get_my_certificates(db_session, student.id) == [cert]


@pytest.mark.asyncio
async def test_second_request_is_a_duplicate(
    db_session, completed_course, settings_cache, settings, dispatcher, student,
) -> None:
    course = await completed_course(student.id)
    await request_certificate(db_session, student.id, course.course_id, settings_cache, settings, dispatcher)

    with pytest.raises(DuplicateCertificateRequestError):
        await request_certificate(
            db_session, student.id, course.course_id, settings_cache, settings, dispatcher,
        )


@pytest.mark.asyncio
async def test_request_when_not_eligible(
    db_session, completed_course, settings_cache, settings, dispatcher, student,
) -> None:
    course = await completed_course(student.id, grade=10)

    with pytest.raises(CertificateNotEligibleError):
        await request_certificate(
            db_session, student.id, course.course_id, settings_cache, settings, dispatcher,
        )
    assert dispatcher.events == []


@pytest.mark.asyncio
async def test_manual_request_then_approve(
    db_session, completed_course, settings_cache, settings, dispatcher, instructor, student,
) -> None:
    course = await completed_course(
        student.id, certificate_mode="manual_instructor", instructor_certificate_release=True,
    )

    request, cert = await request_certificate(
        db_session, student.id, course.course_id, settings_cache, settings, dispatcher,
    )
    assert cert is None
    assert request.status == CertificateRequestStatus.REQUESTED
    await commit_and_publish(db_session)
    assert dispatcher.types() == ["certificate.requested"]

    with pytest.raises(UnauthorizedError):
        await approve_certificate_request(db_session, student, request.request_id, settings, dispatcher)

    request, cert = await approve_certificate_request(
        db_session, instructor, request.request_id, settings, dispatcher,
    )
    assert request.status == CertificateRequestStatus.APPROVED
    assert request.processed_by == instructor.id
    assert cert.request_id == request.request_id
    await commit_and_publish(db_session)
    assert dispatcher.types() == ["certificate.requested", "certificate.granted"]

    with pytest.raises(CertificateRequestAlreadyProcessedError):
        await reject_certificate_request(db_session, instructor, request.request_id, "late")


@pytest.mark.asyncio
async def test_rejected_request_can_be_resubmitted(
    db_session, completed_course, settings_cache, settings, dispatcher, instructor, student,
) -> None:
    course = await completed_course(
        student.id, certificate_mode="manual_instructor", instructor_certificate_release=True,
    )
    first, _ = await request_certificate(
        db_session, student.id, course.course_id, settings_cache, settings, dispatcher,
    )
    rejected = await reject_certificate_request(db_session, instructor, first.request_id, "blurry scan")
    assert rejected.rejection_reason == "blurry scan"

    second, _ = await request_certificate(
        db_session, student.id, course.course_id, settings_cache, settings, dispatcher,
    )

    assert second.request_id == first.request_id
    assert second.status == CertificateRequestStatus.REQUESTED
    assert second.rejection_reason is None


@pytest.mark.asyncio
async def test_manual_without_release_cannot_request(
    db_session, completed_course, settings_cache, settings, dispatcher, student,
) -> None:
    course = await completed_course(student.id, certificate_mode="manual_instructor")

    result = await evaluate_certificate_eligibility(
        db_session, student.id, course.course_id, settings_cache,
    )
    assert result.status == EligibilityStatus.GROUP_COMPLETED_AND_ELIGIBLE
    with pytest.raises(CertificateNotEligibleError):
        await request_certificate(
            db_session, student.id, course.course_id, settings_cache, settings, dispatcher,
        )


@pytest.mark.asyncio
async def test_racing_auto_grant_is_reported_as_duplicate(
    db_session, completed_course, settings_cache, settings, dispatcher, student, monkeypatch,
) -> None:
    course = await completed_course(student.id)
    _, cert = await request_certificate(
        db_session, student.id, course.course_id, settings_cache, settings, dispatcher,
    )

    # A second request that read before the first one was written
    async def _not_written_yet(*_args):
        return None

    monkeypatch.setattr(certificate_service, "_find_request", _not_written_yet)
    with pytest.raises(DuplicateCertificateRequestError):
        await request_certificate(
            db_session, student.id, course.course_id, settings_cache, settings, dispatcher,
        )

    issued = (await db_session.execute(select(Certificate))).scalars().all()
    assert issued == [cert]
    await commit_and_publish(db_session)
    assert dispatcher.types() == ["certificate.granted"]


@pytest.mark.asyncio
async def test_second_certificate_for_same_course_is_refused(
    db_session, completed_course, settings_cache, settings, dispatcher, instructor, student,
) -> None:
    course = await completed_course(
        student.id, certificate_mode="manual_instructor", instructor_certificate_release=True,
    )
    request, _ = await request_certificate(
        db_session, student.id, course.course_id, settings_cache, settings, dispatcher,
    )
    # Issued by a concurrent approval of the same request
    db_session.add(
        Certificate(
            request_id=request.request_id,
            student_id=student.id,
            course_id=course.course_id,
            verification_code="CONCURRENTAPPROVE",
            issued_at=datetime.now(timezone.utc),
        )
    )
    await db_session.flush()

    with pytest.raises(CertificateRequestAlreadyProcessedError):
        await approve_certificate_request(
            db_session, instructor, request.request_id, settings, dispatcher,
        )
    issued = (await db_session.execute(select(Certificate))).scalars().all()
    assert [c.verification_code for c in issued] == ["CONCURRENTAPPROVE"]


@pytest.mark.asyncio
async def test_request_rows_are_unique_per_student_and_course(
    db_session, make_course, student,
) -> None:
    course = await make_course()
    db_session.add(CertificateRequest(student_id=student.id, course_id=course.course_id))
    await db_session.flush()

    db_session.add(CertificateRequest(student_id=student.id, course_id=course.course_id))
    with pytest.raises(IntegrityError):
        await db_session.flush()
