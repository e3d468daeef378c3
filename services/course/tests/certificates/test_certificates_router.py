import pytest

from app.certificates.eligibility import EligibilityStatus
from app.certificates.schemas import EligibilityDetailsResponse, EligibilityResponse
from app.dependencies import get_settings_cache
from app.main import app
from app.models.enums import ContentGradeStatus, ContentType


def test_status_serialises_as_upper_case_name() -> None:
    response = EligibilityResponse(
        status=EligibilityStatus.GROUP_COMPLETED_BUT_GRADE_TOO_LOW,
        eligible=False,
        details=EligibilityDetailsResponse(
            total_items=1, completed_items=1, completion_percentage=100, passing_grade=60,
        ),
    )

    assert response.model_dump(mode="json")["status"] == "GROUP_COMPLETED_BUT_GRADE_TOO_LOW"
    assert [s.value for s in EligibilityStatus] == [s.name for s in EligibilityStatus]


@pytest.mark.asyncio
async def test_eligibility_endpoint_returns_status_name(
    async_client, settings_cache, make_course, make_section, make_content,
    make_content_grade, make_enrollment, student,
) -> None:
    course = await make_course()
    section = await make_section(course)
    assignment = await make_content(section, ContentType.ASSIGNMENT)
    await make_content_grade(assignment, student.id, ContentGradeStatus.GRADED, 90)
    await make_enrollment(course, student.id)
    async_client.user = student
    app.dependency_overrides[get_settings_cache] = lambda: settings_cache

    response = await async_client.get(f"/api/v1/certificates/courses/{course.course_id}/eligibility")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "AUTO_GRANT"
    assert body["eligible"] is True
    assert body["details"]["passing_grade"] == 60


@pytest.mark.asyncio
async def test_eligibility_for_unenrolled_student(
    async_client, settings_cache, make_course, student,
) -> None:
    course = await make_course()
    async_client.user = student
    app.dependency_overrides[get_settings_cache] = lambda: settings_cache

    response = await async_client.get(f"/api/v1/certificates/courses/{course.course_id}/eligibility")

    assert response.status_code == 200
    assert response.json()["status"] == "NOT_ENROLLED"
    assert response.json()["eligible"] is False
