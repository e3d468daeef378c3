from collections.abc import AsyncGenerator, Awaitable, Callable
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401 - register with Base
from app.admin_settings.cache import AdminSettingsCache
from app.config import Settings
from app.models.content import Content
from app.models.content_grade import ContentGrade
from app.models.course import Course
from app.models.enrollment import Enrollment, EnrollmentSection
from app.models.enums import ContentGradeStatus, ContentType, EnrollmentStatus
from app.models.group import Group
from app.models.section import Section
from shared.constants import Role
from shared.database.postgres import Base
from shared.events.schemas import DomainEvent
from shared.models.user import CurrentUser

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class RecordingDispatcher:
    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    async def dispatch(self, event: DomainEvent) -> None:
        self.events.append(event)

    def types(self) -> list[str]:
        return [e.event_type for e in self.events]


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, _connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def settings() -> Settings:
    return Settings(certificate_signing_secret="test-secret", notifications_channel="")


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def settings_cache() -> AdminSettingsCache:
    return AdminSettingsCache(ttl_secs=300, default_passing_grade=60)


# ---------------------------------------------------------------------------
# Callers
# ---------------------------------------------------------------------------


@pytest.fixture
def instructor() -> CurrentUser:
    return CurrentUser(id=uuid4(), email="instructor@example.com", roles=[Role.INSTRUCTOR])


@pytest.fixture
def student() -> CurrentUser:
    return CurrentUser(id=uuid4(), email="student@example.com", roles=[Role.STUDENT])


@pytest.fixture
def admin() -> CurrentUser:
    return CurrentUser(id=uuid4(), email="admin@example.com", roles=[Role.ADMIN])


@pytest.fixture
def outsider() -> CurrentUser:
    return CurrentUser(id=uuid4(), email="other@example.com", roles=[Role.INSTRUCTOR])


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_course(
    db_session: AsyncSession, instructor: CurrentUser,
) -> Callable[..., Awaitable[Course]]:
    async def _make(**overrides: Any) -> Course:
        fields: dict[str, Any] = {
            "title": "Intro to Statistics",
            "instructor_id": instructor.id,
            "instructor_name": "Dr. Ada",
            "cost_cents": 1000,
            "currency": "USD",
        }
        fields.update(overrides)
        course = Course(**fields)
        db_session.add(course)
        await db_session.flush()
        return course

    return _make


@pytest.fixture
def make_group(db_session: AsyncSession) -> Callable[..., Awaitable[Group]]:
    async def _make(course: Course, name: str = "Cohort A") -> Group:
        group = Group(course_id=course.course_id, name=name)
        db_session.add(group)
        await db_session.flush()
        return group

    return _make


@pytest.fixture
def make_section(db_session: AsyncSession) -> Callable[..., Awaitable[Section]]:
    async def _make(course: Course, **overrides: Any) -> Section:
        fields: dict[str, Any] = {
            "course_id": course.course_id,
            "name": "Section",
            "is_free": False,
            "price_cents": 0,
            "currency": course.currency,
        }
        fields.update(overrides)
        section = Section(**fields)
        db_session.add(section)
        await db_session.flush()
        return section

    return _make


@pytest.fixture
def make_content(db_session: AsyncSession) -> Callable[..., Awaitable[Content]]:
    async def _make(section: Section, content_type: ContentType, **overrides: Any) -> Content:
        fields: dict[str, Any] = {
            "course_id": section.course_id,
            "group_id": section.group_id,
            "section_id": section.section_id,
            "title": f"{content_type.value} item",
            "content_type": content_type,
        }
        fields.update(overrides)
        content = Content(**fields)
        db_session.add(content)
        await db_session.flush()
        return content

    return _make


@pytest.fixture
def make_enrollment(db_session: AsyncSession) -> Callable[..., Awaitable[Enrollment]]:
    async def _make(
        course: Course,
        student_id: UUID,
        *,
        group: Group | None = None,
        sections: list[Section] | None = None,
        status: EnrollmentStatus = EnrollmentStatus.ENROLLED,
    ) -> Enrollment:
        enrollment = Enrollment(
            student_id=student_id,
            course_id=course.course_id,
            group_id=group.group_id if group is not None else None,
            status=status,
            section_links=[EnrollmentSection(section_id=s.section_id) for s in sections or []],
        )
        db_session.add(enrollment)
        await db_session.flush()
        return enrollment

    return _make


@pytest.fixture
def make_content_grade(db_session: AsyncSession) -> Callable[..., Awaitable[ContentGrade]]:
    async def _make(
        content: Content,
        student_id: UUID,
        status: ContentGradeStatus,
        grade_percent: Decimal | int = 0,
    ) -> ContentGrade:
        grade = ContentGrade(
            student_id=student_id,
            content_id=content.content_id,
            section_id=content.section_id,
            course_id=content.course_id,
            status=status,
            grade_percent=Decimal(grade_percent),
        )
        db_session.add(grade)
        await db_session.flush()
        return grade

    return _make


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Client whose caller is switched by setting ``async_client.user``."""
    from app.database import get_db
    from app.dependencies import get_current_user
    from app.main import app

    async def _get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        ac.user = None

        async def _get_current_user() -> CurrentUser:
            return ac.user

        app.dependency_overrides[get_db] = _get_db
        app.dependency_overrides[get_current_user] = _get_current_user
        yield ac
    app.dependency_overrides.clear()
