from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import app.database as database
from app.notifications.outbox import commit_and_publish, discard, enqueue, pending, publish
from shared.events.schemas import CertificateRequested


def _event() -> CertificateRequested:
    return CertificateRequested(request_id=uuid4(), student_id=uuid4(), course_id=uuid4())


@pytest.mark.asyncio
async def test_events_wait_for_commit(db_session, dispatcher) -> None:
    event = _event()
    enqueue(db_session, dispatcher, event)

    assert dispatcher.events == []
    assert pending(db_session) == [event]

    await commit_and_publish(db_session)

    assert dispatcher.events == [event]
    assert pending(db_session) == []


@pytest.mark.asyncio
async def test_failed_commit_publishes_nothing(db_session, dispatcher, monkeypatch) -> None:
    enqueue(db_session, dispatcher, _event())

    async def _failing_commit() -> None:
        raise RuntimeError("connection lost")

    monkeypatch.setattr(db_session, "commit", _failing_commit)
    with pytest.raises(RuntimeError):
        await commit_and_publish(db_session)

    assert dispatcher.events == []
    assert discard(db_session) == 1
    assert await publish(db_session) == 0


@pytest.fixture
def session_factory(db_session, monkeypatch) -> async_sessionmaker[AsyncSession]:
    factory = async_sessionmaker(bind=db_session.bind, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(database, "_session_factory", factory)
    return factory


@pytest.mark.asyncio
async def test_request_session_publishes_after_commit(session_factory, dispatcher) -> None:
    sessions = database.get_db()
    session = await anext(sessions)
    enqueue(session, dispatcher, _event())
    assert dispatcher.events == []

    with pytest.raises(StopAsyncIteration):
        await anext(sessions)

    assert dispatcher.types() == ["certificate.requested"]


@pytest.mark.asyncio
async def test_request_session_drops_events_on_error(session_factory, dispatcher) -> None:
    sessions = database.get_db()
    session = await anext(sessions)
    enqueue(session, dispatcher, _event())

    with pytest.raises(ValueError):
        await sessions.athrow(ValueError("handler failed"))

    assert dispatcher.events == []
    assert pending(session) == []
