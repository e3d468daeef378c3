"""Domain events held on the session until its transaction commits.

Services call :func:`enqueue` where a state transition produces an event.
Nothing is published until the owning unit of work commits: ``get_db``
calls :func:`commit_and_publish` after the handler returns and
:func:`discard` when it rolls back.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.notifications.dispatcher import NotificationDispatcher
from shared.events.schemas import DomainEvent

logger = logging.getLogger(__name__)

_PENDING_KEY = "pending_events"


def enqueue(db: AsyncSession, dispatcher: NotificationDispatcher, event: DomainEvent) -> None:
    db.info.setdefault(_PENDING_KEY, []).append((dispatcher, event))


def pending(db: AsyncSession) -> list[DomainEvent]:
    return [event for _dispatcher, event in db.info.get(_PENDING_KEY, [])]


def discard(db: AsyncSession) -> int:
    dropped = db.info.pop(_PENDING_KEY, [])
    if dropped:
        logger.info("Discarded %s unpublished event(s) after rollback", len(dropped))
    return len(dropped)


async def publish(db: AsyncSession) -> int:
    """Hand queued events to their dispatchers; call only after a commit."""
    queued = db.info.pop(_PENDING_KEY, [])
    for dispatcher, event in queued:
        await dispatcher.dispatch(event)
    return len(queued)


async def commit_and_publish(db: AsyncSession) -> None:
    await db.commit()
    await publish(db)
