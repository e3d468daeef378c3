"""Fire-and-forget publishing of course-service domain events.

Events go to a Redis pub/sub channel as JSON. Delivery (email, push,
in-app) belongs to downstream consumers. A failed publish is logged and
dropped: the state transition that produced the event has already happened.
"""

from __future__ import annotations

import logging
from typing import Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

from shared.events.schemas import DomainEvent

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    async def dispatch(self, event: DomainEvent) -> None: ...


class RedisDispatcher:
    def __init__(self, redis: Redis, channel: str) -> None:
        self._redis = redis
        self._channel = channel

    async def dispatch(self, event: DomainEvent) -> None:
        try:
            await self._redis.publish(self._channel, event.model_dump_json())
        except (RedisError, OSError):
            logger.warning(
                "Failed to publish %s on %s", event.event_type, self._channel, exc_info=True,
            )


class NullDispatcher:
    """Used when no channel is configured; events are only logged."""

    async def dispatch(self, event: DomainEvent) -> None:
        logger.debug("Dropping event %s (no dispatcher configured)", event.event_type)
