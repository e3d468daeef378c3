from shared.database.postgres import AsyncSessionFactory, atomic, get_async_session_factory
from shared.database.redis_client import RedisClient, get_redis_client

__all__ = [
    "get_async_session_factory",
    "AsyncSessionFactory",
    "atomic",
    "get_redis_client",
    "RedisClient",
]
