from typing import cast

from fastapi import Request
from redis.asyncio import Redis


async def get_redis_client(request: Request) -> Redis:
    """The client opened in the application lifespan."""
    redis_client = getattr(request.app.state, "redis_client", None)
    if redis_client is None:
        raise RuntimeError("Redis client is not initialized.")
    return cast(Redis, redis_client)
