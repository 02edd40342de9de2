from typing import cast

from fastapi import FastAPI
from redis.asyncio import Redis

from loggers import get_logger

logger = get_logger(__name__)


def create_redis_client(connection_url: str) -> Redis:
    return cast(Redis, Redis.from_url(connection_url, decode_responses=True))


async def on_redis_startup(app: FastAPI, connection_url: str) -> None:
    """Connect, ping and publish the client on app.state.redis_client."""
    redis_client = create_redis_client(connection_url)
    if not await redis_client.ping():
        raise RuntimeError("Redis ping failed during startup")
    app.state.redis_client = redis_client
    logger.info("Redis client connected.")


async def on_redis_shutdown(app: FastAPI) -> None:
    redis_client = getattr(app.state, "redis_client", None)
    if redis_client is not None:
        await redis_client.aclose()
        app.state.redis_client = None
        logger.info("Redis client closed.")
