from collections.abc import Awaitable, Callable
from math import ceil
from typing import Any, cast

from fastapi import HTTPException, Request, Response, status
import redis.asyncio as aredis

from loggers import get_logger
from src.core.limiter.script import lua_script
from src.main.config import config

logger = get_logger(__name__)

Identifier = Callable[[Request], Awaitable[str]]
LimitCallback = Callable[[Request, Response, int], Awaitable[None]]


def client_ip(request: Request) -> str:
    if config.app.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.client.host if request.client else "unknown"


async def default_identifier(request: Request) -> str:
    """Rate limit key of a request: client IP and path."""
    return f"{client_ip(request)}:{request.scope['path']}"


async def http_default_callback(
    request: Request, response: Response, pexpire: int
) -> None:
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Too Many Requests",
        headers={"Retry-After": str(ceil(pexpire / 1000))},
    )


class FastAPILimiter:
    """
    Process-wide limiter state, set up once in the application lifespan.

    The limiter owns its Redis client and closes it on shutdown.
    """

    redis: aredis.Redis | None = None
    prefix: str = "limiter"
    lua_sha: str | None = None
    identifier: Identifier = default_identifier
    http_callback: LimitCallback = http_default_callback
    lua_script: str = lua_script

    @classmethod
    async def init(cls, redis_client: aredis.Redis, prefix: str | None = None) -> None:
        cls.redis = redis_client
        cls.prefix = prefix or cls.prefix
        try:
            await cls.load_script()
        except Exception as e:
            logger.error("Failed to load rate limiter script: %s", e)
            raise RuntimeError(f"Failed to load rate limiter script: {e}") from e
        logger.info("Rate limiter initialized with prefix '%s'.", cls.prefix)

    @classmethod
    async def load_script(cls) -> str:
        """(Re)load the fixed-window script; Redis may drop it on SCRIPT FLUSH."""
        if cls.redis is None:
            raise RuntimeError("Redis is not connected.")
        cls.lua_sha = await cast(Any, cls.redis).script_load(cls.lua_script)
        return cast(str, cls.lua_sha)

    @classmethod
    async def close(cls) -> None:
        if cls.redis is not None:
            await cls.redis.aclose()
        cls.redis = None
        cls.lua_sha = None

    @classmethod
    def is_initialized(cls) -> bool:
        return cls.redis is not None and cls.lua_sha is not None
