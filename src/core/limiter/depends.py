from collections.abc import Awaitable
from typing import Annotated, Any, cast

from fastapi import Request, Response
from pydantic import Field
import redis.exceptions as redisExc

from loggers import get_logger
from src.core.limiter import FastAPILimiter, Identifier, LimitCallback

logger = get_logger(__name__)


class RateLimiter:
    """
    Per-endpoint rate limit dependency.

    The counter lives in Redis and is updated by a Lua script, so concurrent
    workers share one window. When Redis is unreachable the request is let
    through and the failure is logged.
    """

    def __init__(
        self,
        times: Annotated[int, Field(ge=1)] = 1,
        milliseconds: Annotated[int, Field(ge=0)] = 0,
        seconds: Annotated[int, Field(ge=0)] = 0,
        minutes: Annotated[int, Field(ge=0)] = 0,
        hours: Annotated[int, Field(ge=0)] = 0,
        identifier: Identifier | None = None,
        callback: LimitCallback | None = None,
    ) -> None:
        self.times = times
        self.milliseconds = (
            milliseconds + 1000 * seconds + 60_000 * minutes + 3_600_000 * hours
        )
        if self.milliseconds <= 0:
            raise ValueError("Rate limiter window must be greater than 0ms.")

        # Resolved per call so a later FastAPILimiter.init() is honoured
        self.identifier = identifier
        self.callback = callback

    async def _evalsha(self, key: str) -> int:
        redis = cast(Any, FastAPILimiter.redis)
        result = await cast(
            Awaitable[Any],
            redis.evalsha(
                FastAPILimiter.lua_sha, 1, key, str(self.times), str(self.milliseconds)
            ),
        )
        return int(result)

    async def _check_limit(self, key: str) -> int:
        if FastAPILimiter.redis is None:
            raise RuntimeError("Redis is not connected.")

        try:
            try:
                return await self._evalsha(key)
            except redisExc.NoScriptError:
                await FastAPILimiter.load_script()
                return await self._evalsha(key)
        except (redisExc.ConnectionError, redisExc.RedisError) as e:
            logger.error("[RateLimiter] Redis unavailable: %s. Skipping rate limit.", e)
            return 0

    async def __call__(self, request: Request, response: Response) -> None:
        if not FastAPILimiter.is_initialized():
            raise RuntimeError("FastAPILimiter must be initialized before use.")

        identifier = self.identifier or FastAPILimiter.identifier
        callback = self.callback or FastAPILimiter.http_callback

        rate_key = await identifier(request)
        endpoint_name = request.scope["endpoint"].__name__
        key = f"{FastAPILimiter.prefix}:{rate_key}:{endpoint_name}"
        pexpire = await self._check_limit(key)

        if pexpire != 0:
            logger.warning(
                "[RateLimiter] Limit exceeded for key %s, retry after %sms", key, pexpire
            )
            await callback(request, response, pexpire)
