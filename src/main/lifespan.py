from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from loggers import get_logger
from src.core.limiter import FastAPILimiter
from src.core.redis.lifecycle import (
    create_redis_client,
    on_redis_shutdown,
    on_redis_startup,
)
from src.main.config import config
from src.main.sentry import init_sentry

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    init_sentry()
    await on_redis_startup(app, config.redis.dsn)
    await FastAPILimiter.init(create_redis_client(config.redis.dsn))
    logger.info("Application started.")

    yield

    await FastAPILimiter.close()
    await on_redis_shutdown(app)
    logger.info("Application stopped.")
