from redis.asyncio import Redis
from redis.exceptions import RedisError
import sentry_sdk
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from loggers import get_logger
from src.core.errors.exceptions import InfrastructureException
from src.system.schemas import HealthCheckResponse

logger = get_logger(__name__)


class HealthService:
    """Pings the stores the sessions and rate limits depend on."""

    def __init__(self, redis_client: Redis) -> None:
        self.redis_client = redis_client

    async def get_status(self, session: AsyncSession) -> HealthCheckResponse:
        redis_is_ok = await self._check_redis()
        postgres_is_ok = await self._check_postgres(session)
        if not (redis_is_ok and postgres_is_ok):
            raise InfrastructureException(
                "System health check failed",
                additional_info={"redis": redis_is_ok, "postgres": postgres_is_ok},
            )
        return HealthCheckResponse(redis=redis_is_ok, postgres=postgres_is_ok)

    async def _check_redis(self) -> bool:
        try:
            return bool(await self.redis_client.ping())
        except (RedisError, OSError) as exc:
            logger.error("Redis health check failed: %s", exc)
            sentry_sdk.capture_exception(exc)
            return False

    async def _check_postgres(self, session: AsyncSession) -> bool:
        try:
            await session.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Postgres health check failed: %s", exc)
            sentry_sdk.capture_exception(exc)
            return False
