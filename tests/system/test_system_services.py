from __future__ import annotations

from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from src.core.errors.exceptions import InfrastructureException
from src.system.services import HealthService
from tests.fakes.db import FakeAsyncSession
from tests.fakes.redis import InMemoryRedis


@pytest.fixture
def sentry_mock(monkeypatch: pytest.MonkeyPatch) -> Mock:
    mock = Mock()
    monkeypatch.setattr("src.system.services.sentry_sdk.capture_exception", mock)
    return mock


@pytest.mark.asyncio
async def test_health_service_ok(sentry_mock: Mock) -> None:
    service = HealthService(redis_client=InMemoryRedis())  # type: ignore[arg-type]

    result = await service.get_status(session=FakeAsyncSession())  # type: ignore[arg-type]

    assert result.model_dump() == {"status": "ok", "redis": True, "postgres": True}
    sentry_mock.assert_not_called()


@pytest.mark.asyncio
async def test_health_service_redis_failure(sentry_mock: Mock) -> None:
    service = HealthService(redis_client=InMemoryRedis(healthy=False))  # type: ignore[arg-type]

    with pytest.raises(InfrastructureException) as exc_info:
        await service.get_status(session=FakeAsyncSession())  # type: ignore[arg-type]

    assert exc_info.value.additional_info == {"redis": False, "postgres": True}
    sentry_mock.assert_called_once()


@pytest.mark.asyncio
async def test_health_service_postgres_failure(sentry_mock: Mock) -> None:
    session = FakeAsyncSession()
    session.execute = AsyncMock(side_effect=SQLAlchemyError("fail"))
    service = HealthService(redis_client=InMemoryRedis())  # type: ignore[arg-type]

    with pytest.raises(InfrastructureException) as exc_info:
        await service.get_status(session=session)  # type: ignore[arg-type]

    assert exc_info.value.additional_info == {"redis": True, "postgres": False}
    sentry_mock.assert_called_once()
