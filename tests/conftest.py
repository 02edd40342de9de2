from collections.abc import AsyncGenerator, Generator
import os

os.environ.setdefault("TESTING", "true")

from fastapi import FastAPI  # noqa: E402
import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from src.core.database.session import get_session, get_unit_of_work  # noqa: E402
from src.core.email_service.dependencies import get_email_service  # noqa: E402
from src.core.email_service.service import EmailService  # noqa: E402
from src.core.limiter.depends import RateLimiter  # noqa: E402
from src.core.redis.dependencies import get_redis_client  # noqa: E402
from src.main.config import Config, get_settings  # noqa: E402
from src.main.web import get_application  # noqa: E402
from src.user.auth.renewal import UserRenewalApprover  # noqa: E402
from src.user.auth.session import SessionTokenManager  # noqa: E402
from tests.email.mocks import MockMailer, RecordingEmailTask  # noqa: E402
from tests.fakes.db import FakeAsyncSession, FakeUnitOfWork  # noqa: E402
from tests.fakes.redis import InMemoryRedis  # noqa: E402
from tests.fakes.users import FakeUserRepository  # noqa: E402
from tests.helpers.limiter import noop_rate_limiter  # noqa: E402
from tests.helpers.overrides import DependencyOverrides  # noqa: E402
from tests.helpers.sessions import fake_session_factory  # noqa: E402


@pytest.fixture(scope="session")
def settings() -> Config:
    return get_settings()


@pytest.fixture
def app() -> FastAPI:
    return get_application()


@pytest.fixture
def dependency_overrides(app: FastAPI) -> Generator[DependencyOverrides]:
    overrides = DependencyOverrides(app)
    yield overrides
    overrides.reset()


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def mock_mailer() -> MockMailer:
    return MockMailer()


@pytest.fixture
def email_task() -> RecordingEmailTask:
    return RecordingEmailTask()


@pytest.fixture
def email_service(email_task: RecordingEmailTask) -> EmailService:
    return EmailService(task=email_task)


@pytest.fixture
def user_repository() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def fake_session() -> FakeAsyncSession:
    return FakeAsyncSession()


@pytest.fixture
def fake_uow(
    fake_session: FakeAsyncSession, user_repository: FakeUserRepository
) -> FakeUnitOfWork:
    return FakeUnitOfWork(session=fake_session, users=user_repository)


@pytest.fixture
def session_manager(
    settings: Config, user_repository: FakeUserRepository
) -> SessionTokenManager:
    return SessionTokenManager(
        settings.session,
        approve_renewal=UserRenewalApprover(
            fake_session_factory(), repository=user_repository  # type: ignore[arg-type]
        ),
    )


@pytest.fixture
def app_with_fakes(
    app: FastAPI,
    monkeypatch: pytest.MonkeyPatch,
    dependency_overrides: DependencyOverrides,
    fake_redis: InMemoryRedis,
    email_service: EmailService,
    fake_session: FakeAsyncSession,
    fake_uow: FakeUnitOfWork,
    session_manager: SessionTokenManager,
) -> FastAPI:
    monkeypatch.setattr(RateLimiter, "__call__", noop_rate_limiter)
    app.state.session_manager = session_manager
    dependency_overrides.value(get_redis_client, fake_redis)
    dependency_overrides.value(get_email_service, email_service)
    dependency_overrides.yielded_value(get_session, fake_session)
    dependency_overrides.value(get_unit_of_work, fake_uow)
    return app


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver"
    ) as client:
        yield client


@pytest_asyncio.fixture
async def async_client_with_fakes(
    app_with_fakes: FastAPI,
) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app_with_fakes)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver"
    ) as client:
        yield client
