from __future__ import annotations

import pytest
from starlette.responses import Response

from src.core.errors.exceptions import (
    InstanceAlreadyExistsException,
    InstanceNotFoundException,
)
from src.user.auth.session import SessionTokenManager
from src.user.auth.usecases.sign_in import build_auth_state
from src.user.schemas import UpdateProfileModel
from src.user.usecases.profile import GetProfileUseCase, UpdateProfileUseCase
from tests.factories.user_factory import build_user
from tests.fakes.db import FakeUnitOfWork
from tests.fakes.users import FakeUserRepository
from tests.helpers.cookies import find_cookie, set_cookie_headers
from tests.helpers.requests import build_request


@pytest.mark.asyncio
async def test_get_profile(
    fake_uow: FakeUnitOfWork, user_repository: FakeUserRepository
) -> None:
    user = user_repository.add(build_user(password=None))

    profile = await GetProfileUseCase(fake_uow).execute(build_auth_state(user))

    assert profile.id == user.id
    assert profile.email == "alice@example.com"


@pytest.mark.asyncio
async def test_get_profile_of_deleted_user(fake_uow: FakeUnitOfWork) -> None:
    ghost = build_user(password=None)

    with pytest.raises(InstanceNotFoundException):
        await GetProfileUseCase(fake_uow).execute(build_auth_state(ghost))


@pytest.mark.asyncio
async def test_update_profile_reissues_session(
    fake_uow: FakeUnitOfWork,
    user_repository: FakeUserRepository,
    session_manager: SessionTokenManager,
) -> None:
    user = user_repository.add(build_user(password=None))
    request, response = build_request(method="PATCH"), Response()

    profile = await UpdateProfileUseCase(fake_uow, session_manager).execute(
        build_auth_state(user),
        UpdateProfileModel(first_name="Alicia", email="Alicia@Example.com"),
        request,
        response,
    )

    assert profile.first_name == "Alicia"
    assert profile.last_name == "Liddell"
    assert user.email == "alicia@example.com"
    assert request.state.auth["name"] == "Alicia Liddell"
    assert request.state.auth["username"] == "alicia@example.com"
    assert find_cookie(set_cookie_headers(response), "session") is not None


@pytest.mark.asyncio
async def test_update_profile_rejects_someone_elses_email(
    fake_uow: FakeUnitOfWork,
    user_repository: FakeUserRepository,
    session_manager: SessionTokenManager,
) -> None:
    user = user_repository.add(build_user(password=None))
    user_repository.add(build_user(email="bob@example.com", password=None))

    with pytest.raises(InstanceAlreadyExistsException):
        await UpdateProfileUseCase(fake_uow, session_manager).execute(
            build_auth_state(user),
            UpdateProfileModel(email="bob@example.com"),
            build_request(method="PATCH"),
            Response(),
        )

    assert user.email == "alice@example.com"
