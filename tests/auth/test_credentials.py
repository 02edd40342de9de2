from __future__ import annotations

import pytest

from src.core.utils.security import pwd_context, verify_password
from src.user.auth import credentials as credentials_module
from src.user.auth.credentials import (
    DUMMY_PASSWORD_HASH,
    CredentialCheck,
    CredentialVerifier,
)
from tests.factories.user_factory import DEFAULT_PASSWORD, build_user
from tests.fakes.db import FakeAsyncSession
from tests.fakes.users import FakeUserRepository


@pytest.fixture
def hash_calls(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Records every stored hash the verifier runs argon2 against."""
    calls: list[str] = []

    async def recording_verify(plain: str, hashed: str) -> bool:
        calls.append(hashed)
        return await verify_password(plain, hashed)

    monkeypatch.setattr(credentials_module, "verify_password", recording_verify)
    return calls


def test_dummy_hash_is_a_regular_argon2_hash() -> None:
    assert pwd_context.identify(DUMMY_PASSWORD_HASH) == "argon2"
    assert DUMMY_PASSWORD_HASH.startswith("$argon2id$v=19$m=65536,t=3,p=2$")


@pytest.mark.asyncio
async def test_correct_password_matches(hash_calls: list[str]) -> None:
    user = build_user()
    verifier = CredentialVerifier(FakeUserRepository(user))

    result = await verifier.verify(FakeAsyncSession(), DEFAULT_PASSWORD, "alice@example.com")

    assert result.status is CredentialCheck.MATCH
    assert result.matched is True
    assert result.user is user
    assert hash_calls == [user.password_hash]


@pytest.mark.asyncio
async def test_identity_key_is_normalised() -> None:
    user = build_user()
    verifier = CredentialVerifier(FakeUserRepository(user))

    result = await verifier.verify(
        FakeAsyncSession(), DEFAULT_PASSWORD, "  Alice@Example.COM "
    )

    assert result.matched is True


@pytest.mark.asyncio
async def test_wrong_password_and_unknown_identity_are_indistinguishable(
    hash_calls: list[str],
) -> None:
    user = build_user()
    verifier = CredentialVerifier(FakeUserRepository(user))

    wrong_password = await verifier.verify(
        FakeAsyncSession(), "Wrong-Horse1!", "alice@example.com"
    )
    unknown_identity = await verifier.verify(
        FakeAsyncSession(), DEFAULT_PASSWORD, "mallory@example.com"
    )

    assert wrong_password.status is CredentialCheck.NO_MATCH
    assert unknown_identity.status is CredentialCheck.NO_MATCH
    assert wrong_password.user is None and unknown_identity.user is None
    # Both paths ran a full argon2 verification
    assert hash_calls == [user.password_hash, DUMMY_PASSWORD_HASH]


@pytest.mark.asyncio
async def test_user_without_password_is_checked_against_dummy_hash(
    hash_calls: list[str],
) -> None:
    user = build_user(password=None)
    verifier = CredentialVerifier(FakeUserRepository(user))

    result = await verifier.verify(FakeAsyncSession(), "", "alice@example.com")

    assert result.status is CredentialCheck.NO_MATCH
    assert hash_calls == [DUMMY_PASSWORD_HASH]


@pytest.mark.asyncio
async def test_corrupt_stored_hash_is_a_verifier_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    captured: list[BaseException] = []
    monkeypatch.setattr(
        credentials_module.sentry_sdk, "capture_exception", captured.append
    )
    user = build_user(password_hash="not-a-password-hash")
    verifier = CredentialVerifier(FakeUserRepository(user))

    result = await verifier.verify(FakeAsyncSession(), DEFAULT_PASSWORD, user.email)

    assert result.status is CredentialCheck.VERIFIER_ERROR
    assert result.matched is False
    assert result.user is user
    assert len(captured) == 1 and isinstance(captured[0], ValueError)


@pytest.mark.asyncio
async def test_broken_dummy_hash_still_yields_no_match(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(credentials_module, "DUMMY_PASSWORD_HASH", "$argon2id$broken")
    verifier = CredentialVerifier(FakeUserRepository())

    result = await verifier.verify(FakeAsyncSession(), "whatever", "nobody@example.com")

    assert result.status is CredentialCheck.NO_MATCH
