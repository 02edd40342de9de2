from __future__ import annotations

from datetime import timedelta
from typing import Any

import jwt
import pytest
from starlette.responses import Response

from src.core.errors.exceptions import (
    ConfigurationException,
    SessionRejectedException,
    SessionVerificationError,
)
from src.core.utils.datetime_utils import from_unix_seconds, get_utc_now
from src.user.auth.session import (
    INVALID_SIGNATURE_MESSAGE,
    SESSION_EXPIRED_MESSAGE,
    SessionTokenManager,
)
from tests.helpers.cookies import cookie_value, find_cookie, is_deletion, set_cookie_headers
from tests.helpers.requests import build_request
from tests.helpers.sessions import encode_session_token, make_session_config

SUBJECT = "7b0f3c1e-5d1a-4e8e-9c57-2f9a1d3b6c10"
AUTH_DATA: dict[str, Any] = {
    "user_id": SUBJECT,
    "username": "alice@example.com",
    "name": "Alice Liddell",
    "role": "guest",
}


@pytest.fixture
def settings():
    return make_session_config()


def expired_token(settings, *, age: timedelta) -> str:
    issued_at = get_utc_now() - age
    return encode_session_token(
        settings,
        subject=SUBJECT,
        data=AUTH_DATA,
        issued_at=issued_at,
        expires_at=issued_at + timedelta(seconds=settings.SESSION_TOKEN_LIFETIME_SECONDS),
    )


def session_cookie(response: Response, name: str = "session") -> str | None:
    return find_cookie(set_cookie_headers(response), name)


def test_missing_cookie_name_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationException):
        SessionTokenManager(make_session_config(SESSION_COOKIE_NAME=""))


def test_missing_secret_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationException):
        SessionTokenManager(make_session_config(SESSION_SECRET_KEY=""))


@pytest.mark.asyncio
async def test_start_writes_cookie_and_publishes_auth(settings) -> None:
    manager = SessionTokenManager(settings)
    request, response = build_request(), Response()

    await manager.start(request, response, subject=SUBJECT, data=AUTH_DATA)

    header = session_cookie(response)
    assert header is not None
    assert f"max-age={settings.SESSION_INACTIVITY_LIMIT_SECONDS}" in header.lower()
    assert "samesite=strict" in header.lower()
    assert "path=/" in header.lower()
    assert "httponly" not in header.lower()
    assert request.state.auth == AUTH_DATA


@pytest.mark.asyncio
async def test_verify_after_start_returns_same_payload(settings) -> None:
    manager = SessionTokenManager(settings)
    start_response = Response()
    await manager.start(build_request(), start_response, subject=SUBJECT, data=AUTH_DATA)
    token = cookie_value(session_cookie(start_response))

    request, response = build_request(cookies={"session": token}), Response()
    assert await manager.verify(request, response) is True

    assert request.state.auth == AUTH_DATA
    # Fast path does not touch the cookie
    assert session_cookie(response) is None


@pytest.mark.asyncio
async def test_signed_token_carries_lifetime_window(settings) -> None:
    manager = SessionTokenManager(settings)
    response = Response()
    await manager.start(build_request(), response, subject=SUBJECT, data=AUTH_DATA)

    claims = jwt.decode(
        cookie_value(session_cookie(response)),
        settings.SESSION_SECRET_KEY,
        algorithms=["HS256"],
    )
    assert claims["sub"] == SUBJECT
    assert claims["data"] == AUTH_DATA
    assert claims["exp"] - claims["iat"] == settings.SESSION_TOKEN_LIFETIME_SECONDS


@pytest.mark.asyncio
async def test_verify_without_cookie_is_anonymous(settings) -> None:
    manager = SessionTokenManager(settings)
    request, response = build_request(), Response()

    assert await manager.verify(request, response) is False
    assert request.state.auth is None
    assert session_cookie(response) is None


@pytest.mark.asyncio
async def test_expired_token_within_inactivity_limit_is_renewed(settings) -> None:
    manager = SessionTokenManager(settings)
    token = expired_token(settings, age=timedelta(hours=2))
    request, response = build_request(cookies={"session": token}), Response()

    before = get_utc_now().replace(microsecond=0)
    assert await manager.verify(request, response) is True

    assert request.state.auth == AUTH_DATA
    header = session_cookie(response)
    assert header is not None and not is_deletion(header)
    renewed = cookie_value(header)
    assert renewed != token
    claims = jwt.decode(renewed, settings.SESSION_SECRET_KEY, algorithms=["HS256"])
    assert from_unix_seconds(claims["iat"]) >= before
    assert claims["exp"] - claims["iat"] == settings.SESSION_TOKEN_LIFETIME_SECONDS
    assert claims["data"] == AUTH_DATA
    assert "iat" not in claims["data"] and "exp" not in claims["data"]


@pytest.mark.asyncio
async def test_refused_renewal_is_anonymous_and_keeps_cookie(settings) -> None:
    decisions: list[str] = []

    def deny(subject: str) -> bool:
        decisions.append(subject)
        return False

    manager = SessionTokenManager(settings, approve_renewal=deny)
    token = expired_token(settings, age=timedelta(hours=5))

    for _ in range(2):
        request, response = build_request(cookies={"session": token}), Response()
        assert await manager.verify(request, response) is False
        assert request.state.auth is None
        assert session_cookie(response) is None

    assert decisions == [SUBJECT, SUBJECT]


@pytest.mark.asyncio
async def test_async_approver_is_awaited(settings) -> None:
    async def approve(subject: str) -> bool:
        return subject == SUBJECT

    manager = SessionTokenManager(settings, approve_renewal=approve)
    token = expired_token(settings, age=timedelta(days=3))
    request = build_request(cookies={"session": token})

    assert await manager.verify(request, Response()) is True
    assert request.state.auth == AUTH_DATA


@pytest.mark.asyncio
async def test_approver_is_not_consulted_for_valid_tokens(settings) -> None:
    def approve(subject: str) -> bool:
        raise AssertionError("approver must only run on renewal")

    manager = SessionTokenManager(settings, approve_renewal=approve)
    start_response = Response()
    await manager.start(build_request(), start_response, subject=SUBJECT, data=AUTH_DATA)
    token = cookie_value(session_cookie(start_response))

    assert await manager.verify(build_request(cookies={"session": token}), Response())


@pytest.mark.asyncio
async def test_token_older_than_inactivity_limit_is_rejected(settings) -> None:
    manager = SessionTokenManager(settings)
    token = expired_token(settings, age=timedelta(days=31))
    request, response = build_request(cookies={"session": token}), Response()

    with pytest.raises(SessionRejectedException) as exc_info:
        await manager.verify(request, response)

    assert exc_info.value.message == SESSION_EXPIRED_MESSAGE
    assert exc_info.value.cookie_name == "session"
    assert is_deletion(session_cookie(response))
    assert request.state.auth is None


@pytest.mark.asyncio
async def test_foreign_signature_is_rejected(settings) -> None:
    manager = SessionTokenManager(settings)
    now = get_utc_now()
    token = encode_session_token(
        settings,
        subject=SUBJECT,
        data=AUTH_DATA,
        issued_at=now,
        expires_at=now + timedelta(hours=1),
        secret="another-secret-key-of-at-least-32b",
    )
    response = Response()

    with pytest.raises(SessionRejectedException) as exc_info:
        await manager.verify(build_request(cookies={"session": token}), response)

    assert exc_info.value.message == INVALID_SIGNATURE_MESSAGE
    assert is_deletion(session_cookie(response))


@pytest.mark.asyncio
async def test_expired_token_with_foreign_signature_is_not_renewed(settings) -> None:
    manager = SessionTokenManager(settings)
    issued_at = get_utc_now() - timedelta(hours=3)
    token = encode_session_token(
        settings,
        subject=SUBJECT,
        data=AUTH_DATA,
        issued_at=issued_at,
        expires_at=issued_at + timedelta(hours=1),
        secret="another-secret-key-of-at-least-32b",
    )

    with pytest.raises(SessionRejectedException) as exc_info:
        await manager.verify(build_request(cookies={"session": token}), Response())

    assert exc_info.value.message == INVALID_SIGNATURE_MESSAGE


@pytest.mark.asyncio
async def test_malformed_token_is_rejected_with_distinct_message(settings) -> None:
    manager = SessionTokenManager(settings)
    response = Response()

    with pytest.raises(SessionRejectedException) as exc_info:
        await manager.verify(build_request(cookies={"session": "garbage"}), response)

    assert exc_info.value.message != INVALID_SIGNATURE_MESSAGE
    assert exc_info.value.message.startswith("DecodeError")
    assert is_deletion(session_cookie(response))


@pytest.mark.asyncio
async def test_token_missing_required_claim_is_rejected(settings) -> None:
    manager = SessionTokenManager(settings)
    now = get_utc_now()
    token = jwt.encode(
        {"sub": SUBJECT, "iat": now, "exp": now + timedelta(hours=1)},
        settings.SESSION_SECRET_KEY,
        algorithm="HS256",
    )

    with pytest.raises(SessionRejectedException) as exc_info:
        await manager.verify(build_request(cookies={"session": token}), Response())

    assert "data" in exc_info.value.message


@pytest.mark.asyncio
async def test_unexpected_decoding_failure_propagates_and_clears_cookie(
    settings, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = SessionTokenManager(settings)

    def explode(token: str, verify_exp: bool = True) -> dict[str, Any]:
        raise RuntimeError("hmac backend unavailable")

    monkeypatch.setattr(manager, "_decode", explode)
    response = Response()

    with pytest.raises(SessionVerificationError) as exc_info:
        await manager.verify(build_request(cookies={"session": "a.b.c"}), response)

    assert exc_info.value.cookie_name == "session"
    assert exc_info.value.additional_info == {"error": "RuntimeError"}
    assert is_deletion(session_cookie(response))


@pytest.mark.asyncio
async def test_cancel_is_idempotent(settings) -> None:
    manager = SessionTokenManager(settings)
    request = build_request()
    await manager.start(request, Response(), subject=SUBJECT, data=AUTH_DATA)

    for _ in range(2):
        response = Response()
        await manager.cancel(request, response)
        assert request.state.auth is None
        assert is_deletion(session_cookie(response))


@pytest.mark.asyncio
async def test_concurrent_renewals_both_succeed(settings) -> None:
    manager = SessionTokenManager(settings)
    token = expired_token(settings, age=timedelta(hours=1, minutes=5))

    first, second = Response(), Response()
    assert await manager.verify(build_request(cookies={"session": token}), first)
    assert await manager.verify(build_request(cookies={"session": token}), second)

    for response in (first, second):
        renewed = cookie_value(session_cookie(response))
        claims = jwt.decode(renewed, settings.SESSION_SECRET_KEY, algorithms=["HS256"])
        assert claims["data"] == AUTH_DATA
