from __future__ import annotations

from fastapi import FastAPI
from fastapi.routing import APIRoute
import pytest
from fastapi.middleware.cors import CORSMiddleware
from sentry_sdk.integrations.asgi import SentryAsgiMiddleware

from src.core.errors.exceptions import (
    ConfigurationException,
    SessionRejectedException,
    SessionVerificationError,
    UnauthorizedException,
)
from src.main.presentation import include_exceptions_handlers, include_routers
from src.main.config import config
from src.main.web import get_application
from src.user.auth.session import SessionTokenManager


def test_include_routers_registers_expected_paths() -> None:
    app = FastAPI()
    include_routers(app)

    paths = {route.path for route in app.routes if isinstance(route, APIRoute)}

    assert {
        "/v1/auth/sign-in",
        "/v1/auth/sign-out",
        "/v1/auth/sign-out/all",
        "/v1/auth/session",
        "/v1/auth/register",
        "/v1/auth/register/available",
        "/v1/auth/password/reset-request",
        "/v1/auth/password/reset/{token}",
        "/v1/users/me",
        "/health/",
        "/time/",
    } <= paths


def test_include_exceptions_handlers_registers_session_handlers() -> None:
    app = FastAPI()
    include_exceptions_handlers(app)

    assert UnauthorizedException in app.exception_handlers
    assert SessionRejectedException in app.exception_handlers
    assert SessionVerificationError in app.exception_handlers


def test_get_application_builds_session_manager_and_middlewares() -> None:
    app = get_application()

    middleware_classes = {middleware.cls for middleware in app.user_middleware}

    assert isinstance(app.state.session_manager, SessionTokenManager)
    assert CORSMiddleware in middleware_classes
    assert SentryAsgiMiddleware in middleware_classes
    assert isinstance(app.openapi(), dict)


def test_get_application_refuses_to_start_without_session_secret(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(config.session, "SESSION_SECRET_KEY", "")

    with pytest.raises(ConfigurationException, match="SESSION_SECRET_KEY"):
        get_application()
