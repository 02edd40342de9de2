"""
Cookie-borne session tokens with silent renewal.

A session token is an HS256 JWT carrying ``sub`` (the user id), ``data`` (the
authenticated state) and the usual ``iat``/``exp``. It lives for
``SESSION_TOKEN_LIFETIME_SECONDS``; the cookie holding it lives for
``SESSION_INACTIVITY_LIMIT_SECONDS``. An expired token whose signature is still
valid and whose ``iat`` lies within the inactivity limit is exchanged for a
fresh one, provided the renewal approver agrees. The approver is the only way
to stop a session short of its natural end: a still-valid token is never
revoked, its next renewal is refused instead.
"""

from collections.abc import Awaitable
from datetime import timedelta
import inspect
from typing import Any, Protocol, runtime_checkable

from fastapi import Request, Response
import jwt

from loggers import get_logger
from src.core.errors.exceptions import (
    ConfigurationException,
    SessionRejectedException,
    SessionVerificationError,
)
from src.core.utils.datetime_utils import from_unix_seconds, get_utc_now
from src.main.config import SessionConfig

logger = get_logger(__name__)

SESSION_EXPIRED_MESSAGE = "Session expired: please sign in again"
INVALID_SIGNATURE_MESSAGE = "Invalid session signature: please sign in again"


@runtime_checkable
class RenewalApprover(Protocol):
    """Decides whether an expired session of `subject` may be renewed."""

    def __call__(self, subject: str) -> bool | Awaitable[bool]: ...


class SessionTokenManager:
    def __init__(
        self,
        settings: SessionConfig,
        approve_renewal: RenewalApprover | None = None,
    ) -> None:
        if not settings.SESSION_COOKIE_NAME:
            raise ConfigurationException("SESSION_COOKIE_NAME is not configured")
        if not settings.SESSION_SECRET_KEY:
            raise ConfigurationException("SESSION_SECRET_KEY is not configured")

        self._settings = settings
        self._approve_renewal = approve_renewal
        self.token_lifetime = timedelta(seconds=settings.SESSION_TOKEN_LIFETIME_SECONDS)
        self.inactivity_limit = timedelta(
            seconds=settings.SESSION_INACTIVITY_LIMIT_SECONDS
        )

    @property
    def cookie_name(self) -> str:
        return self._settings.SESSION_COOKIE_NAME

    async def start(
        self,
        request: Request,
        response: Response,
        subject: str,
        data: dict[str, Any],
    ) -> None:
        """Issue a session for subject and publish data as the authenticated state."""
        self._write_cookie(response, self._sign(subject, data))
        request.state.auth = data
        logger.debug("[SessionToken] Session started for subject %s.", subject)

    async def verify(self, request: Request, response: Response) -> bool:
        """
        Establish the authenticated state of the request from its session cookie.

        Returns False for anonymous requests and for refused renewals (the
        cookie is left in place then). Raises SessionRejectedException for
        tokens that can never become valid again, after deleting the cookie.
        """
        request.state.auth = None
        token = request.cookies.get(self.cookie_name)
        if not token:
            return False

        try:
            claims = self._decode(token)
        except jwt.ExpiredSignatureError:
            return await self._renew(request, response, token)
        except jwt.InvalidSignatureError as exc:
            raise self._reject(response, INVALID_SIGNATURE_MESSAGE) from exc
        except jwt.PyJWTError as exc:
            raise self._reject(response, f"{type(exc).__name__}: {exc}") from exc
        except Exception as exc:
            self.clear_cookie(response)
            raise SessionVerificationError(
                "Session token could not be verified",
                cookie_name=self.cookie_name,
                additional_info={"error": type(exc).__name__},
            ) from exc

        request.state.auth = claims["data"]
        return True

    async def cancel(self, request: Request, response: Response) -> None:
        """Forget the authenticated state and drop the cookie. Safe to repeat."""
        request.state.auth = None
        self.clear_cookie(response)

    def clear_cookie(self, response: Response) -> None:
        response.delete_cookie(
            key=self.cookie_name,
            path="/",
            secure=self._settings.SESSION_COOKIE_SECURE,
            httponly=self._settings.SESSION_COOKIE_HTTPONLY,
            samesite=self._settings.SESSION_COOKIE_SAMESITE,
        )

    async def _renew(self, request: Request, response: Response, token: str) -> bool:
        try:
            claims = self._decode(token, verify_exp=False)
        except jwt.PyJWTError as exc:
            raise self._reject(response, f"{type(exc).__name__}: {exc}") from exc

        age = get_utc_now() - from_unix_seconds(claims.pop("iat"))
        claims.pop("exp")
        if age > self.inactivity_limit:
            logger.info(
                "[SessionToken] Session of subject %s exceeded the inactivity limit.",
                claims["sub"],
            )
            raise self._reject(response, SESSION_EXPIRED_MESSAGE)

        subject, data = claims["sub"], claims["data"]
        if not await self._is_renewal_approved(subject):
            logger.info("[SessionToken] Renewal refused for subject %s.", subject)
            return False

        request.state.auth = data
        self._write_cookie(response, self._sign(subject, data))
        logger.debug("[SessionToken] Session renewed for subject %s.", subject)
        return True

    async def _is_renewal_approved(self, subject: str) -> bool:
        if self._approve_renewal is None:
            return True
        decision = self._approve_renewal(subject)
        if inspect.isawaitable(decision):
            decision = await decision
        return bool(decision)

    def _sign(self, subject: str, data: dict[str, Any]) -> str:
        now = get_utc_now()
        claims = {
            "sub": str(subject),
            "data": data,
            "iat": now,
            "exp": now + self.token_lifetime,
        }
        return jwt.encode(
            claims,
            self._settings.SESSION_SECRET_KEY,
            algorithm=self._settings.SESSION_ALGORITHM,
        )

    def _decode(self, token: str, verify_exp: bool = True) -> dict[str, Any]:
        return jwt.decode(
            token,
            self._settings.SESSION_SECRET_KEY,
            algorithms=[self._settings.SESSION_ALGORITHM],
            options={
                "require": ["sub", "data", "iat", "exp"],
                "verify_exp": verify_exp,
            },
        )

    def _write_cookie(self, response: Response, token: str) -> None:
        max_age = self._settings.SESSION_INACTIVITY_LIMIT_SECONDS
        response.set_cookie(
            key=self.cookie_name,
            value=token,
            max_age=max_age,
            expires=max_age,
            path="/",
            secure=self._settings.SESSION_COOKIE_SECURE,
            httponly=self._settings.SESSION_COOKIE_HTTPONLY,
            samesite=self._settings.SESSION_COOKIE_SAMESITE,
        )

    def _reject(self, response: Response, message: str) -> SessionRejectedException:
        self.clear_cookie(response)
        return SessionRejectedException(message, cookie_name=self.cookie_name)
