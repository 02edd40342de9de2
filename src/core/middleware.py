from collections.abc import Awaitable, Callable
from dataclasses import dataclass
import re
import time
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import sentry_sdk
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.responses import Response

from loggers import get_logger
from src.core.errors.handlers import (
    format_error_response,
    html_error_page,
    prefers_html,
)
from src.core.utils.security import RESET_LINK_PATTERN, mask_reset_link

logger = get_logger(__name__)
timing_logger = get_logger("src.request.timing", plain_format=True)
UNEXPECTED_ERROR_DETAIL = "Unexpected error"


@dataclass(slots=True)
class PostgresqlErrorHandlingResult:
    response: JSONResponse
    send_to_sentry: bool
    is_server_error: bool


def register_middlewares(app: FastAPI) -> None:
    """Registers all custom middlewares in proper order"""

    @app.middleware("http")
    async def security_headers_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Content-Security-Policy", "frame-ancestors 'none'")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        if "set-cookie" in response.headers:
            response.headers["Cache-Control"] = "no-store"
        if RESET_LINK_PATTERN.search(request.url.path):
            response.headers["Referrer-Policy"] = "no-referrer"
        return response

    @app.middleware("http")
    async def request_timing_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        # Sign-in and password reset hash on purpose, so allow them more time
        fast_threshold = 1.0 if request.method == "POST" else 0.5
        if process_time < fast_threshold:
            level = timing_logger.info
            category = "[FAST]"
        elif process_time < 3:
            level = timing_logger.warning
            category = "[MODERATE]"
        else:
            level = timing_logger.warning
            category = "[SLOW]"

        path = mask_reset_link(request.url.path)

        level(
            f"{category} {request.method} {path} "
            f"|{process_time:.3f}s|{response.status_code}"
        )
        return response

    @app.middleware("http")
    async def database_error_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except IntegrityError as exc:
            handled_result = handle_postgresql_error(exc)
            log_message = f"Integrity error at {request.url.path}: {str(exc.orig)}"
            if handled_result.is_server_error:
                logger.error(log_message, exc_info=True)
            else:
                logger.info(log_message)
            if handled_result.send_to_sentry:
                sentry_sdk.capture_exception(exc)
            return handled_result.response
        except OperationalError as e:
            logger.error(
                f"Database connection error at {request.url.path}: {str(e.orig)}"
            )
            sentry_sdk.capture_exception(e)
            return JSONResponse(
                status_code=503,
                content=format_error_response(
                    "Database unavailable", "Please try again later."
                ),
            )

    @app.middleware("http")
    async def unexpected_error_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                "Unexpected error at %s: %s\n%s",
                request.url.path,
                str(e),
                traceback.format_exc(),
            )
            sentry_sdk.capture_exception(e)
            if prefers_html(request):
                return html_error_page(
                    500, "Internal server error", UNEXPECTED_ERROR_DETAIL
                )
            return JSONResponse(
                status_code=500, content={"detail": UNEXPECTED_ERROR_DETAIL}
            )


def handle_postgresql_error(
    error: IntegrityError,
) -> PostgresqlErrorHandlingResult:
    """
    Map an IntegrityError to a response, a Sentry flag and a log severity.

    Unique violations are the only client-caused case here (e-mail or reset
    token collisions); everything else is a server bug.
    """
    orig_error = error.orig
    sqlstate = getattr(orig_error, "sqlstate", None)
    detail_message = getattr(orig_error, "detail", None) or ""

    if sqlstate == "23505":  # UniqueViolation
        match = re.search(r"\(([^)]+)\)=", detail_message)
        field = match.group(1) if match else "value"
        return PostgresqlErrorHandlingResult(
            response=JSONResponse(
                status_code=409,
                content=format_error_response(
                    "Instance already exists", f"The {field} is already in use."
                ),
            ),
            send_to_sentry=False,
            is_server_error=False,
        )

    return PostgresqlErrorHandlingResult(
        response=JSONResponse(
            status_code=500, content={"detail": UNEXPECTED_ERROR_DETAIL}
        ),
        send_to_sentry=True,
        is_server_error=True,
    )
