import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sentry_sdk.integrations.asgi import SentryAsgiMiddleware

from loggers import get_logger
from src.core.database.session import async_session
from src.core.middleware import register_middlewares
from src.main.config import config
from src.main.lifespan import lifespan
from src.main.presentation import include_exceptions_handlers, include_routers
from src.main.route_logging import log_routes_summary
from src.user.auth.renewal import UserRenewalApprover
from src.user.auth.session import SessionTokenManager

logging.getLogger("uvicorn.access").disabled = True
logger = get_logger(__name__)


def build_session_manager() -> SessionTokenManager:
    """Raises ConfigurationException when the cookie name or secret is missing."""
    return SessionTokenManager(
        config.session, approve_renewal=UserRenewalApprover(async_session)
    )


def add_cors(application: FastAPI) -> None:
    cors = config.app
    application.add_middleware(
        CORSMiddleware,  # noqa
        allow_origins=cors.CORS_ALLOWED_ORIGINS,
        allow_credentials=cors.CORS_ALLOW_CREDENTIALS,
        allow_methods=cors.CORS_ALLOWED_METHODS,
        allow_headers=cors.CORS_ALLOWED_HEADERS,
        expose_headers=cors.CORS_EXPOSE_HEADERS,
    )


def get_application() -> FastAPI:
    application = FastAPI(
        title=config.app.PROJECT_NAME,
        debug=config.app.DEBUG,
        version=config.app.VERSION,
        lifespan=lifespan,
    )
    application.state.session_manager = build_session_manager()

    register_middlewares(application)
    add_cors(application)
    include_exceptions_handlers(application)

    include_routers(application)
    log_routes_summary(application, include_debug_list=config.app.DEBUG)

    # Outermost, so errors from every other layer are reported
    application.add_middleware(SentryAsgiMiddleware)
    return application


app = get_application()
