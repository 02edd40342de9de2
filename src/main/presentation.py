from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from src.core.errors.exceptions import (
    AccessForbiddenException,
    CoreException,
    InfrastructureException,
    InstanceAlreadyExistsException,
    InstanceNotFoundException,
    InstanceProcessingException,
    NotAcceptableException,
    PermissionDeniedException,
    SessionRejectedException,
    SessionVerificationError,
    UnauthorizedException,
)
from src.core.errors.handlers import (
    AccessForbiddenExceptionHandler,
    CoreExceptionHandler,
    InfrastructureExceptionHandler,
    InstanceAlreadyExistsExceptionHandler,
    InstanceNotFoundExceptionHandler,
    InstanceProcessingExceptionHandler,
    NotAcceptableExceptionHandler,
    PermissionDeniedExceptionHandler,
    RequestValidationExceptionHandler,
    SessionRejectedExceptionHandler,
    SessionVerificationErrorHandler,
    UnauthorizedExceptionHandler,
    ValidationErrorExceptionHandler,
    as_exception_handler,
)
from src.system import routers as system_routers
from src.user import routers as user_routers
from src.user.auth import routers as auth_routers


def include_routers(app: FastAPI) -> None:
    """
    Mounts the versioned API under /v1 and the system routes at the root.
    """
    v1_router = APIRouter()
    v1_router.include_router(auth_routers.router, prefix="/auth", tags=["Auth"])
    v1_router.include_router(user_routers.router, prefix="/users", tags=["Users"])

    app.include_router(v1_router, prefix="/v1")
    app.include_router(system_routers.router, tags=["System"])


def include_exceptions_handlers(app: FastAPI) -> None:
    """
    Registers the handlers of the application exceptions.

    Starlette resolves a handler by walking the exception's MRO, so the
    session exceptions reach their own handlers rather than their parents'.
    """
    handlers = (
        (SessionVerificationError, SessionVerificationErrorHandler()),
        (InfrastructureException, InfrastructureExceptionHandler()),
        (RequestValidationError, RequestValidationExceptionHandler()),
        (ValidationError, ValidationErrorExceptionHandler()),
        (InstanceNotFoundException, InstanceNotFoundExceptionHandler()),
        (InstanceAlreadyExistsException, InstanceAlreadyExistsExceptionHandler()),
        (InstanceProcessingException, InstanceProcessingExceptionHandler()),
        (CoreException, CoreExceptionHandler()),
        (AccessForbiddenException, AccessForbiddenExceptionHandler()),
        (SessionRejectedException, SessionRejectedExceptionHandler()),
        (UnauthorizedException, UnauthorizedExceptionHandler()),
        (NotAcceptableException, NotAcceptableExceptionHandler()),
        (PermissionDeniedException, PermissionDeniedExceptionHandler()),
    )
    for exception_class, handler in handlers:
        app.add_exception_handler(exception_class, as_exception_handler(handler))
