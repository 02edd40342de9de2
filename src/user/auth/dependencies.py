from fastapi import Depends, Request, Response

from src.core.errors.exceptions import UnauthorizedException
from src.user.auth.schemas import AuthStateModel
from src.user.auth.session import SessionTokenManager


def get_session_token_manager(request: Request) -> SessionTokenManager:
    """The manager built at application start-up."""
    manager = getattr(request.app.state, "session_manager", None)
    if manager is None:
        raise RuntimeError("Session token manager is not initialized.")
    return manager


async def get_session_auth(
    request: Request,
    response: Response,
    manager: SessionTokenManager = Depends(get_session_token_manager),
) -> AuthStateModel | None:
    """
    Authenticated state of the request, None for anonymous callers.

    Runs the session verification, so a renewed cookie is written to the
    response of whatever endpoint depends on this.
    """
    if not await manager.verify(request, response):
        return None
    return AuthStateModel.model_validate(request.state.auth)


async def get_current_auth(
    auth: AuthStateModel | None = Depends(get_session_auth),
) -> AuthStateModel:
    if auth is None:
        raise UnauthorizedException("Authentication required.")
    return auth
