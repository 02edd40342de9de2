from urllib.parse import unquote, urlsplit

from fastapi import Depends, Request, Response

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.errors.exceptions import (
    InstanceProcessingException,
    PermissionDeniedException,
)
from src.core.utils.security import mask_email
from src.user.auth.credentials import CredentialCheck, CredentialVerifier
from src.user.auth.dependencies import get_session_token_manager
from src.user.auth.schemas import AuthStateModel, SignInModel, SignInResultModel
from src.user.auth.session import SessionTokenManager
from src.user.enums import UserRole
from src.user.models import User

INVALID_CREDENTIALS_MESSAGE = "Username / password not recognised."
logger = get_logger(__name__)


def build_auth_state(user: User) -> AuthStateModel:
    return AuthStateModel(
        user_id=str(user.id),
        username=user.email,
        name=user.full_name,
        role=user.role,
    )


def is_local_path(path: str) -> bool:
    # Browsers read "\" as "/" and drop tabs and newlines inside URLs
    decoded = unquote(path)
    if "\\" in decoded or not decoded.isprintable():
        return False
    parts = urlsplit(path)
    return (
        path.startswith("/")
        and not path.startswith("//")
        and not parts.scheme
        and not parts.netloc
    )


def resolve_redirect(role: str, next_path: str | None) -> str:
    """Where the client goes after signing in; only same-site paths are honoured."""
    if next_path and is_local_path(next_path):
        return next_path
    return "/admin" if role == UserRole.ADMIN else "/"


class SignInUseCase:
    """Checks credentials and starts a cookie session."""

    def __init__(
        self,
        uow: ApplicationUnitOfWork,
        session_manager: SessionTokenManager,
        verifier: CredentialVerifier | None = None,
    ) -> None:
        self.uow = uow
        self.session_manager = session_manager
        self.verifier = verifier

    async def execute(
        self,
        data: SignInModel,
        request: Request,
        response: Response,
        next_path: str | None = None,
    ) -> SignInResultModel:
        async with self.uow as uow:
            verifier = self.verifier or CredentialVerifier(uow.users)
            result = await verifier.verify(uow.session, data.password, data.username)

            if result.status is CredentialCheck.VERIFIER_ERROR:
                # Same answer as a wrong password; the fault is logged by the verifier
                logger.error(
                    "[SignIn] Credential verification faulted for '%s'.",
                    mask_email(data.username),
                )
                raise InstanceProcessingException(INVALID_CREDENTIALS_MESSAGE)

            if not result.matched or result.user is None:
                logger.info(
                    "[SignIn] Rejected credentials for '%s'.", mask_email(data.username)
                )
                raise InstanceProcessingException(INVALID_CREDENTIALS_MESSAGE)

            user = result.user
            if not user.is_active:
                logger.info(
                    "[SignIn] User with email '%s' is blocked.",
                    mask_email(user.email),
                )
                raise PermissionDeniedException("User is blocked")

            if user.cancel_renewal:
                # A fresh sign-in lifts an earlier "sign out everywhere"
                await uow.users.update(uow.session, {"cancel_renewal": False}, id=user.id)
                await uow.commit()

        auth = build_auth_state(user)
        await self.session_manager.start(
            request, response, subject=str(user.id), data=auth.model_dump()
        )
        logger.info("[SignIn] User %s signed in.", user.id)
        return SignInResultModel(
            auth=auth, redirect_to=resolve_redirect(auth.role, next_path)
        )


def get_sign_in_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
    session_manager: SessionTokenManager = Depends(get_session_token_manager),
) -> SignInUseCase:
    return SignInUseCase(uow=uow, session_manager=session_manager)
