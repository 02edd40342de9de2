from uuid import UUID

from fastapi import Depends, Request, Response

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.schemas import SuccessResponse
from src.user.auth.dependencies import get_session_token_manager
from src.user.auth.schemas import AuthStateModel
from src.user.auth.session import SessionTokenManager

logger = get_logger(__name__)


class SignOutUseCase:
    def __init__(self, session_manager: SessionTokenManager) -> None:
        self.session_manager = session_manager

    async def execute(self, request: Request, response: Response) -> SuccessResponse:
        await self.session_manager.cancel(request, response)
        return SuccessResponse(success=True)


class SignOutEverywhereUseCase:
    """
    Stops every session of the user from renewing.

    Tokens already issued stay valid until their own expiry (at most one
    token lifetime); after that the renewal approver refuses them.
    """

    def __init__(
        self,
        uow: ApplicationUnitOfWork,
        session_manager: SessionTokenManager,
    ) -> None:
        self.uow = uow
        self.session_manager = session_manager

    async def execute(
        self, auth: AuthStateModel, request: Request, response: Response
    ) -> SuccessResponse:
        async with self.uow as uow:
            await uow.users.update(
                uow.session, {"cancel_renewal": True}, id=UUID(auth.user_id)
            )
            await uow.commit()

        await self.session_manager.cancel(request, response)
        logger.info("[SignOutEverywhere] Renewal cancelled for user %s.", auth.user_id)
        return SuccessResponse(success=True)


def get_sign_out_use_case(
    session_manager: SessionTokenManager = Depends(get_session_token_manager),
) -> SignOutUseCase:
    return SignOutUseCase(session_manager=session_manager)


def get_sign_out_everywhere_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
    session_manager: SessionTokenManager = Depends(get_session_token_manager),
) -> SignOutEverywhereUseCase:
    return SignOutEverywhereUseCase(uow=uow, session_manager=session_manager)
