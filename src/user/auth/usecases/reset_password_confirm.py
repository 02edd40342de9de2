from fastapi import Depends

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.errors.exceptions import InstanceProcessingException
from src.core.schemas import SuccessResponse
from src.core.utils.security import hash_password_async
from src.user.auth.reset_tokens import get_user_for_reset_token
from src.user.auth.schemas import ResetPasswordModel

# One message for unknown, expired and already used tokens
BAD_RESET_TOKEN_MESSAGE = "Bad or expired password reset token."
logger = get_logger(__name__)


class ResetPasswordValidateUseCase:
    """Checks a reset link before the client shows the new-password form."""

    def __init__(self, uow: ApplicationUnitOfWork) -> None:
        self.uow = uow

    async def execute(self, token: str) -> SuccessResponse:
        async with self.uow as uow:
            user = await get_user_for_reset_token(uow, token)
        if user is None:
            raise InstanceProcessingException(BAD_RESET_TOKEN_MESSAGE)
        return SuccessResponse(success=True)


class ResetPasswordConfirmUseCase:
    """Sets a new password and burns the reset token in the same update."""

    def __init__(self, uow: ApplicationUnitOfWork) -> None:
        self.uow = uow

    async def execute(self, token: str, data: ResetPasswordModel) -> SuccessResponse:
        async with self.uow as uow:
            user = await get_user_for_reset_token(uow, token, for_update=True)
            if user is None:
                raise InstanceProcessingException(BAD_RESET_TOKEN_MESSAGE)

            password_hash = await hash_password_async(data.password)
            await uow.users.update(
                uow.session,
                {"password_hash": password_hash, "password_reset_token": None},
                id=user.id,
            )
            await uow.commit()

        logger.info("[ResetPasswordConfirm] Password of user %s reset.", user.id)
        return SuccessResponse(success=True)


def get_reset_password_validate_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> ResetPasswordValidateUseCase:
    return ResetPasswordValidateUseCase(uow=uow)


def get_reset_password_confirm_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> ResetPasswordConfirmUseCase:
    return ResetPasswordConfirmUseCase(uow=uow)
