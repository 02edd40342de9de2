from fastapi import Depends
from starlette.datastructures import URL

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.email_service.dependencies import get_email_service
from src.core.email_service.service import EmailService
from src.core.schemas import SuccessResponse
from src.core.utils.security import mask_email
from src.user.auth.reset_tokens import generate_reset_token
from src.user.auth.schemas import ResetPasswordRequestModel
from src.user.auth.services.reset_password_notifier import ResetPasswordNotifier

logger = get_logger(__name__)


class ResetPasswordRequestUseCase:
    """
    Issues a reset token and e-mails it.

    The response is the same whether or not the address belongs to an
    account. Only known users pay for the write and the queued e-mail, so
    timing still differs slightly between the two branches.
    """

    def __init__(
        self,
        uow: ApplicationUnitOfWork,
        email_service: EmailService,
    ) -> None:
        self.uow = uow
        self.email_service = email_service

    async def execute(
        self, data: ResetPasswordRequestModel, request_base_url: URL
    ) -> SuccessResponse:
        # Generated before the lookup so both branches pay for it
        token = generate_reset_token()

        async with self.uow as uow:
            user = await uow.users.get_single(uow.session, email=data.email)
            if not user:
                logger.info(
                    "[ResetPasswordRequest] User with email %s not found.",
                    mask_email(data.email),
                )
                return SuccessResponse(success=True)

            # Overwrites any outstanding token
            await uow.users.update(
                uow.session, {"password_reset_token": token}, id=user.id
            )
            await uow.commit()

        await ResetPasswordNotifier(self.email_service).send_password_reset_email(
            user=user, base_url=request_base_url, token=token
        )
        logger.info(
            "[ResetPasswordRequest] Reset password email queued for %s",
            mask_email(data.email),
        )
        return SuccessResponse(success=True)


def get_reset_password_request_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
    email_service: EmailService = Depends(get_email_service),
) -> ResetPasswordRequestUseCase:
    return ResetPasswordRequestUseCase(uow=uow, email_service=email_service)
