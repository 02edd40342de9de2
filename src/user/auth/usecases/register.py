from uuid import UUID

from fastapi import Depends
from starlette.datastructures import URL

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.email_service.dependencies import get_email_service
from src.core.email_service.service import EmailService
from src.core.errors.exceptions import (
    AccessForbiddenException,
    InstanceAlreadyExistsException,
    NotAcceptableException,
)
from src.core.schemas import SuccessResponse
from src.core.utils.security import mask_email, normalize_email
from src.user.auth.schemas import AuthStateModel, RegisterUserModel
from src.user.auth.services.registration_notifier import RegistrationNotifier
from src.user.enums import UserRole
from src.user.schemas import UserProfileViewModel

logger = get_logger(__name__)


class RegisterUseCase:
    """
    Creates a guest account without a password.

    The new user receives an e-mail pointing to the reset-request page, where
    the first password is set through the regular reset flow.
    """

    def __init__(
        self,
        uow: ApplicationUnitOfWork,
        email_service: EmailService,
    ) -> None:
        self.uow = uow
        self.email_service = email_service

    async def execute(
        self, data: RegisterUserModel, request_base_url: URL
    ) -> UserProfileViewModel:
        async with self.uow as uow:
            if await uow.users.email_taken(uow.session, data.email):
                logger.info(
                    "[Register] E-mail '%s' is already registered.",
                    mask_email(data.email),
                )
                raise InstanceAlreadyExistsException(
                    "An account with this e-mail already exists."
                )

            user = await uow.users.create(
                session=uow.session,
                data={
                    **data.model_dump(),
                    "password_hash": None,
                    "role": UserRole.GUEST,
                    "is_active": True,
                    "cancel_renewal": False,
                },
            )
            await uow.commit()

        await RegistrationNotifier(self.email_service).send_registration_email(
            user=user, base_url=request_base_url
        )
        logger.info("[Register] User '%s' registered.", mask_email(user.email))
        return UserProfileViewModel.model_validate(user)


class EmailAvailabilityUseCase:
    """
    Availability of an e-mail for registration or a profile change.

    The signed-in user's own address counts as available.
    """

    def __init__(self, uow: ApplicationUnitOfWork) -> None:
        self.uow = uow

    async def execute(
        self, email: str | None, auth: AuthStateModel | None = None
    ) -> SuccessResponse:
        if not email:
            raise NotAcceptableException("An 'email' query parameter is required.")

        exclude_id = UUID(auth.user_id) if auth else None
        async with self.uow as uow:
            taken = await uow.users.email_taken(
                uow.session, normalize_email(email), exclude_id=exclude_id
            )
        if taken:
            raise AccessForbiddenException("This e-mail is already in use.")
        return SuccessResponse(success=True)


def get_register_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
    email_service: EmailService = Depends(get_email_service),
) -> RegisterUseCase:
    return RegisterUseCase(uow=uow, email_service=email_service)


def get_email_availability_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> EmailAvailabilityUseCase:
    return EmailAvailabilityUseCase(uow=uow)
