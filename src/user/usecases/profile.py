from uuid import UUID

from fastapi import Depends, Request, Response

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.errors.exceptions import (
    InstanceAlreadyExistsException,
    InstanceNotFoundException,
)
from src.core.utils.security import mask_email
from src.user.auth.dependencies import get_session_token_manager
from src.user.auth.schemas import AuthStateModel
from src.user.auth.session import SessionTokenManager
from src.user.auth.usecases.sign_in import build_auth_state
from src.user.schemas import UpdateProfileModel, UserProfileViewModel

logger = get_logger(__name__)


class GetProfileUseCase:
    def __init__(self, uow: ApplicationUnitOfWork) -> None:
        self.uow = uow

    async def execute(self, auth: AuthStateModel) -> UserProfileViewModel:
        async with self.uow as uow:
            user = await uow.users.get_single(uow.session, id=UUID(auth.user_id))
        if user is None:
            raise InstanceNotFoundException("User not found.")
        return UserProfileViewModel.model_validate(user)


class UpdateProfileUseCase:
    """
    Updates the signed-in user's own profile.

    The session payload embeds name and e-mail, so the session is re-issued
    with the new state to keep it current.
    """

    def __init__(
        self,
        uow: ApplicationUnitOfWork,
        session_manager: SessionTokenManager,
    ) -> None:
        self.uow = uow
        self.session_manager = session_manager

    async def execute(
        self,
        auth: AuthStateModel,
        data: UpdateProfileModel,
        request: Request,
        response: Response,
    ) -> UserProfileViewModel:
        user_id = UUID(auth.user_id)
        changes = data.model_dump(exclude_none=True)

        async with self.uow as uow:
            if "email" in changes and await uow.users.email_taken(
                uow.session, changes["email"], exclude_id=user_id
            ):
                logger.info(
                    "[UpdateProfile] E-mail '%s' is already in use.",
                    mask_email(changes["email"]),
                )
                raise InstanceAlreadyExistsException("This e-mail is already in use.")

            if changes:
                user = await uow.users.update(uow.session, changes, id=user_id)
                await uow.commit()
            else:
                user = await uow.users.get_single(uow.session, id=user_id)

        if user is None:
            raise InstanceNotFoundException("User not found.")

        new_auth = build_auth_state(user)
        await self.session_manager.start(
            request, response, subject=str(user.id), data=new_auth.model_dump()
        )
        logger.info("[UpdateProfile] Profile of user %s updated.", user.id)
        return UserProfileViewModel.model_validate(user)


def get_profile_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> GetProfileUseCase:
    return GetProfileUseCase(uow=uow)


def get_update_profile_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
    session_manager: SessionTokenManager = Depends(get_session_token_manager),
) -> UpdateProfileUseCase:
    return UpdateProfileUseCase(uow=uow, session_manager=session_manager)
