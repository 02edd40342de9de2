from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from src.user.auth.dependencies import get_current_auth
from src.user.auth.schemas import AuthStateModel
from src.user.schemas import UpdateProfileModel, UserProfileViewModel
from src.user.usecases.profile import (
    GetProfileUseCase,
    UpdateProfileUseCase,
    get_profile_use_case,
    get_update_profile_use_case,
)

router = APIRouter()


@router.get("/me", response_model=UserProfileViewModel)
async def get_user_profile(
    auth: Annotated[AuthStateModel, Depends(get_current_auth)],
    use_case: Annotated[GetProfileUseCase, Depends(get_profile_use_case)],
) -> UserProfileViewModel:
    """
    Returns the current user's profile.
    """
    return await use_case.execute(auth=auth)


@router.patch("/me", response_model=UserProfileViewModel)
async def update_user_profile(
    request: Request,
    response: Response,
    data: UpdateProfileModel,
    auth: Annotated[AuthStateModel, Depends(get_current_auth)],
    use_case: Annotated[UpdateProfileUseCase, Depends(get_update_profile_use_case)],
) -> UserProfileViewModel:
    """
    Updates names and e-mail of the current user and refreshes the session.
    """
    return await use_case.execute(
        auth=auth, data=data, request=request, response=response
    )
