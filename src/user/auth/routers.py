from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response

from src.core.limiter.depends import RateLimiter
from src.core.schemas import SuccessResponse
from src.user.auth.dependencies import get_current_auth, get_session_auth
from src.user.auth.schemas import (
    AuthStateModel,
    RegisterUserModel,
    ResetPasswordModel,
    ResetPasswordRequestModel,
    SignInModel,
    SignInResultModel,
)
from src.user.auth.usecases.register import (
    EmailAvailabilityUseCase,
    RegisterUseCase,
    get_email_availability_use_case,
    get_register_use_case,
)
from src.user.auth.usecases.reset_password_confirm import (
    ResetPasswordConfirmUseCase,
    ResetPasswordValidateUseCase,
    get_reset_password_confirm_use_case,
    get_reset_password_validate_use_case,
)
from src.user.auth.usecases.reset_password_request import (
    ResetPasswordRequestUseCase,
    get_reset_password_request_use_case,
)
from src.user.auth.usecases.sign_in import SignInUseCase, get_sign_in_use_case
from src.user.auth.usecases.sign_out import (
    SignOutEverywhereUseCase,
    SignOutUseCase,
    get_sign_out_everywhere_use_case,
    get_sign_out_use_case,
)
from src.user.schemas import UserProfileViewModel

router = APIRouter()


@router.post(
    "/sign-in",
    response_model=SignInResultModel,
    dependencies=[Depends(RateLimiter(times=5, minutes=1))],
)
async def sign_in(
    request: Request,
    response: Response,
    data: SignInModel,
    use_case: Annotated[SignInUseCase, Depends(get_sign_in_use_case)],
    next_path: Annotated[str | None, Query(alias="next")] = None,
) -> SignInResultModel:
    """
    Check the credentials and start a cookie session.
    """
    return await use_case.execute(
        data=data, request=request, response=response, next_path=next_path
    )


@router.post("/sign-out", response_model=SuccessResponse)
async def sign_out(
    request: Request,
    response: Response,
    use_case: Annotated[SignOutUseCase, Depends(get_sign_out_use_case)],
) -> SuccessResponse:
    return await use_case.execute(request=request, response=response)


@router.post("/sign-out/all", response_model=SuccessResponse)
async def sign_out_everywhere(
    request: Request,
    response: Response,
    auth: Annotated[AuthStateModel, Depends(get_current_auth)],
    use_case: Annotated[
        SignOutEverywhereUseCase, Depends(get_sign_out_everywhere_use_case)
    ],
) -> SuccessResponse:
    """
    Stop every session of the current user from renewing and end this one.
    """
    return await use_case.execute(auth=auth, request=request, response=response)


@router.get("/session", response_model=AuthStateModel)
async def get_session_state(
    auth: Annotated[AuthStateModel, Depends(get_current_auth)],
) -> AuthStateModel:
    return auth


@router.post(
    "/register",
    status_code=201,
    response_model=UserProfileViewModel,
    dependencies=[Depends(RateLimiter(times=10, minutes=10))],
)
async def register_user(
    request: Request,
    data: RegisterUserModel,
    use_case: Annotated[RegisterUseCase, Depends(get_register_use_case)],
) -> UserProfileViewModel:
    """
    Create a guest account. The first password is set through the reset flow.
    """
    return await use_case.execute(data=data, request_base_url=request.base_url)


@router.get("/register/available", response_model=SuccessResponse)
async def check_email_available(
    auth: Annotated[AuthStateModel | None, Depends(get_session_auth)],
    use_case: Annotated[
        EmailAvailabilityUseCase, Depends(get_email_availability_use_case)
    ],
    email: str | None = None,
) -> SuccessResponse:
    return await use_case.execute(email=email, auth=auth)


@router.post(
    "/password/reset-request",
    response_model=SuccessResponse,
    dependencies=[Depends(RateLimiter(times=3, minutes=15))],
)
async def request_password_reset(
    request: Request,
    data: ResetPasswordRequestModel,
    use_case: Annotated[
        ResetPasswordRequestUseCase, Depends(get_reset_password_request_use_case)
    ],
) -> SuccessResponse:
    """
    E-mail a reset link. The answer is the same for unknown addresses.
    """
    return await use_case.execute(data=data, request_base_url=request.base_url)


@router.get("/password/reset/{token}", response_model=SuccessResponse)
async def validate_password_reset(
    token: str,
    use_case: Annotated[
        ResetPasswordValidateUseCase, Depends(get_reset_password_validate_use_case)
    ],
) -> SuccessResponse:
    return await use_case.execute(token=token)


@router.post(
    "/password/reset/{token}",
    response_model=SuccessResponse,
    dependencies=[Depends(RateLimiter(times=10, minutes=15))],
)
async def confirm_password_reset(
    token: str,
    data: ResetPasswordModel,
    use_case: Annotated[
        ResetPasswordConfirmUseCase, Depends(get_reset_password_confirm_use_case)
    ],
) -> SuccessResponse:
    return await use_case.execute(token=token, data=data)
