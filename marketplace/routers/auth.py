"""
Authentication API endpoints: signup, login, current session and logout.
The session JWT travels in an http-only cookie.
"""

from fastapi import APIRouter, Depends, Response, status
from marketplace.models.user import User
from marketplace.services.auth import AuthService
from marketplace.schemas.auth import SignupRequest, LoginRequest, UserEnvelope, OkResponse
from marketplace.schemas.user import UserResponse
from marketplace.schemas.error import get_error_responses
from marketplace.utils.auth import set_session_cookie, clear_session_cookie
from marketplace.utils.dependencies import get_auth_service, get_current_user


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/signup",
    response_model=UserEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    description="Register with e-mail and password. Role defaults to BUYER. Signs the new user in.",
    responses=get_error_responses(409, 422)
)
async def signup(
    signup_data: SignupRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service)
) -> UserEnvelope:
    user = await auth_service.signup(signup_data)
    set_session_cookie(response, auth_service.create_session_token(user))
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.post(
    "/login",
    response_model=UserEnvelope,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate with e-mail and password and receive the session cookie",
    responses=get_error_responses(401, 422)
)
async def login(
    login_data: LoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service)
) -> UserEnvelope:
    """
    Authenticate user and set the session cookie.

    Raises:
        InvalidCredentialsError: If credentials are invalid
    """
    user = await auth_service.authenticate_user(login_data.email, login_data.password)
    set_session_cookie(response, auth_service.create_session_token(user))
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.get(
    "/me",
    response_model=UserEnvelope,
    summary="Current user",
    responses=get_error_responses(401)
)
async def me(current_user: User = Depends(get_current_user)) -> UserEnvelope:
    return UserEnvelope(user=UserResponse.model_validate(current_user))


@router.post(
    "/logout",
    response_model=OkResponse,
    summary="Log out",
    description="Clear the session cookie"
)
async def logout(response: Response) -> OkResponse:
    clear_session_cookie(response)
    return OkResponse(ok=True)
