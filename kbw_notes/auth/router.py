"""Authentication API endpoints."""

from fastapi import APIRouter, status

from kbw_notes.auth.dependencies import AuthServiceDep, CurrentUser
from kbw_notes.auth.schemas import (
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordResetResponse,
    SignInRequest,
    SignUpRequest,
    TokenResponse,
    UserResponse,
)
from kbw_notes.config.settings import get_settings


router = APIRouter(prefix="/v1/auth", tags=["auth"])

RESET_REQUESTED_MESSAGE = (
    "If an account exists for this email, a reset link has been sent"
)


@router.post(
    "/signup",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    responses={
        400: {"description": "Email not on the allowed domain or weak password"},
        409: {"description": "Email already registered"},
    },
)
async def sign_up(data: SignUpRequest, auth_service: AuthServiceDep) -> TokenResponse:
    user = await auth_service.sign_up(data.email, data.password, data.display_name)
    return auth_service.create_token_response(user)


@router.post(
    "/signin",
    response_model=TokenResponse,
    summary="Sign in with email and password",
    responses={401: {"description": "Invalid credentials"}},
)
async def sign_in(data: SignInRequest, auth_service: AuthServiceDep) -> TokenResponse:
    user = await auth_service.sign_in(data.email, data.password)
    return auth_service.create_token_response(user)


@router.post(
    "/password-reset",
    response_model=PasswordResetResponse,
    summary="Request a password reset",
)
async def request_password_reset(
    data: PasswordResetRequest, auth_service: AuthServiceDep
) -> PasswordResetResponse:
    """Always answers the same way for known and unknown addresses.

    Outside production the token is echoed back, as there is no mail relay.
    """
    token = await auth_service.request_password_reset(data.email)
    settings = get_settings()
    return PasswordResetResponse(
        message=RESET_REQUESTED_MESSAGE,
        reset_token=None if settings.is_production else token,
    )


@router.post(
    "/password-reset/confirm",
    response_model=MessageResponse,
    summary="Set a new password",
)
async def confirm_password_reset(
    data: PasswordResetConfirm, auth_service: AuthServiceDep
) -> MessageResponse:
    await auth_service.reset_password(data.token, data.new_password)
    return MessageResponse(message="Password updated")


@router.get("/me", response_model=UserResponse, summary="Current user")
async def me(user: CurrentUser, auth_service: AuthServiceDep) -> UserResponse:
    stored = await auth_service.get_user_by_id(user.id)
    return auth_service.to_response(stored) if stored else user
