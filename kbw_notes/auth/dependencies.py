"""FastAPI dependencies for authentication."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from kbw_notes.auth.schemas import UserResponse
from kbw_notes.auth.security import decode_access_token
from kbw_notes.auth.service import AuthService
from kbw_notes.core.context import set_user_id
from kbw_notes.core.errors import AuthenticationRequired


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def _user_from_payload(payload: dict) -> UserResponse:
    user_id = payload["sub"]
    set_user_id(user_id)
    return UserResponse(
        id=user_id,
        email=payload["email"],
        display_name=payload.get("name") or payload["email"].split("@")[0],
        created_at=payload.get("iat"),
    )


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> UserResponse:
    """Get current authenticated user from JWT token.

    Raises:
        AuthenticationRequired: If token is missing, invalid, or expired
    """
    if not token:
        raise AuthenticationRequired

    try:
        payload = decode_access_token(token)
    except JWTError as e:
        raise AuthenticationRequired("Invalid or expired session") from e

    return _user_from_payload(payload)


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> UserResponse | None:
    """Get current user if authenticated, None otherwise.

    Anonymous commenting and public reads use this.
    """
    if not token:
        return None

    try:
        payload = decode_access_token(token)
    except JWTError:
        return None
    return _user_from_payload(payload)


async def get_auth_service(request: Request) -> AuthService:
    """Get auth service from app state."""
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Auth service not available",
        )
    return service


CurrentUser = Annotated[UserResponse, Depends(get_current_user)]
OptionalUser = Annotated[UserResponse | None, Depends(get_current_user_optional)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
