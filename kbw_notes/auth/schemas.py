"""Pydantic schemas for authentication."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SignUpRequest(BaseModel):
    """Account creation request."""

    email: str = Field(..., max_length=320, description="Email on the allowed domain")
    password: str = Field(..., description="Password")
    display_name: str | None = Field(
        None, max_length=100, alias="displayName", description="Public display name"
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class SignInRequest(BaseModel):
    """Password sign-in request."""

    email: str = Field(..., max_length=320)
    password: str = Field(...)


class PasswordResetRequest(BaseModel):
    """Request a password reset for an address."""

    email: str = Field(..., max_length=320)


class PasswordResetConfirm(BaseModel):
    """Set a new password using a reset token."""

    token: str = Field(...)
    new_password: str = Field(..., alias="newPassword")

    model_config = ConfigDict(populate_by_name=True)


class UserResponse(BaseModel):
    """Public user representation."""

    id: UUID
    email: str
    display_name: str = Field(serialization_alias="displayName")
    created_at: datetime | None = Field(None, serialization_alias="createdAt")

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    """Issued access token plus the signed-in user."""

    access_token: str = Field(serialization_alias="accessToken")
    token_type: str = Field("bearer", serialization_alias="tokenType")
    expires_in: int = Field(serialization_alias="expiresIn")
    user: UserResponse


class PasswordResetResponse(BaseModel):
    """Generic answer to a reset request (never reveals account existence)."""

    message: str
    reset_token: str | None = Field(None, serialization_alias="resetToken")


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str
