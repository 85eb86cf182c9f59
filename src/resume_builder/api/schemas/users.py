"""Pydantic schemas for user account API endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserResponse(BaseModel):
    """Response schema for basic user information."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str | None = None
    inserted_at: datetime
    updated_at: datetime


class UserWithTokenResponse(BaseModel):
    """A user together with a freshly issued access token."""

    user: UserResponse
    jwt: str


class RegistrationRequest(BaseModel):
    """Request schema for creating an account."""

    email: str = Field(..., description="Login email address")
    password: str = Field(..., description="Password (at least 4 characters)")
    name: str | None = Field(None, description="Display name")


class LoginRequest(BaseModel):
    """Request schema for logging in."""

    email: str = Field(..., description="Login email address")
    password: str = Field(..., description="Password")


class UserUpdateRequest(BaseModel):
    """Request schema for updating the current user.

    All fields are optional; only provided fields are updated.
    """

    email: str | None = Field(None, description="New login email address")
    name: str | None = Field(None, description="New display name")
    password: str | None = Field(None, description="New password")


class RefreshRequest(BaseModel):
    """Request schema for refreshing an access token."""

    jwt: str = Field(..., description="Current (possibly recently expired) access token")


class PasswordRecoveryRequest(BaseModel):
    """Request schema for starting password recovery."""

    email: str = Field(..., description="Email of the account to recover")


class PasswordRecoveryResponse(BaseModel):
    """Response schema for a created password recovery."""

    email: str
    expires_at: datetime


class PasswordResetRequest(BaseModel):
    """Request schema for completing password recovery."""

    token: str = Field(..., description="Token from the recovery link")
    password: str = Field(..., description="New password")
