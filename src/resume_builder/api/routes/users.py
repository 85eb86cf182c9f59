"""User account routes: registration, login, token refresh and password recovery."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, status

from resume_builder.api.dependencies import CurrentUser
from resume_builder.api.schemas.common import ValidationErrorDetail
from resume_builder.api.schemas.users import (
    LoginRequest,
    PasswordRecoveryRequest,
    PasswordRecoveryResponse,
    PasswordResetRequest,
    RefreshRequest,
    RegistrationRequest,
    UserResponse,
    UserUpdateRequest,
    UserWithTokenResponse,
)
from resume_builder.errors import AuthenticationError, NotFoundError, ValidationFailedError
from resume_builder.services import accounts, tokens

router = APIRouter(prefix="/users", tags=["users"])


def _with_token(user: dict[str, Any]) -> UserWithTokenResponse:
    jwt, _claims = tokens.encode_and_sign(user["id"])
    return UserWithTokenResponse(user=UserResponse(**user), jwt=jwt)


def _unprocessable(exc: ValidationFailedError, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=ValidationErrorDetail(message=message, errors=exc.errors).model_dump(),
    )


def _unauthorized(exc: AuthenticationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=str(exc),
        headers={"WWW-Authenticate": "Bearer"},
    )


@router.post(
    "",
    response_model=UserWithTokenResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_user(data: RegistrationRequest) -> UserWithTokenResponse:
    """Register a new account and return it with an access token."""
    try:
        user = accounts.register(data.model_dump(exclude_none=True))
    except ValidationFailedError as exc:
        raise _unprocessable(exc, "Registration failed") from None
    return _with_token(user)


@router.post("/login", response_model=UserWithTokenResponse)
def login(data: LoginRequest) -> UserWithTokenResponse:
    """Exchange email and password for an access token."""
    try:
        user = accounts.authenticate(data.email, data.password)
    except AuthenticationError as exc:
        raise _unauthorized(exc) from None
    return _with_token(user)


@router.post("/refresh", response_model=UserWithTokenResponse)
def refresh(data: RefreshRequest) -> UserWithTokenResponse:
    """Issue a new access token for a valid (or recently expired) one."""
    try:
        new_jwt, claims = tokens.refresh(data.jwt)
    except AuthenticationError as exc:
        raise _unauthorized(exc) from None

    user = accounts.get_user(claims["sub"])
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return UserWithTokenResponse(user=UserResponse(**user), jwt=new_jwt)


@router.get("/me", response_model=UserResponse)
def get_me(current_user: CurrentUser) -> UserResponse:
    """Get the authenticated user."""
    return UserResponse(**current_user)


@router.patch("/me", response_model=UserWithTokenResponse)
def update_me(data: UserUpdateRequest, current_user: CurrentUser) -> UserWithTokenResponse:
    """Update the authenticated user. Only provided fields are updated.

    A new access token is returned since the email may have changed.
    """
    try:
        user = accounts.update_user(current_user["id"], data.model_dump(exclude_none=True))
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from None
    except ValidationFailedError as exc:
        raise _unprocessable(exc, "Update failed") from None
    return _with_token(user)


@router.post(
    "/password-recovery",
    response_model=PasswordRecoveryResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_pwd_recovery(data: PasswordRecoveryRequest) -> PasswordRecoveryResponse:
    """Start password recovery; the recovery link is delivered out of band."""
    try:
        result = accounts.create_pwd_recovery(data.email)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from None
    return PasswordRecoveryResponse(email=result["email"], expires_at=result["expires_at"])


@router.post("/password-reset", response_model=UserWithTokenResponse)
def reset_password(data: PasswordResetRequest) -> UserWithTokenResponse:
    """Set a new password with a recovery token and log the user in."""
    try:
        user = accounts.reset_password(data.token, data.password)
    except AuthenticationError as exc:
        raise _unauthorized(exc) from None
    except ValidationFailedError as exc:
        raise _unprocessable(exc, "Password reset failed") from None
    return _with_token(user)
