"""Account management: registration, login, profile edits and password recovery.

Passwords are stored as salted PBKDF2 hashes (``<salt_hex>:<hash_hex>``).
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import os
from datetime import UTC, datetime, timedelta
from typing import Any, TypedDict

from sqlalchemy.orm import Session

from resume_builder.config import get_settings
from resume_builder.data.db import get_session
from resume_builder.data.models import PasswordRecovery, User
from resume_builder.errors import AuthenticationError, NotFoundError, ValidationFailedError
from resume_builder.services import tokens

logger = logging.getLogger(__name__)

__all__ = [
    "UserData",
    "authenticate",
    "create_pwd_recovery",
    "get_user",
    "get_user_by_email",
    "register",
    "reset_password",
    "update_user",
]

_PBKDF2_ITERATIONS = 100_000
_SALT_BYTES = 16
_MIN_PASSWORD_LENGTH = 4

_INVALID_LOGIN = "Invalid email/password"


class UserData(TypedDict, total=False):
    """TypedDict for user account data."""

    email: str
    name: str
    password: str


def _hash_password(password: str) -> str:
    """Return a salted PBKDF2 hash for the given password.

    The result is stored as ``<salt_hex>:<hash_hex>``.
    """
    salt = os.urandom(_SALT_BYTES)
    derived = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _PBKDF2_ITERATIONS)
    return f"{salt.hex()}:{derived.hex()}"


def _verify_password(password: str, stored_hash: str) -> bool:
    """Verify a password against a stored ``salt:hash`` string."""
    try:
        salt_hex, hash_hex = stored_hash.split(":", 1)
    except ValueError:
        return False

    try:
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
    except ValueError:
        return False

    candidate = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt,
        _PBKDF2_ITERATIONS,
    )
    return hmac.compare_digest(candidate, expected)


def _user_to_dict(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "inserted_at": user.inserted_at,
        "updated_at": user.updated_at,
    }


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _get_user_by_email(session: Session, email: str) -> User | None:
    return session.query(User).filter(User.email == _normalize_email(email)).first()


def _validate_user_data(
    session: Session, data: UserData, *, creating: bool, user_id: str | None = None
) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}

    if "email" in data or creating:
        email = _normalize_email(data.get("email"))
        if not email:
            errors.setdefault("email", []).append("can't be blank")
        elif "@" not in email or len(email) > 255:
            errors.setdefault("email", []).append("has invalid format")
        else:
            existing = _get_user_by_email(session, email)
            if existing is not None and existing.id != user_id:
                errors.setdefault("email", []).append("has already been taken")

    if "password" in data or creating:
        password = data.get("password") or ""
        if len(password) < _MIN_PASSWORD_LENGTH:
            errors.setdefault("password", []).append(
                f"should be at least {_MIN_PASSWORD_LENGTH} character(s)"
            )

    return errors


def get_user(user_id: str) -> dict[str, Any] | None:
    """Get a user by id, or None if not found."""
    with get_session() as session:
        user = session.get(User, user_id)
        return _user_to_dict(user) if user else None


def get_user_by_email(email: str) -> dict[str, Any] | None:
    """Get a user by email (case-insensitive), or None if not found."""
    with get_session() as session:
        user = _get_user_by_email(session, email)
        return _user_to_dict(user) if user else None


def register(data: UserData) -> dict[str, Any]:
    """Create a new user account.

    Args:
        data: Must include ``email`` and ``password``; ``name`` is optional.

    Returns:
        Dictionary with the created user.

    Raises:
        ValidationFailedError: If the email is invalid/taken or the password too short.
    """
    with get_session() as session:
        errors = _validate_user_data(session, data, creating=True)
        if errors:
            logger.warning("Registration rejected: %s", errors)
            raise ValidationFailedError(errors)

        user = User(
            email=_normalize_email(data["email"]),
            name=data.get("name"),
            password_hash=_hash_password(data["password"]),
        )
        session.add(user)
        session.flush()
        logger.info("Registered user %s", user.id)
        return _user_to_dict(user)


def authenticate(email: str, password: str) -> dict[str, Any]:
    """Check an email/password pair.

    Returns:
        Dictionary with the authenticated user.

    Raises:
        AuthenticationError: If the email is unknown or the password wrong.
    """
    if not email or not password:
        raise AuthenticationError(_INVALID_LOGIN)

    with get_session() as session:
        user = _get_user_by_email(session, email)
        if user is None or not _verify_password(password, user.password_hash):
            raise AuthenticationError(_INVALID_LOGIN)
        return _user_to_dict(user)


def update_user(user_id: str, data: UserData) -> dict[str, Any]:
    """Update a user's email, name and/or password.

    Raises:
        NotFoundError: If the user does not exist.
        ValidationFailedError: If a value is rejected.
    """
    with get_session() as session:
        user = session.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")

        errors = _validate_user_data(session, data, creating=False, user_id=user_id)
        if errors:
            logger.warning("Update of user %s rejected: %s", user_id, errors)
            raise ValidationFailedError(errors)

        if "email" in data:
            user.email = _normalize_email(data["email"])
        if "name" in data:
            user.name = data["name"]
        if "password" in data:
            user.password_hash = _hash_password(data["password"])
        session.flush()
        return _user_to_dict(user)


def create_pwd_recovery(email: str) -> dict[str, Any]:
    """Start password recovery for the account registered with ``email``.

    Returns:
        Dictionary with ``email``, ``token``, ``url`` and ``expires_at``.

    Raises:
        NotFoundError: If no account uses this email.
    """
    settings = get_settings()
    with get_session() as session:
        user = _get_user_by_email(session, email)
        if user is None:
            raise NotFoundError(f"Unknown user email: {email}")

        token, claims = tokens.encode_and_sign(
            user.id, tokens.PWD_RECOVERY, ttl_seconds=settings.pwd_recovery_ttl_seconds
        )
        recovery = PasswordRecovery(
            user_id=user.id,
            token=token,
            expires_at=datetime.fromtimestamp(claims["exp"], UTC),
        )
        session.add(recovery)
        session.flush()

        logger.info("Created password recovery %s for user %s", recovery.id, user.id)
        return {
            "email": user.email,
            "token": token,
            "url": f"{settings.frontend_url.rstrip('/')}/reset-password?token={token}",
            "expires_at": recovery.expires_at,
        }


def reset_password(token: str, password: str) -> dict[str, Any]:
    """Set a new password using a recovery token. Each token works once.

    Raises:
        AuthenticationError: If the token is invalid, expired or already used.
        ValidationFailedError: If the new password is rejected.
    """
    claims = tokens.decode_and_verify(token, tokens.PWD_RECOVERY)

    with get_session() as session:
        recovery = (
            session.query(PasswordRecovery)
            .filter(
                PasswordRecovery.token == token,
                PasswordRecovery.user_id == claims["sub"],
                PasswordRecovery.used_at.is_(None),
            )
            .first()
        )
        if recovery is None:
            raise AuthenticationError("Invalid or expired token")

        errors = _validate_user_data(session, {"password": password}, creating=False)
        if errors:
            raise ValidationFailedError(errors)

        recovery.used_at = datetime.now(UTC)
        recovery.user.password_hash = _hash_password(password)
        session.flush()
        return _user_to_dict(recovery.user)
