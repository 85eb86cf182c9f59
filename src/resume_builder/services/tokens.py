"""JWT issuance and verification.

Tokens are HS256-signed by default and carry the user id in ``sub`` plus a
``typ`` claim so that a password recovery token cannot be used as an access
token (and vice versa).
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from resume_builder.config import get_settings
from resume_builder.data.ids import new_id
from resume_builder.errors import AuthenticationError

ACCESS = "access"
PWD_RECOVERY = "pwd_recovery"


def encode_and_sign(
    user_id: str, token_type: str = ACCESS, ttl_seconds: int | None = None
) -> tuple[str, dict[str, Any]]:
    """Issue a signed token for a user.

    Returns:
        Tuple of (encoded token, claims).
    """
    settings = get_settings()
    now = datetime.now(UTC)
    ttl = settings.jwt_ttl_seconds if ttl_seconds is None else ttl_seconds
    claims = {
        "sub": user_id,
        "typ": token_type,
        "jti": new_id(),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=ttl)).timestamp()),
    }
    token = jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, claims


def decode_and_verify(
    token: str, token_type: str = ACCESS, leeway_seconds: int = 0
) -> dict[str, Any]:
    """Verify a token's signature, expiry and type.

    Raises:
        AuthenticationError: If the token is invalid, expired or of another type.
    """
    settings = get_settings()
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            leeway=timedelta(seconds=leeway_seconds),
            options={"require": ["sub", "exp", "typ"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired") from None
    except jwt.PyJWTError as exc:
        raise AuthenticationError(f"Invalid token: {exc}") from None

    if claims.get("typ") != token_type:
        raise AuthenticationError("Invalid token type")
    return claims


def refresh(token: str) -> tuple[str, dict[str, Any]]:
    """Exchange an access token for a new one.

    Tokens that expired less than the configured grace period ago are still
    accepted.

    Returns:
        Tuple of (new token, new claims).

    Raises:
        AuthenticationError: If the token cannot be refreshed.
    """
    grace = get_settings().jwt_refresh_grace_seconds
    claims = decode_and_verify(token, ACCESS, leeway_seconds=grace)
    return encode_and_sign(claims["sub"], ACCESS)
