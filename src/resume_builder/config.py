"""Runtime configuration loaded from environment variables.

Values may also come from a local ``.env`` file (loaded via python-dotenv).
Settings are read once and cached; tests call ``reset_settings_cache()`` after
patching the environment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

_DEV_JWT_SECRET = "resume-builder-dev-secret-change-me"


@dataclass(frozen=True)
class Settings:
    """Application settings.

    Attributes:
        jwt_secret: Secret used to sign access tokens.
        jwt_algorithm: JWT signing algorithm.
        jwt_ttl_seconds: Lifetime of an access token.
        jwt_refresh_grace_seconds: How long after expiry a token may still be refreshed.
        pwd_recovery_ttl_seconds: Validity of a password recovery token.
        frontend_url: Base URL used when building password recovery links.
    """

    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_ttl_seconds: int = 7 * 24 * 60 * 60
    jwt_refresh_grace_seconds: int = 30 * 24 * 60 * 60
    pwd_recovery_ttl_seconds: int = 60 * 60
    frontend_url: str = "http://localhost:3000"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer value for %s: %r", name, raw)
        return default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, reading the environment on first use."""
    secret = os.getenv("RESUME_JWT_SECRET")
    if not secret:
        logger.warning("RESUME_JWT_SECRET is not set; using the development secret")
        secret = _DEV_JWT_SECRET

    return Settings(
        jwt_secret=secret,
        jwt_algorithm=os.getenv("RESUME_JWT_ALGORITHM", "HS256"),
        jwt_ttl_seconds=_int_env("RESUME_JWT_TTL_SECONDS", Settings.jwt_ttl_seconds),
        jwt_refresh_grace_seconds=_int_env(
            "RESUME_JWT_REFRESH_GRACE_SECONDS", Settings.jwt_refresh_grace_seconds
        ),
        pwd_recovery_ttl_seconds=_int_env(
            "RESUME_PWD_RECOVERY_TTL_SECONDS", Settings.pwd_recovery_ttl_seconds
        ),
        frontend_url=os.getenv("RESUME_FRONTEND_URL", Settings.frontend_url),
    )


def reset_settings_cache() -> None:
    """Forget cached settings so the next ``get_settings()`` re-reads the environment."""
    get_settings.cache_clear()
