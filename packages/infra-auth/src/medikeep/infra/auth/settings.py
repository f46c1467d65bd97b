"""Authentication configuration settings.

Loaded from environment variables with AUTH_ prefix.
Follows Pydantic BaseSettings pattern for type-safe configuration.

Environment Variables:
    AUTH_DEV_BYPASS: Inject a synthetic caller when no token is sent (never in production)
    AUTH_DEV_BYPASS_UID: Uid of the synthetic caller
    AUTH_DEV_BYPASS_EMAIL: Email of the synthetic caller
    AUTH_CHECK_REVOKED: Also check Firebase for revoked tokens and disabled users
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    """Authentication configuration loaded from environment variables.

    Example:
        >>> settings = AuthSettings()
        >>> settings.dev_bypass
        False
        >>> settings.check_revoked
        False
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    dev_bypass: bool = Field(
        default=False,
        description="Inject a synthetic caller when no Authorization header is sent",
    )
    dev_bypass_uid: str = Field(
        default="dev-bypass-user",
        min_length=1,
        description="Uid of the synthetic development caller",
    )
    dev_bypass_email: str = Field(
        default="dev-bypass@localhost",
        description="Email of the synthetic development caller",
    )
    check_revoked: bool = Field(
        default=False,
        description="Reject revoked ID tokens (one extra Firebase Auth call per request)",
    )


@lru_cache(maxsize=1)
def get_auth_settings() -> AuthSettings:
    """Get singleton AuthSettings instance.

    Cached for performance - settings are loaded once per application lifecycle.
    Clear cache with ``get_auth_settings.cache_clear()`` for testing.
    """
    return AuthSettings()
