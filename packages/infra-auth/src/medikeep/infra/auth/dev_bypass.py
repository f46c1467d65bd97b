"""Local-development sign-in bypass for the spaces API.

With ``AUTH_DEV_BYPASS=true`` a request that carries no Authorization header
runs as the configured development user (``AUTH_DEV_BYPASS_UID``), so
membership endpoints can be exercised against the Firestore emulator
without minting Firebase ID tokens. Requests that do send a token are
always verified. ``ENVIRONMENT=production`` disables the bypass whatever
the flag says.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

_PRODUCTION = "production"


def resolve_dev_bypass(requested: bool) -> bool:
    """Decide whether the bypass is active for this process.

    Args:
        requested: Value of ``AUTH_DEV_BYPASS``.

    Returns:
        True only when requested outside production.
    """
    if not requested:
        return False

    environment = os.environ.get("ENVIRONMENT", "development")
    if environment == _PRODUCTION:
        logger.error(
            "auth_dev_bypass_blocked",
            extra={"environment": environment, "detail": "AUTH_DEV_BYPASS ignored in production"},
        )
        return False

    logger.warning(
        "auth_dev_bypass_active",
        extra={
            "environment": environment,
            "detail": "Requests without a Bearer token run as the development user",
        },
    )
    return True
