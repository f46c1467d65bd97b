"""Firebase ID token verification.

Wraps ``firebase_admin.auth.verify_id_token`` (a blocking call that may fetch
Google's public certificates) so the middleware can await it, and maps the
SDK's exception family onto :class:`AuthenticationError` with RFC 6750 error
codes.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from firebase_admin import auth

from medikeep.foundation.domain.exceptions import AuthenticationError
from medikeep.foundation.domain.principal import Principal

if TYPE_CHECKING:
    import firebase_admin

logger = logging.getLogger(__name__)


class TokenVerifierUnavailableError(Exception):
    """Raised when the verifier cannot reach Google to validate a token."""


class FirebaseTokenVerifier:
    """Verifies Firebase ID tokens against a firebase_admin app.

    Args:
        app: firebase_admin app to verify against. None uses the default app.
        check_revoked: Also reject revoked tokens and disabled users.
    """

    def __init__(
        self,
        app: firebase_admin.App | None = None,
        *,
        check_revoked: bool = False,
    ) -> None:
        self._app = app
        self._check_revoked = check_revoked

    async def verify(self, token: str) -> dict[str, Any]:
        """Verify an ID token and return its decoded claims.

        Raises:
            AuthenticationError: If the token is expired, revoked, malformed
                or signed for another project.
            TokenVerifierUnavailableError: If the signing certificates
                could not be fetched.
        """
        try:
            return await asyncio.to_thread(
                auth.verify_id_token,
                token,
                app=self._app,
                check_revoked=self._check_revoked,
            )
        except auth.ExpiredIdTokenError as exc:
            raise AuthenticationError("Token has expired", auth_error="token_expired") from exc
        except auth.RevokedIdTokenError as exc:
            raise AuthenticationError("Token has been revoked", auth_error="token_revoked") from exc
        except auth.UserDisabledError as exc:
            raise AuthenticationError("User account is disabled", auth_error="user_disabled") from exc
        except auth.InvalidIdTokenError as exc:
            raise AuthenticationError("Token validation failed", auth_error="invalid_token") from exc
        except auth.CertificateFetchError as exc:
            logger.warning("firebase_certificate_fetch_failed", exc_info=True)
            raise TokenVerifierUnavailableError(str(exc)) from exc
        except ValueError as exc:
            # Malformed input, e.g. a non-JWT string.
            raise AuthenticationError("Token is malformed", auth_error="invalid_token") from exc


def principal_from_claims(claims: dict[str, Any]) -> Principal:
    """Build a Principal from verified ID token claims.

    Raises:
        ValueError: If the claims carry no uid.
    """
    uid = claims.get("uid") or claims.get("sub")
    if not uid:
        raise ValueError("ID token missing required claim: sub")

    email = claims.get("email")
    return Principal(
        uid=str(uid),
        email=str(email) if email is not None else None,
        email_verified=bool(claims.get("email_verified", False)),
    )
