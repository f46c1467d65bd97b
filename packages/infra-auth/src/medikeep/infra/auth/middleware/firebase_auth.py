"""Firebase ID token authentication middleware.

Verifies ``Authorization: Bearer <ID token>`` and sets the principal context
for the rest of the request.

Unlike a gateway that rejects anonymous traffic, a request without an
Authorization header passes through with no principal: the membership
operations decide what an anonymous call means (an invalid argument). Only a
credential that is presented and fails verification is rejected here.

Middleware position in stack (LIFO registration order):
  Request -> RequestId -> Auth -> CORS -> Route

Design decisions:
- Use BaseHTTPMiddleware for consistency with the request id middleware.
- Return JSONResponse directly for auth errors (not raise HTTPException)
  because BaseHTTPMiddleware dispatch cannot propagate exceptions through
  the ASGI stack.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from medikeep.foundation.application.context import (
    clear_principal_context,
    set_principal_context,
)
from medikeep.foundation.application.contributions import (
    MIDDLEWARE_PRIORITY_AUTH,
    MiddlewareContribution,
)
from medikeep.foundation.domain.exceptions import AuthenticationError
from medikeep.foundation.domain.principal import Principal
from medikeep.infra.auth.dev_bypass import resolve_dev_bypass
from medikeep.infra.auth.firebase import (
    FirebaseTokenVerifier,
    TokenVerifierUnavailableError,
    principal_from_claims,
)
from medikeep.infra.auth.settings import get_auth_settings

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response

logger = logging.getLogger(__name__)

# Default paths excluded from token verification.
_DEFAULT_EXCLUDED_PREFIXES = (
    "/healthz",
    "/docs",
    "/openapi.json",
    "/redoc",
)

_PROBLEM_MEDIA_TYPE = "application/problem+json"


class FirebaseAuthMiddleware(BaseHTTPMiddleware):
    """Firebase ID token verification middleware.

    Request flow:
    1. Check if path is excluded -> skip auth
    2. No Authorization header -> dev bypass principal, or anonymous
    3. Extract Bearer token
    4. Verify token with the Firebase Admin SDK
    5. Set principal context and call next middleware/handler

    Error flow:
    - Malformed header -> 401 (invalid_format)
    - Expired token -> 401 (token_expired)
    - Revoked token -> 401 (token_revoked)
    - Disabled user -> 401 (user_disabled)
    - Any other invalid token -> 401 (invalid_token)
    - Certificates unreachable / no verifier -> 503 (service_unavailable)

    All 401 responses include WWW-Authenticate: Bearer header per RFC 6750.

    The verifier is looked up on ``app.state.token_verifier`` (set by the
    auth lifespan hook) unless one is passed explicitly.
    """

    def __init__(
        self,
        app: Any,
        verifier: FirebaseTokenVerifier | None = None,
        dev_bypass: bool | None = None,
        dev_bypass_principal: Principal | None = None,
        excluded_prefixes: tuple[str, ...] | None = None,
    ) -> None:
        """Initialize authentication middleware.

        Args:
            app: ASGI application (passed by Starlette).
            verifier: Token verifier. None defers to ``app.state.token_verifier``.
            dev_bypass: Whether dev bypass was requested. None reads
                AUTH_DEV_BYPASS. Subject to the production lockout in
                resolve_dev_bypass().
            dev_bypass_principal: Synthetic caller for dev bypass. None builds
                one from AUTH_DEV_BYPASS_UID and AUTH_DEV_BYPASS_EMAIL.
            excluded_prefixes: Path prefixes to skip auth on.
        """
        super().__init__(app)
        settings = get_auth_settings()
        self._verifier = verifier
        self._dev_bypass = resolve_dev_bypass(
            settings.dev_bypass if dev_bypass is None else dev_bypass
        )
        self._dev_bypass_principal = dev_bypass_principal or Principal(
            uid=settings.dev_bypass_uid,
            email=settings.dev_bypass_email,
            email_verified=True,
        )
        self._excluded_prefixes = (
            excluded_prefixes if excluded_prefixes is not None else _DEFAULT_EXCLUDED_PREFIXES
        )

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        path = request.url.path
        if any(path.startswith(prefix) for prefix in self._excluded_prefixes):
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header:
            if self._dev_bypass:
                return await self._call_as(self._dev_bypass_principal, request, call_next)
            return await call_next(request)

        if not auth_header.startswith("Bearer "):
            return self._auth_error(
                request,
                401,
                "invalid_format",
                "Authorization header must use Bearer scheme",
            )

        token = auth_header[7:]  # len("Bearer ") == 7
        if not token:
            return self._auth_error(request, 401, "invalid_format", "Bearer token is empty")

        verifier = self._verifier or getattr(request.app.state, "token_verifier", None)
        if verifier is None:
            return self._auth_error(
                request,
                503,
                "service_unavailable",
                "Authentication service not configured",
            )

        try:
            claims = await verifier.verify(token)
            principal = principal_from_claims(claims)
        except AuthenticationError as exc:
            return self._auth_error(request, 401, exc.auth_error, exc.message)
        except ValueError as exc:
            return self._auth_error(request, 401, "invalid_claims", str(exc))
        except TokenVerifierUnavailableError:
            return self._auth_error(
                request,
                503,
                "service_unavailable",
                "Authentication service temporarily unavailable",
            )

        return await self._call_as(principal, request, call_next)

    async def _call_as(
        self,
        principal: Principal,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request.state.principal = principal
        principal_token = set_principal_context(principal)
        try:
            return await call_next(request)
        finally:
            clear_principal_context(principal_token)

    def _auth_error(
        self,
        request: Request,
        status_code: int,
        error_code: str,
        message: str,
    ) -> JSONResponse:
        """Build RFC 7807 + RFC 6750 compliant error response."""
        logger.info(
            "auth_validation_failed",
            extra={
                "error_code": error_code,
                "path": request.url.path,
                "method": request.method,
            },
        )

        headers: dict[str, str] = {}
        if status_code == 401:
            headers["WWW-Authenticate"] = (
                f'Bearer realm="medikeep", error="{error_code}", error_description="{message}"'
            )

        _title_map = {
            401: "Unauthorized",
            503: "Service Unavailable",
        }

        return JSONResponse(
            status_code=status_code,
            content={
                "type": f"/errors/{error_code.replace('_', '-')}",
                "title": _title_map.get(status_code, "Error"),
                "status": status_code,
                "detail": message,
                "error_code": "unauthenticated" if status_code == 401 else "unavailable",
                "instance": str(request.url.path),
                "auth_error": error_code,
            },
            media_type=_PROBLEM_MEDIA_TYPE,
            headers=headers,
        )


contribution = MiddlewareContribution(
    middleware_class=FirebaseAuthMiddleware,
    priority=MIDDLEWARE_PRIORITY_AUTH,
)
