"""FastAPI dependency functions for the authenticated caller.

Usage:
    from medikeep.infra.auth.dependencies import CurrentPrincipal

    @router.get("/me")
    def whoami(principal: CurrentPrincipal) -> dict[str, str]:
        return {"uid": principal.uid}
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from medikeep.foundation.application.context import (
    get_optional_principal,
)
from medikeep.foundation.domain.exceptions import AuthenticationError
from medikeep.foundation.domain.principal import Principal


def get_current_principal() -> Principal:
    """FastAPI dependency that requires an authenticated principal.

    Reads from the principal ContextVar set by FirebaseAuthMiddleware.
    Sync function (not async) for minimal overhead.

    Raises:
        AuthenticationError: If the request carried no credential.
    """
    principal = get_optional_principal()
    if principal is None:
        raise AuthenticationError(
            "Authentication required",
            auth_error="missing_token",
        )
    return principal


def get_principal_or_none() -> Principal | None:
    """FastAPI dependency returning the principal, or None for anonymous calls."""
    return get_optional_principal()


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
OptionalPrincipal = Annotated[Principal | None, Depends(get_principal_or_none)]
