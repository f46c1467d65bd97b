"""Caller context management for cross-cutting concerns.

Provides a ContextVar-based mechanism for propagating the authenticated
caller across the call stack without explicit parameter passing. The
Firebase auth middleware sets the principal for the duration of a request;
route dependencies and services read it back.

A request without credentials has no principal. Membership operations
treat that as an invalid argument rather than an authentication failure,
so callers that tolerate anonymity use :func:`get_optional_principal` or
:func:`get_caller_id`.

Usage:
    # In middleware
    token = set_principal_context(principal)
    try:
        ...
    finally:
        clear_principal_context(token)

    # In handlers/services
    from medikeep.foundation.application.context import get_caller_id

    caller_id = get_caller_id()  # None when unauthenticated
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextvars import Token

    from medikeep.foundation.domain.principal import Principal


class NoPrincipalContextError(RuntimeError):
    """Raised when the principal is required but no caller is authenticated."""

    def __init__(self) -> None:
        super().__init__(
            "No principal context available. "
            "Ensure this code is called within an authenticated HTTP request."
        )


_principal_context: ContextVar[Principal | None] = ContextVar("principal_context", default=None)


def set_principal_context(principal: Principal) -> Token[Principal | None]:
    """Set the authenticated principal for the current request.

    Called by the auth middleware after successful ID token verification.
    Returns a token for cleanup.

    Args:
        principal: Principal built from the verified token claims.

    Returns:
        Token for resetting the context.
    """
    return _principal_context.set(principal)


def clear_principal_context(token: Token[Principal | None]) -> None:
    """Reset the principal context using the provided token.

    Args:
        token: Token from set_principal_context.
    """
    _principal_context.reset(token)


def get_current_principal() -> Principal:
    """Get the authenticated principal from request context.

    Raises:
        NoPrincipalContextError: If called outside an authenticated request.
    """
    principal = _principal_context.get()
    if principal is None:
        raise NoPrincipalContextError()
    return principal


def get_optional_principal() -> Principal | None:
    """Get the authenticated principal if available, or None."""
    return _principal_context.get()


def get_caller_id() -> str | None:
    """Uid of the authenticated caller, or None for anonymous requests."""
    principal = _principal_context.get()
    return principal.uid if principal is not None else None
