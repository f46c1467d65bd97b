"""MediKeep Infra Auth -- Firebase ID token verification middleware.

Verifies Firebase ID tokens, builds the caller :class:`Principal`, and
provides FastAPI dependencies for reading it back.
"""

from medikeep.infra.auth.dependencies import (
    CurrentPrincipal,
    OptionalPrincipal,
    get_current_principal,
    get_principal_or_none,
)
from medikeep.infra.auth.dev_bypass import resolve_dev_bypass
from medikeep.infra.auth.firebase import (
    FirebaseTokenVerifier,
    TokenVerifierUnavailableError,
    principal_from_claims,
)
from medikeep.infra.auth.lifespan import lifespan_contribution
from medikeep.infra.auth.middleware.firebase_auth import FirebaseAuthMiddleware
from medikeep.infra.auth.settings import AuthSettings, get_auth_settings

__all__ = [
    "AuthSettings",
    "CurrentPrincipal",
    "FirebaseAuthMiddleware",
    "FirebaseTokenVerifier",
    "OptionalPrincipal",
    "TokenVerifierUnavailableError",
    "get_auth_settings",
    "get_current_principal",
    "get_principal_or_none",
    "lifespan_contribution",
    "principal_from_claims",
    "resolve_dev_bypass",
]
