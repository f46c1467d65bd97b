"""Auth lifespan hook that builds the Firebase token verifier.

Priority 100 starts auth after the Firestore hook (75), so the verifier is
bound to the firebase_admin app that hook already initialized, and shuts it
down first.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from medikeep.foundation.application import LifespanContribution
from medikeep.foundation.application.contributions import LIFESPAN_PRIORITY_AUTH
from medikeep.infra.auth.firebase import FirebaseTokenVerifier
from medikeep.infra.auth.settings import get_auth_settings
from medikeep.infra.firestore.client import get_firestore_factory

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _auth_lifespan(app: Any) -> AsyncIterator[None]:
    """Place a FirebaseTokenVerifier on ``app.state.token_verifier``.

    Args:
        app: The FastAPI application.
    """
    settings = get_auth_settings()
    firebase_app = get_firestore_factory().get_app()
    app.state.token_verifier = FirebaseTokenVerifier(
        firebase_app,
        check_revoked=settings.check_revoked,
    )
    logger.info(
        "auth_lifespan_started",
        extra={"check_revoked": settings.check_revoked, "dev_bypass": settings.dev_bypass},
    )

    try:
        yield
    finally:
        app.state.token_verifier = None
        logger.info("auth_lifespan_stopped")


lifespan_contribution = LifespanContribution(
    hook=_auth_lifespan,
    priority=LIFESPAN_PRIORITY_AUTH,
)
