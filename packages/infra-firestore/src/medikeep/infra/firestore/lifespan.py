"""Firestore lifespan hook for startup/shutdown resource management.

Startup builds the async Firestore client and places a
:class:`FirestoreDocumentStore` on ``app.state.document_store`` where the
request dependencies find it. Shutdown deletes the firebase_admin app.

Priority 75 starts the store after observability (50) and before auth (100),
which reuses the same firebase_admin app.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from medikeep.foundation.application import LifespanContribution
from medikeep.foundation.application.contributions import LIFESPAN_PRIORITY_FIRESTORE
from medikeep.infra.firestore.client import get_firestore_factory
from medikeep.infra.firestore.store import FirestoreDocumentStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _firestore_lifespan(app: Any) -> AsyncIterator[None]:
    """Provide the document store for the application lifetime.

    Args:
        app: The FastAPI application; the store is attached to its state.
    """
    factory = get_firestore_factory()
    app.state.document_store = FirestoreDocumentStore(factory.get_client())
    logger.info(
        "firestore_lifespan_started",
        extra={"database": factory.settings.database},
    )

    try:
        yield
    finally:
        app.state.document_store = None
        try:
            factory.close()
            logger.info("firestore_lifespan_stopped")
        except ValueError:
            logger.warning("firestore_lifespan_close_failed", exc_info=True)


lifespan_contribution = LifespanContribution(
    hook=_firestore_lifespan,
    priority=LIFESPAN_PRIORITY_FIRESTORE,
)
