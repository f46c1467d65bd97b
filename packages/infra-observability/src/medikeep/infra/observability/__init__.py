"""MediKeep Infra Observability -- structured logging for API and worker."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from medikeep.foundation.application.contributions import (
    LIFESPAN_PRIORITY_OBSERVABILITY,
    LifespanContribution,
)
from medikeep.infra.observability.logging import (
    LoggingSettings,
    configure_logging,
    get_logger,
    get_logging_settings,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@asynccontextmanager
async def _observability_lifespan(app: Any) -> AsyncIterator[None]:
    # Runs first so the Firestore, auth and TaskIQ hooks log through structlog.
    configure_logging()
    yield


lifespan_contribution = LifespanContribution(
    hook=_observability_lifespan,
    priority=LIFESPAN_PRIORITY_OBSERVABILITY,
)

__all__ = [
    "LoggingSettings",
    "configure_logging",
    "get_logger",
    "get_logging_settings",
    "lifespan_contribution",
]
