"""Health check endpoint.

Pings the document store placed on ``app.state`` by the Firestore lifespan
hook and reports overall readiness.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from medikeep.foundation.domain.ports import StoreError

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)

# Any collection works; a limit-1 query is the cheapest round trip.
_PROBE_COLLECTION = "spaces"


async def _check_document_store(request: Request) -> dict[str, str]:
    """Check document store connectivity with a one-document query."""
    store = getattr(request.app.state, "document_store", None)
    if store is None:
        return {"status": "error", "detail": "document store not configured"}
    try:
        await store.query(_PROBE_COLLECTION, (), limit=1)
    except StoreError as exc:
        logger.warning("health_check_document_store_unhealthy", extra={"error": str(exc)})
        return {"status": "error", "detail": str(exc)}
    return {"status": "ok"}


@router.get("/healthz")
async def healthz(request: Request) -> Any:
    """Aggregated health check endpoint.

    Returns HTTP 200 when the document store answers, HTTP 503 otherwise.
    """
    checks: dict[str, dict[str, str]] = {
        "document_store": await _check_document_store(request),
    }

    all_ok = all(c["status"] == "ok" for c in checks.values())
    result = {
        "status": "ok" if all_ok else "degraded",
        "checks": checks,
    }

    status_code = 200 if all_ok else 503
    return JSONResponse(content=result, status_code=status_code)
