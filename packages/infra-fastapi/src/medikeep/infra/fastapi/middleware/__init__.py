"""Middleware components for the medikeep FastAPI integration."""

from medikeep.infra.fastapi.middleware.request_id import (
    RequestIdMiddleware,
    get_request_id,
)

__all__ = [
    "RequestIdMiddleware",
    "get_request_id",
]
