"""MediKeep Infra FastAPI -- error handlers, middleware, health check, app factory."""

from medikeep.infra.fastapi.app_factory import create_app
from medikeep.infra.fastapi.error_handlers import (
    ProblemDetail,
    register_exception_handlers,
)
from medikeep.infra.fastapi.middleware.request_id import (
    RequestIdMiddleware,
    get_request_id,
)
from medikeep.infra.fastapi.settings import AppSettings, CORSSettings

__all__ = [
    "AppSettings",
    "CORSSettings",
    "ProblemDetail",
    "RequestIdMiddleware",
    "create_app",
    "get_request_id",
    "register_exception_handlers",
]
